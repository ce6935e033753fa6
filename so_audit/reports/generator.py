"""
Report generator for consistency audit results.

Generates:
- Markdown reports for human reading
- JSON reports for machine processing
- Next actions based on issue patterns
"""

import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..core.exceptions import ReportError
from ..core.models import RULE_ORDER, SEVERITY_ORDER, ConsistencyReport, Issue, RuleKind, Severity

REPORT_FORMATS = ("markdown", "json")

SEVERITY_EMOJI = {
    Severity.CRITICAL: "🔴",
    Severity.MAJOR: "🟠",
    Severity.MINOR: "🟢",
}

TABLE_COLUMNS = ("IssueId", "Severity", "Location", "Description", "Evidence", "SuggestedFix")

# rule -> (title, action)
NEXT_ACTIONS = {
    RuleKind.SCOPE_CONTRADICTION: (
        "Resolve scope contradictions",
        "Remove or re-scope the requirements, or agree to bring the capability into scope",
    ),
    RuleKind.MISSING_COVERAGE: (
        "Close coverage gaps",
        "Add requirements for the uncovered in-scope capabilities",
    ),
    RuleKind.MISSING_CRITERIA_MAPPING: (
        "Map success criteria to requirements",
        "Add or cite a requirement that delivers each unmapped success criterion",
    ),
    RuleKind.ASSUMPTION_VIOLATION: (
        "Confirm assumptions",
        "Review the contradicted assumptions with stakeholders before patching requirements",
    ),
    RuleKind.CONSTRAINT_VIOLATION: (
        "Fix constraint violations",
        "Rewrite the requirements that break prohibitive constraints",
    ),
    RuleKind.TERMINOLOGY_MISMATCH: (
        "Align terminology",
        "Pick one term per concept or add glossary entries naming the synonyms",
    ),
    RuleKind.UNPARSEABLE_REFERENCE: (
        "Repair identifiers",
        "Fix malformed, duplicate or dangling identifiers so every entity can be traced",
    ),
}


def escape_cell(text: str) -> str:
    """Экранировать текст для ячейки markdown-таблицы."""
    return text.replace("|", "\\|").replace("\r", "").replace("\n", "<br>")


class ReportGenerator:
    """Генератор отчётов аудита согласованности."""

    def __init__(self, title: str = "Solution Outline Consistency Report"):
        """
        Args:
            title: Заголовок markdown-отчёта
        """
        self.title = title

    def generate_report(
        self,
        report: ConsistencyReport,
        output_path: Path,
        format: str = "markdown"
    ) -> Path:
        """
        Записать отчёт в файл.

        Args:
            report: Результат аудита
            output_path: Путь к файлу отчёта
            format: Формат отчёта ("markdown" или "json")

        Returns:
            Путь к сгенерированному файлу

        Raises:
            ReportError: файл не удаётся записать (каталог, нет прав)
        """
        output_path = Path(output_path)
        content = self.render(report, format=format)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"cannot write report to {output_path}: {e}") from e
        return output_path

    def render(self, report: ConsistencyReport, format: str = "markdown") -> str:
        if format not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format {format!r}; expected one of {REPORT_FORMATS}")
        if format == "json":
            return self.render_json(report)
        return self.render_markdown(report)

    def render_markdown(self, report: ConsistencyReport) -> str:
        """
        Markdown-отчёт: сводка, таблица проблем, next actions.

        Отчёт не содержит времени генерации: одинаковые входы дают
        побайтно одинаковый результат.
        """
        lines = []

        # Header
        lines.append(f"# {self.title}")
        lines.append("")

        # Summary
        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Total issues:** {report.total}")
        for severity in SEVERITY_ORDER:
            lines.append(f"- {SEVERITY_EMOJI[severity]} **{severity.label}:** {report.count(severity)}")
        lines.append("")

        if report.documents:
            lines.append("**Inputs:** " + ", ".join(f"`{name}`" for name in report.documents))
            lines.append("")

        for note in report.notes:
            lines.append(f"> {note}")
            lines.append("")

        # Issues table
        lines.append("## Issues")
        lines.append("")
        lines.append("| " + " | ".join(TABLE_COLUMNS) + " |")
        lines.append("|" + "|".join("---" for _ in TABLE_COLUMNS) + "|")
        for issue in report.issues:
            lines.append(self._table_row(issue))
        if not report.issues:
            lines.append("")
            lines.append("_No issues found._")
        lines.append("")

        # Recheck
        if report.recheck is not None:
            lines.append("## Recheck")
            lines.append("")
            lines.append(f"- **Resolved:** {self._id_list(report.recheck.resolved)}")
            lines.append(f"- **Persisting:** {self._id_list(report.recheck.persisting)}")
            lines.append(f"- **New:** {self._id_list(report.recheck.new)}")
            lines.append("")

        # Next actions
        lines.append("## Next actions")
        lines.append("")
        actions = self.generate_next_actions(report.issues)
        if not actions:
            lines.append("- No action required.")
        for i, action in enumerate(actions, 1):
            ids = ", ".join(action["issue_ids"])
            lines.append(f"{i}. **{action['title']}** ({ids}): {action['action']}")

        return "\n".join(lines) + "\n"

    def render_json(self, report: ConsistencyReport) -> str:
        """JSON-отчёт с теми же данными и next actions."""
        report_dict = report.to_dict()
        report_dict["next_actions"] = self.generate_next_actions(report.issues)
        return json.dumps(report_dict, indent=2, ensure_ascii=False) + "\n"

    def generate_next_actions(self, issues: Sequence[Issue]) -> List[Dict[str, Any]]:
        """
        Сгруппировать проблемы по правилу и выдать по одному действию на группу.

        Действия упорядочены по серьёзности, затем по порядку правил.
        """
        issues_by_rule = defaultdict(list)
        for issue in issues:
            issues_by_rule[issue.rule].append(issue)

        actions = []
        for rule in RULE_ORDER:
            rule_issues = issues_by_rule.get(rule)
            if not rule_issues:
                continue
            title, action = NEXT_ACTIONS[rule]
            worst = min(SEVERITY_ORDER.index(i.severity) for i in rule_issues)
            actions.append({
                "title": title,
                "action": action,
                "priority": SEVERITY_ORDER[worst].value,
                "issue_ids": [i.issue_id for i in rule_issues],
            })

        priority_order = {s.value: n for n, s in enumerate(SEVERITY_ORDER)}
        actions.sort(key=lambda x: priority_order[x["priority"]])
        return actions

    def print_summary(self, report: ConsistencyReport, console: Optional[Console] = None):
        """Вывести краткую сводку в консоль."""
        console = console or Console()

        table = Table(title="Consistency audit summary")
        table.add_column("Severity", style="cyan")
        table.add_column("Issues", style="green", justify="right")
        for severity in SEVERITY_ORDER:
            table.add_row(f"{SEVERITY_EMOJI[severity]} {severity.label}", str(report.count(severity)))
        table.add_row("Total", str(report.total), style="bold")
        console.print(table)

        if report.issues_by_rule:
            console.print("\nBy rule:")
            for rule in RULE_ORDER:
                count = report.issues_by_rule.get(rule.value)
                if count:
                    console.print(f"  - {rule.title}: {count}")

        for note in report.notes:
            console.print(f"[yellow]{note}[/]")

    def _table_row(self, issue: Issue) -> str:
        evidence = "<br>".join(f'"{excerpt}"' for excerpt in issue.evidence)
        cells = (
            issue.issue_id,
            issue.severity.label,
            issue.location,
            issue.description,
            evidence,
            issue.suggested_fix,
        )
        return "| " + " | ".join(escape_cell(cell) for cell in cells) + " |"

    @staticmethod
    def _id_list(issues: Sequence[Issue]) -> str:
        if not issues:
            return "none"
        return ", ".join(issue.issue_id for issue in issues)
