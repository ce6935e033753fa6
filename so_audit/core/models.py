"""
Core data models for the consistency audit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(Enum):
    """Уровень серьёзности несоответствия."""
    CRITICAL = "critical"  # Документы противоречат друг другу
    MAJOR = "major"        # Пробел в покрытии или трассировке
    MINOR = "minor"        # Терминология, неразборчивые ссылки

    @property
    def label(self) -> str:
        return self.value.capitalize()


class RuleKind(Enum):
    """Вид правила согласованности."""
    SCOPE_CONTRADICTION = "scope_contradiction"
    MISSING_COVERAGE = "missing_coverage"
    MISSING_CRITERIA_MAPPING = "missing_criteria_mapping"
    ASSUMPTION_VIOLATION = "assumption_violation"
    CONSTRAINT_VIOLATION = "constraint_violation"
    TERMINOLOGY_MISMATCH = "terminology_mismatch"
    UNPARSEABLE_REFERENCE = "unparseable_reference"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").capitalize()


# Issues are emitted in this order
RULE_ORDER: Tuple[RuleKind, ...] = (
    RuleKind.SCOPE_CONTRADICTION,
    RuleKind.MISSING_COVERAGE,
    RuleKind.MISSING_CRITERIA_MAPPING,
    RuleKind.ASSUMPTION_VIOLATION,
    RuleKind.CONSTRAINT_VIOLATION,
    RuleKind.TERMINOLOGY_MISMATCH,
    RuleKind.UNPARSEABLE_REFERENCE,
)

DEFAULT_SEVERITY: Dict[RuleKind, Severity] = {
    RuleKind.SCOPE_CONTRADICTION: Severity.CRITICAL,
    RuleKind.MISSING_COVERAGE: Severity.MAJOR,
    RuleKind.MISSING_CRITERIA_MAPPING: Severity.MAJOR,
    RuleKind.ASSUMPTION_VIOLATION: Severity.MAJOR,
    RuleKind.CONSTRAINT_VIOLATION: Severity.CRITICAL,
    RuleKind.TERMINOLOGY_MISMATCH: Severity.MINOR,
    RuleKind.UNPARSEABLE_REFERENCE: Severity.MINOR,
}

SEVERITY_ORDER: Tuple[Severity, ...] = (Severity.CRITICAL, Severity.MAJOR, Severity.MINOR)


class DocumentKind(Enum):
    """Тип входного документа (значение задаёт порядок документов)."""
    OBJECTIVES = 0
    REQUIREMENTS = 1
    GLOSSARY = 2


@dataclass(frozen=True)
class SourceLine:
    """Строка входного документа, на которую можно сослаться как на evidence."""

    document: str       # имя файла
    doc_index: int      # порядок документа (DocumentKind.value)
    line_no: int        # 1-based
    section: str        # OBJ-01 / Out of scope, BR-03, Glossary ...
    text: str           # строка без пробелов по краям, дословно

    @property
    def location(self) -> str:
        return f"{self.document} § {self.section} (line {self.line_no})"

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.doc_index, self.line_no)


@dataclass(frozen=True)
class Statement:
    """Пункт списка внутри цели: capability, критерий, допущение, ограничение."""

    text: str
    source: SourceLine
    cited_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Objective:
    """Бизнес-цель с границами scope и критериями успеха."""

    identifier: str
    title: str
    source: SourceLine
    in_scope: Tuple[Statement, ...] = ()
    out_of_scope: Tuple[Statement, ...] = ()
    success_criteria: Tuple[Statement, ...] = ()
    assumptions: Tuple[Statement, ...] = ()
    constraints: Tuple[Statement, ...] = ()


@dataclass(frozen=True)
class Requirement:
    """Функциональное или нефункциональное требование (BR-01, NFR-02...)."""

    identifier: str
    body: str
    lines: Tuple[SourceLine, ...]
    objective_refs: Tuple[str, ...] = ()

    @property
    def source(self) -> SourceLine:
        return self.lines[0]


@dataclass(frozen=True)
class GlossaryEntry:
    """Термин глоссария."""

    term: str
    definition: str
    source: SourceLine

    @property
    def text(self) -> str:
        return f"{self.term} {self.definition}"


class RejectionKind(Enum):
    """Причина, по которой загрузчик пропустил сущность."""
    MALFORMED = "malformed"    # идентификатор не соответствует шаблону
    DANGLING = "dangling"      # ссылка на несуществующую цель
    DUPLICATE = "duplicate"    # идентификатор уже определён


@dataclass(frozen=True)
class Rejection:
    """Сущность, пропущенная загрузчиком (битый, висячий или повторный идентификатор)."""

    kind: RejectionKind
    token: str
    reason: str
    source: SourceLine


@dataclass(frozen=True)
class DocumentSet:
    """Результат загрузки: все сущности плюс сырые строки для evidence."""

    objectives: Tuple[Objective, ...] = ()
    requirements: Tuple[Requirement, ...] = ()
    glossary: Tuple[GlossaryEntry, ...] = ()
    # Document-level "## Assumptions" / "## Constraints" sections
    global_assumptions: Tuple[Statement, ...] = ()
    global_constraints: Tuple[Statement, ...] = ()
    # Non-empty lines of objectives and requirements, glossary sections excluded
    lines: Tuple[SourceLine, ...] = ()
    rejections: Tuple[Rejection, ...] = ()
    documents: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Нет целей или нет требований: сверять нечего."""
        return not self.objectives or not self.requirements

    @property
    def assumptions(self) -> Tuple[Statement, ...]:
        scoped = tuple(s for o in self.objectives for s in o.assumptions)
        return tuple(sorted(scoped + self.global_assumptions, key=lambda s: s.source.sort_key))

    @property
    def constraints(self) -> Tuple[Statement, ...]:
        scoped = tuple(s for o in self.objectives for s in o.constraints)
        return tuple(sorted(scoped + self.global_constraints, key=lambda s: s.source.sort_key))

    def requirement_ids(self) -> Tuple[str, ...]:
        return tuple(r.identifier for r in self.requirements)

    def objective_ids(self) -> Tuple[str, ...]:
        return tuple(o.identifier for o in self.objectives)


@dataclass(frozen=True)
class Finding:
    """Черновик проблемы, найденной правилом (ещё без IssueId)."""

    rule: RuleKind
    severity: Severity
    location: str
    description: str
    evidence: Tuple[str, ...]
    suggested_fix: str
    sort_key: Tuple[int, ...]

    def __post_init__(self):
        if not self.evidence or not all(e.strip() for e in self.evidence):
            raise ValueError(f"{self.rule.value} finding at {self.location} has no evidence")


@dataclass(frozen=True)
class Issue:
    """Несоответствие, включённое в отчёт."""

    issue_id: str
    rule: RuleKind
    severity: Severity
    location: str
    description: str
    evidence: Tuple[str, ...]
    suggested_fix: str

    @classmethod
    def from_finding(cls, issue_id: str, finding: Finding) -> "Issue":
        return cls(
            issue_id=issue_id,
            rule=finding.rule,
            severity=finding.severity,
            location=finding.location,
            description=finding.description,
            evidence=finding.evidence,
            suggested_fix=finding.suggested_fix,
        )

    @property
    def fingerprint(self) -> Tuple[str, str, Tuple[str, ...]]:
        """Ключ для сравнения между прогонами (IssueId между прогонами не стабилен)."""
        return (self.rule.value, self.location, self.evidence)

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        return {
            "issue_id": self.issue_id,
            "rule": self.rule.value,
            "severity": self.severity.value,
            "location": self.location,
            "description": self.description,
            "evidence": list(self.evidence),
            "suggested_fix": self.suggested_fix,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Issue":
        return cls(
            issue_id=data["issue_id"],
            rule=RuleKind(data["rule"]),
            severity=Severity(data["severity"]),
            location=data["location"],
            description=data["description"],
            evidence=tuple(data["evidence"]),
            suggested_fix=data["suggested_fix"],
        )


@dataclass(frozen=True)
class RecheckDelta:
    """Сравнение с предыдущим отчётом (режим recheck)."""

    resolved: Tuple[Issue, ...] = ()    # из предыдущего отчёта
    persisting: Tuple[Issue, ...] = ()  # из текущего отчёта
    new: Tuple[Issue, ...] = ()         # из текущего отчёта

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resolved": [i.issue_id for i in self.resolved],
            "persisting": [i.issue_id for i in self.persisting],
            "new": [i.issue_id for i in self.new],
        }


@dataclass(frozen=True)
class ConsistencyReport:
    """Итоговый отчёт одного прогона."""

    issues: Tuple[Issue, ...] = ()
    documents: Tuple[str, ...] = ()
    notes: Tuple[str, ...] = ()
    recheck: Optional[RecheckDelta] = None

    @property
    def total(self) -> int:
        return len(self.issues)

    @property
    def critical(self) -> int:
        return self.count(Severity.CRITICAL)

    def count(self, severity: Severity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def issues_by_severity(self) -> Dict[str, int]:
        return {s.value: self.count(s) for s in SEVERITY_ORDER}

    @property
    def issues_by_rule(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for issue in self.issues:
            counts[issue.rule.value] = counts.get(issue.rule.value, 0) + 1
        return counts

    def get(self, issue_id: str) -> Optional[Issue]:
        for issue in self.issues:
            if issue.issue_id == issue_id:
                return issue
        return None

    def get_critical_issues(self) -> List[Issue]:
        """Получить только критические проблемы."""
        return [i for i in self.issues if i.severity == Severity.CRITICAL]

    def to_dict(self) -> Dict[str, Any]:
        """Преобразовать в словарь для JSON."""
        data = {
            "total_issues": self.total,
            "critical_issues": self.critical,
            "issues_by_severity": self.issues_by_severity,
            "issues_by_rule": self.issues_by_rule,
            "documents": list(self.documents),
            "notes": list(self.notes),
            "issues": [issue.to_dict() for issue in self.issues],
        }
        if self.recheck is not None:
            data["recheck"] = self.recheck.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConsistencyReport":
        return cls(
            issues=tuple(Issue.from_dict(item) for item in data.get("issues", [])),
            documents=tuple(data.get("documents", [])),
            notes=tuple(data.get("notes", [])),
        )
