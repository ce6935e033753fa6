"""
CLI interface for the Solution Outline consistency audit.

Usage:
    so-audit check -o objectives.md -r requirements.md -g glossary.md
    so-audit check -o objectives.md -r requirements.md --mode recheck
    so-audit check -o objectives.md -r requirements.md --output report.json --output-format json
    so-audit select docs/reports/consistency/latest.json CONS-01,CONS-03
    so-audit reset --yes
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .config import AuditConfig, load_config
from .core.exceptions import AuditError
from .core.models import ConsistencyReport
from .orchestrator import run_audit
from .reports.generator import REPORT_FORMATS, ReportGenerator
from .reports.store import RUN_MODES, ReportStore, load_json_report, select_issues

app = typer.Typer(
    name="so-audit",
    help="Solution Outline consistency audit: objectives vs requirements vs glossary",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

EXIT_CRITICAL = 1
EXIT_ERROR = 2


def setup_logging(verbose: bool = False):
    """Настроить логирование."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Подробное логирование"),
):
    """Проверка согласованности документов Solution Outline."""
    # Load .env file if it exists
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    setup_logging(verbose)


def fail(message: str) -> typer.Exit:
    console.print(f"[red]❌ {escape(message)}[/]")
    return typer.Exit(EXIT_ERROR)


@app.command()
def check(
    objectives: Optional[Path] = typer.Option(None, "--objectives", "-o", help="Документ целей (markdown)"),
    requirements: Optional[Path] = typer.Option(None, "--requirements", "-r", help="Документ требований"),
    glossary: Optional[Path] = typer.Option(None, "--glossary", "-g", help="Глоссарий"),
    reports_dir: Optional[Path] = typer.Option(None, "--reports-dir", help="Каталог отчётов"),
    mode: str = typer.Option("eval", "--mode", help="eval или recheck"),
    output: Optional[Path] = typer.Option(None, "--output", help="Записать отчёт в файл вместо каталога отчётов"),
    output_format: str = typer.Option("markdown", "--output-format", help="markdown или json (для --output)"),
    strict: bool = typer.Option(False, "--strict", help="Ошибка на битых идентификаторах"),
    fail_on_critical: bool = typer.Option(True, "--fail-on-critical/--no-fail-on-critical"),
    summary: bool = typer.Option(True, "--summary/--no-summary", help="Показать сводку"),
):
    """🔍 Проверить документы и записать отчёт."""
    if mode not in RUN_MODES:
        raise fail(f"Unknown mode {mode!r}; expected one of {', '.join(RUN_MODES)}")
    if output_format not in REPORT_FORMATS:
        raise fail(f"Unknown output format {output_format!r}; expected one of {', '.join(REPORT_FORMATS)}")

    try:
        config = load_config(
            objectives_path=objectives,
            requirements_path=requirements,
            glossary_path=glossary,
            reports_dir=reports_dir,
            strict=True if strict else None,
        )
        report = _run(config, mode, output, output_format)
    except AuditError as e:
        logger.error(f"Audit failed: {e}")
        raise fail(str(e))

    if summary:
        ReportGenerator().print_summary(report, console=console)

    if report.critical and fail_on_critical:
        console.print(f"[red]❌ {report.critical} CRITICAL issues found![/]")
        raise typer.Exit(EXIT_CRITICAL)


def _run(config: AuditConfig, mode: str, output: Optional[Path], output_format: str) -> ConsistencyReport:
    store = ReportStore(config.reports_dir)

    previous = None
    if mode == "recheck":
        previous = store.load_latest()
        if previous is None:
            logger.warning(f"No previous report in {config.reports_dir}; recheck has nothing to compare")

    report = run_audit(config, previous=previous)

    if output is not None:
        path = store.generator.generate_report(report, output, format=output_format)
        console.print(f"✅ Report: {path}")
    else:
        paths = store.publish(report, mode=mode)
        console.print(f"✅ Report: {paths['markdown']} (snapshot {paths['snapshot'].name})")
    return report


@app.command()
def select(
    report_path: Path = typer.Argument(..., help="JSON-отчёт (latest.json)"),
    issue_ids: str = typer.Argument(..., help="IssueId через запятую, например CONS-01,CONS-03"),
    output: Optional[Path] = typer.Option(None, "--output", help="Записать выборку в файл"),
):
    """🎯 Выбрать проблемы по IssueId для точечного исправления."""
    try:
        report = load_json_report(report_path)
    except AuditError as e:
        raise fail(str(e))

    selected, missing = select_issues(report, issue_ids.split(","))
    for issue_id in missing:
        console.print(f"[yellow]⚠️  Unknown issue id: {escape(issue_id)}[/]")
    if not selected.issues:
        raise fail("No matching issues selected")

    generator = ReportGenerator(title="Selected consistency issues")
    if output is not None:
        try:
            generator.generate_report(selected, output)
        except AuditError as e:
            raise fail(str(e))
        console.print(f"✅ Selection: {output}")
    else:
        typer.echo(generator.render_markdown(selected), nl=False)


@app.command()
def reset(
    reports_dir: Optional[Path] = typer.Option(None, "--reports-dir", help="Каталог отчётов"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Не спрашивать подтверждение"),
):
    """🧹 Удалить сгенерированные отчёты, сохранив каталоги."""
    try:
        config = load_config(reports_dir=reports_dir)
    except AuditError as e:
        raise fail(str(e))

    if not yes:
        typer.confirm(
            f"Delete all generated report files in {config.reports_dir}? Directories are kept.",
            abort=True,
        )

    deleted = ReportStore(config.reports_dir).reset()
    console.print(Panel(escape(f"Deleted {deleted} generated report file(s) in {config.reports_dir}")))


if __name__ == "__main__":
    app()
