"""
Report store: latest.md / latest.json plus timestamped snapshots.

Layout of the reports directory:

    latest.md                      most recent report, markdown
    latest.json                    most recent report, JSON
    20260101_120000_eval.md        snapshot of an evaluation run
    20260101_130500_recheck.md     snapshot of a recheck run
"""

import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import ReportError
from ..core.models import ConsistencyReport, Issue, RecheckDelta
from .generator import ReportGenerator

logger = logging.getLogger(__name__)

RUN_MODES = ("eval", "recheck")
LATEST_MARKDOWN = "latest.md"
LATEST_JSON = "latest.json"
SNAPSHOT_FORMAT = "%Y%m%d_%H%M%S"


class ReportStore:
    """Хранилище отчётов в каталоге reports_dir."""

    def __init__(self, reports_dir: Path, generator: Optional[ReportGenerator] = None):
        """
        Args:
            reports_dir: Каталог отчётов (создаётся при первой записи)
            generator: Генератор отчётов
        """
        self.reports_dir = Path(reports_dir)
        self.generator = generator or ReportGenerator()

    @property
    def latest_markdown(self) -> Path:
        return self.reports_dir / LATEST_MARKDOWN

    @property
    def latest_json(self) -> Path:
        return self.reports_dir / LATEST_JSON

    def publish(
        self,
        report: ConsistencyReport,
        mode: str = "eval",
        now: Optional[datetime] = None
    ) -> Dict[str, Path]:
        """
        Записать latest.md, latest.json и снимок прогона.

        Args:
            report: Отчёт
            mode: "eval" или "recheck" (суффикс имени снимка)
            now: Время прогона (по умолчанию текущее)

        Returns:
            {"markdown": ..., "json": ..., "snapshot": ...}
        """
        if mode not in RUN_MODES:
            raise ValueError(f"Unknown run mode {mode!r}; expected one of {RUN_MODES}")

        self.reports_dir.mkdir(parents=True, exist_ok=True)
        markdown = self.generator.render_markdown(report)

        snapshot = self._snapshot_path(now or datetime.now(), mode)
        try:
            self.latest_markdown.write_text(markdown, encoding="utf-8")
            self.latest_json.write_text(self.generator.render_json(report), encoding="utf-8")
            snapshot.write_text(markdown, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"cannot write reports to {self.reports_dir}: {e}") from e

        logger.info(f"Report saved to {self.latest_markdown} (snapshot {snapshot.name})")
        return {"markdown": self.latest_markdown, "json": self.latest_json, "snapshot": snapshot}

    def load_latest(self) -> Optional[ConsistencyReport]:
        """Предыдущий отчёт из latest.json или None, если его ещё нет."""
        if not self.latest_json.is_file():
            return None
        return load_json_report(self.latest_json)

    def reset(self) -> int:
        """
        Удалить все сгенерированные файлы, сохранив структуру каталогов.

        Returns:
            Число удалённых файлов (0, если каталога нет)
        """
        if not self.reports_dir.is_dir():
            logger.warning(f"Reports directory not found: {self.reports_dir}")
            return 0

        deleted = 0
        for path in sorted(self.reports_dir.rglob("*")):
            if path.is_file() or path.is_symlink():
                path.unlink()
                deleted += 1
                logger.debug(f"Deleted: {path}")

        logger.info(f"Reset complete. Deleted {deleted} file(s)")
        return deleted

    def _snapshot_path(self, now: datetime, mode: str) -> Path:
        stamp = now.strftime(SNAPSHOT_FORMAT)
        path = self.reports_dir / f"{stamp}_{mode}.md"
        counter = 2
        while path.exists():
            path = self.reports_dir / f"{stamp}_{mode}_{counter}.md"
            counter += 1
        return path


def load_json_report(path: Path) -> ConsistencyReport:
    """
    Прочитать JSON-отчёт.

    Raises:
        ReportError: файл отсутствует или не является отчётом
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ConsistencyReport.from_dict(data)
    except OSError as e:
        raise ReportError(f"{path}: cannot read report: {e}") from e
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ReportError(f"{path}: not a consistency report: {e}") from e


def compare_reports(previous: ConsistencyReport, current: ConsistencyReport) -> RecheckDelta:
    """
    Сравнить два прогона по fingerprint (правило, местоположение, evidence).

    Повторяющиеся fingerprint сопоставляются попарно.
    """
    remaining = Counter(issue.fingerprint for issue in previous.issues)
    persisting: List[Issue] = []
    new: List[Issue] = []
    for issue in current.issues:
        if remaining[issue.fingerprint] > 0:
            remaining[issue.fingerprint] -= 1
            persisting.append(issue)
        else:
            new.append(issue)

    current_counts = Counter(issue.fingerprint for issue in current.issues)
    resolved: List[Issue] = []
    for issue in previous.issues:
        if current_counts[issue.fingerprint] > 0:
            current_counts[issue.fingerprint] -= 1
        else:
            resolved.append(issue)

    return RecheckDelta(resolved=tuple(resolved), persisting=tuple(persisting), new=tuple(new))


def select_issues(report: ConsistencyReport, issue_ids: Iterable[str]) -> Tuple[ConsistencyReport, List[str]]:
    """
    Оставить в отчёте только запрошенные проблемы (в порядке отчёта).

    Returns:
        (отфильтрованный отчёт, неизвестные IssueId)
    """
    wanted = [i.strip() for i in issue_ids if i.strip()]
    known = {issue.issue_id for issue in report.issues}
    missing = [i for i in dict.fromkeys(wanted) if i not in known]

    selected = tuple(issue for issue in report.issues if issue.issue_id in set(wanted))
    filtered = ConsistencyReport(issues=selected, documents=report.documents, notes=report.notes)
    return filtered, missing
