"""
Audit orchestrator: load -> evaluate -> report, once per invocation.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from .config import AuditConfig
from .core.models import ConsistencyReport, DocumentSet
from .evaluator import RuleEvaluator
from .loader import DocumentLoader
from .reports.store import compare_reports

logger = logging.getLogger(__name__)


class AuditOrchestrator:
    """Оркестратор одного прогона аудита."""

    def __init__(self, config: AuditConfig):
        """
        Args:
            config: Конфигурация аудита
        """
        self.config = config
        self.loader = DocumentLoader(config)
        self.evaluator = RuleEvaluator(config)

    def run(self, previous: Optional[ConsistencyReport] = None) -> ConsistencyReport:
        """
        Выполнить аудит.

        Args:
            previous: Предыдущий отчёт (режим recheck), если есть

        Returns:
            ConsistencyReport

        Raises:
            LoadError: входной документ отсутствует или не читается
        """
        documents = self.loader.load()
        issues = self.evaluator.evaluate(documents)

        report = ConsistencyReport(
            issues=issues,
            documents=documents.documents,
            notes=self._notes(documents),
        )

        if previous is not None:
            report = replace(report, recheck=compare_reports(previous, report))

        logger.info(f"Audit complete: {report.total} issues ({report.critical} critical)")
        return report

    @staticmethod
    def _notes(documents: DocumentSet) -> Tuple[str, ...]:
        if not documents.objectives and not documents.requirements:
            return ("No objectives or requirements were supplied; there was nothing to check.",)
        if not documents.objectives:
            return ("No objectives were supplied; cross-document checks were skipped.",)
        if not documents.requirements:
            return ("No requirements were supplied; cross-document checks were skipped.",)
        return ()


def run_audit(config: AuditConfig, previous: Optional[ConsistencyReport] = None) -> ConsistencyReport:
    """
    Удобная функция для запуска аудита с оркестратором.

    Args:
        config: Конфигурация аудита
        previous: Предыдущий отчёт для сравнения (recheck)

    Returns:
        ConsistencyReport
    """
    return AuditOrchestrator(config).run(previous=previous)
