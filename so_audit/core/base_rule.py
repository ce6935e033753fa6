"""
Base class for consistency rules.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import AbstractSet, Dict, List, Sequence, Tuple

from ..config import AuditConfig
from .models import DocumentSet, Finding, Requirement, RuleKind, SourceLine
from .text import term_set


class BaseRule(ABC):
    """
    Базовый класс для всех правил согласованности.

    Предоставляет:
    - Шаблон метода run()
    - Логирование и замер времени
    - Упорядочивание находок по документу
    """

    kind: RuleKind

    def __init__(self, config: AuditConfig):
        """
        Args:
            config: Конфигурация аудита (пороги, severity overrides)
        """
        self.config = config
        self.name = type(self).__name__
        self.severity = config.severity_for(self.kind)
        self.logger = logging.getLogger(f"so_audit.{self.name}")

    def run(self, documents: DocumentSet) -> List[Finding]:
        """
        Выполнить правило.

        Returns:
            Находки в порядке первого появления в документах
        """
        self.logger.debug(f"Starting {self.name}...")
        start_time = time.perf_counter()

        try:
            findings = self._check(documents)
        except Exception as e:
            self.logger.error(f"{self.name} failed with exception: {e}", exc_info=True)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Completed {self.name}: "
            f"found {len(findings)} issues, "
            f"duration={duration_ms:.2f}ms"
        )

        # sorted() is stable: equal keys keep the rule's own order
        return sorted(findings, key=lambda f: f.sort_key)

    @abstractmethod
    def _check(self, documents: DocumentSet) -> List[Finding]:
        """
        Выполнить проверку (должен быть реализован в подклассах).

        Returns:
            Список находок
        """
        pass

    def create_finding(
        self,
        location: str,
        description: str,
        evidence: Sequence[SourceLine],
        suggested_fix: str,
        anchor: SourceLine,
    ) -> Finding:
        """
        Удобный метод для создания Finding.

        Args:
            location: Местоположение (документ § раздел)
            description: Описание несоответствия
            evidence: Строки-доказательства (цитируются дословно)
            suggested_fix: Рекомендация по исправлению
            anchor: Строка, задающая порядок находки в отчёте
        """
        excerpts: Tuple[str, ...] = tuple(dict.fromkeys(line.text for line in evidence))
        return Finding(
            rule=self.kind,
            severity=self.severity,
            location=location,
            description=description,
            evidence=excerpts,
            suggested_fix=suggested_fix,
            sort_key=anchor.sort_key + tuple(line.line_no for line in evidence),
        )

    @staticmethod
    def requirement_terms(documents: DocumentSet) -> Dict[str, AbstractSet[str]]:
        """Термины тела каждого требования по идентификатору."""
        return {r.identifier: term_set(r.body) for r in documents.requirements}

    @staticmethod
    def matching_line(requirement: Requirement, terms: AbstractSet[str]) -> SourceLine:
        """Строка требования с наибольшим числом совпавших терминов."""
        best = requirement.source
        best_hits = -1
        for line in requirement.lines:
            hits = len(terms & term_set(line.text))
            if hits > best_hits:
                best, best_hits = line, hits
        return best
