"""
Consistency rules.

Contains:
- ScopeContradictionRule - требование против out-of-scope
- MissingCoverageRule - in-scope без требований
- MissingCriteriaMappingRule - критерии успеха без требований
- AssumptionViolationRule - противоречие допущениям
- ConstraintViolationRule - нарушение ограничений
- TerminologyMismatchRule - разные термины для одного концепта
- UnparseableReferenceRule - битые ссылки
"""

from typing import List

from ..config import AuditConfig
from ..core.base_rule import BaseRule
from .criteria import MissingCriteriaMappingRule
from .references import UnparseableReferenceRule
from .scope import MissingCoverageRule, ScopeContradictionRule
from .statements import AssumptionViolationRule, ConstraintViolationRule
from .terminology import TerminologyMismatchRule


def default_rules(config: AuditConfig) -> List[BaseRule]:
    """Все правила в фиксированном порядке выдачи."""
    return [
        ScopeContradictionRule(config),
        MissingCoverageRule(config),
        MissingCriteriaMappingRule(config),
        AssumptionViolationRule(config),
        ConstraintViolationRule(config),
        TerminologyMismatchRule(config),
        UnparseableReferenceRule(config),
    ]


__all__ = [
    "AssumptionViolationRule",
    "ConstraintViolationRule",
    "MissingCoverageRule",
    "MissingCriteriaMappingRule",
    "ScopeContradictionRule",
    "TerminologyMismatchRule",
    "UnparseableReferenceRule",
    "default_rules",
]
