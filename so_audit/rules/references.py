"""
Unparseable reference rule: entities the loader had to skip.
"""

from typing import List

from ..core.base_rule import BaseRule
from ..core.models import DocumentSet, Finding, Rejection, RejectionKind, RuleKind


class UnparseableReferenceRule(BaseRule):
    """Битые, висячие и повторные идентификаторы, отброшенные загрузчиком."""

    kind = RuleKind.UNPARSEABLE_REFERENCE

    def _check(self, documents: DocumentSet) -> List[Finding]:
        return [
            self.create_finding(
                location=rejection.source.location,
                description=f"Unparseable reference '{rejection.token}': {rejection.reason}",
                evidence=[rejection.source],
                suggested_fix=self._fix(rejection),
                anchor=rejection.source,
            )
            for rejection in documents.rejections
        ]

    @staticmethod
    def _fix(rejection: Rejection) -> str:
        if rejection.kind == RejectionKind.DANGLING:
            return f"Define objective {rejection.token} or correct the reference"
        if rejection.kind == RejectionKind.DUPLICATE:
            return f"Give the second {rejection.token} a unique identifier or merge the two entries"
        return f"Rename '{rejection.token}' to a well-formed identifier so it can be traced"
