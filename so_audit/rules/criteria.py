"""
Success criteria mapping rule.
"""

from typing import List

from ..core.base_rule import BaseRule
from ..core.models import DocumentSet, Finding, RuleKind
from ..core.text import coverage, key_terms


class MissingCriteriaMappingRule(BaseRule):
    """
    Критерий успеха без требования, которое его обеспечивает.

    Критерий считается покрытым, если хотя бы одно требование содержит
    не меньше criteria_match_threshold его ключевых терминов или если
    на строке критерия процитирован существующий идентификатор требования.
    """

    kind = RuleKind.MISSING_CRITERIA_MAPPING

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        threshold = self.config.criteria_match_threshold
        body_terms = self.requirement_terms(documents)
        known = set(body_terms)

        for objective in documents.objectives:
            for criterion in objective.success_criteria:
                if any(cited in known for cited in criterion.cited_ids):
                    continue

                terms = key_terms(criterion.text)
                if not terms:
                    continue

                best = max((coverage(terms, found) for found in body_terms.values()), default=0.0)
                if best >= threshold:
                    continue

                findings.append(self.create_finding(
                    location=criterion.source.location,
                    description=(
                        f"Success criterion '{criterion.text}' of {objective.identifier} is not "
                        f"satisfied by any requirement (best term coverage {best:.0%})"
                    ),
                    evidence=[criterion.source],
                    suggested_fix=(
                        "Add a measurable requirement that delivers this criterion, or cite "
                        "the requirement identifier that satisfies it"
                    ),
                    anchor=criterion.source,
                ))

        return findings
