"""
Scope rules: out-of-scope contradictions and in-scope coverage gaps.
"""

from typing import List

from ..core.base_rule import BaseRule
from ..core.models import DocumentSet, Finding, RuleKind
from ..core.text import negates, term_set


class ScopeContradictionRule(BaseRule):
    """Требование описывает capability, которую цель явно исключила из scope."""

    kind = RuleKind.SCOPE_CONTRADICTION

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        body_terms = self.requirement_terms(documents)

        for objective in documents.objectives:
            for item in objective.out_of_scope:
                terms = term_set(item.text)
                if not terms:
                    continue

                for requirement in documents.requirements:
                    if not terms <= body_terms[requirement.identifier]:
                        continue
                    line = self.matching_line(requirement, terms)
                    # "refunds are not handled online" agrees with the exclusion
                    if negates(line.text, terms):
                        continue
                    findings.append(self.create_finding(
                        location=requirement.source.location,
                        description=(
                            f"{requirement.identifier} requires '{item.text}', "
                            f"which {objective.identifier} marks out of scope"
                        ),
                        evidence=[line, item.source],
                        suggested_fix=(
                            f"Remove or re-scope {requirement.identifier}, or move "
                            f"'{item.text}' into the scope of {objective.identifier}"
                        ),
                        anchor=line,
                    ))

        return findings


class MissingCoverageRule(BaseRule):
    """In-scope capability не покрыта ни одним требованием."""

    kind = RuleKind.MISSING_COVERAGE

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        body_terms = self.requirement_terms(documents)
        known = set(body_terms)

        for objective in documents.objectives:
            for item in objective.in_scope:
                # An explicit citation of an existing requirement counts as coverage
                if any(cited in known for cited in item.cited_ids):
                    continue

                terms = term_set(item.text)
                if not terms:
                    continue
                if any(terms <= found for found in body_terms.values()):
                    continue

                findings.append(self.create_finding(
                    location=item.source.location,
                    description=(
                        f"In-scope capability '{item.text}' of {objective.identifier} "
                        f"is not covered by any requirement"
                    ),
                    evidence=[item.source],
                    suggested_fix=(
                        f"Add a requirement covering '{item.text}', or cite the covering "
                        f"requirement identifier on the capability line"
                    ),
                    anchor=item.source,
                ))

        return findings
