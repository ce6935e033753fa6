"""
Assumption and constraint rules.
"""

from typing import List

from ..core.base_rule import BaseRule
from ..core.models import DocumentSet, Finding, RuleKind
from ..core.text import coverage, is_negated, negates, term_set


class AssumptionViolationRule(BaseRule):
    """
    Требование противоречит допущению.

    Противоречие: требование разделяет не меньше assumption_match_threshold
    ключевых терминов допущения, но с противоположной полярностью
    (одно из них содержит отрицание, другое нет).
    """

    kind = RuleKind.ASSUMPTION_VIOLATION

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        threshold = self.config.assumption_match_threshold
        body_terms = self.requirement_terms(documents)

        for assumption in documents.assumptions:
            terms = term_set(assumption.text)
            if not terms:
                continue
            negated = is_negated(assumption.text)

            for requirement in documents.requirements:
                if coverage(terms, body_terms[requirement.identifier]) < threshold:
                    continue
                line = self.matching_line(requirement, terms)
                if is_negated(line.text) == negated:
                    continue

                findings.append(self.create_finding(
                    location=requirement.source.location,
                    description=(
                        f"{requirement.identifier} contradicts the assumption "
                        f"'{assumption.text}' ({assumption.source.section})"
                    ),
                    evidence=[line, assumption.source],
                    suggested_fix=(
                        f"Confirm the assumption with stakeholders, then revise "
                        f"{requirement.identifier} or update the assumption"
                    ),
                    anchor=line,
                ))

        return findings


class ConstraintViolationRule(BaseRule):
    """
    Требование нарушает запрещающее ограничение ("No ...", "must not ...").

    Разрешающие ограничения ("Must run on ...") автоматически не проверяются.
    """

    kind = RuleKind.CONSTRAINT_VIOLATION

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        body_terms = self.requirement_terms(documents)
        unchecked = 0

        for constraint in documents.constraints:
            if not is_negated(constraint.text):
                unchecked += 1
                continue
            terms = term_set(constraint.text)
            if not terms:
                continue

            for requirement in documents.requirements:
                if not terms <= body_terms[requirement.identifier]:
                    continue
                line = self.matching_line(requirement, terms)
                if negates(line.text, terms):
                    continue

                findings.append(self.create_finding(
                    location=requirement.source.location,
                    description=(
                        f"{requirement.identifier} violates the constraint "
                        f"'{constraint.text}' ({constraint.source.section})"
                    ),
                    evidence=[line, constraint.source],
                    suggested_fix=(
                        f"Rewrite {requirement.identifier} so it stays within the constraint, "
                        f"or get the constraint formally relaxed"
                    ),
                    anchor=line,
                ))

        if unchecked:
            self.logger.debug(f"{unchecked} non-prohibitive constraints cannot be checked automatically")
        return findings
