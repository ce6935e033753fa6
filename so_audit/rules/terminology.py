"""
Terminology rule: one concept, several names, no glossary entry.
"""

from typing import Dict, FrozenSet, List, Sequence

from ..core.base_rule import BaseRule
from ..core.models import DocumentSet, Finding, GlossaryEntry, RuleKind, SourceLine
from ..core.text import term_set


class TerminologyMismatchRule(BaseRule):
    """
    Один и тот же концепт назван по-разному в разных местах документов.

    Группы синонимов задаются в AuditConfig.synonym_groups. Расхождение
    снимается записью глоссария, которая упоминает все используемые термины.
    """

    kind = RuleKind.TERMINOLOGY_MISMATCH

    def _check(self, documents: DocumentSet) -> List[Finding]:
        findings = []
        lines = sorted(documents.lines, key=lambda l: l.sort_key)
        line_terms = [(line, term_set(line.text)) for line in lines]

        for group in self.config.synonym_groups:
            first_use = self._first_use(group, line_terms)
            if len(first_use) < 2:
                continue

            used = sorted(first_use, key=lambda term: first_use[term].sort_key)
            if self._reconciled(used, documents.glossary):
                continue

            primary, others = used[0], used[1:]
            anchor = first_use[others[0]]
            names = ", ".join(f"'{term}'" for term in used)
            findings.append(self.create_finding(
                location=anchor.location,
                description=f"The same concept is named {names} with no glossary entry reconciling them",
                evidence=[first_use[term] for term in used],
                suggested_fix=(
                    f"Use '{primary}' consistently, or add a glossary entry for '{primary}' "
                    f"that names {', '.join(repr(t) for t in others)} as synonyms"
                ),
                anchor=anchor,
            ))

        return findings

    @staticmethod
    def _first_use(
        group: Sequence[str],
        line_terms: Sequence[tuple],
    ) -> Dict[str, SourceLine]:
        """Первая строка, где встречается каждый термин группы."""
        first_use: Dict[str, SourceLine] = {}
        wanted: Dict[str, FrozenSet[str]] = {term: term_set(term) for term in group}
        for line, found in line_terms:
            for term, terms in wanted.items():
                if term not in first_use and terms and terms <= found:
                    first_use[term] = line
        return first_use

    @staticmethod
    def _reconciled(used: Sequence[str], glossary: Sequence[GlossaryEntry]) -> bool:
        needed = frozenset().union(*(term_set(term) for term in used))
        return any(needed <= term_set(entry.text) for entry in glossary)
