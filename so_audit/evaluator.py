"""
Rule evaluator: runs the consistency rules in a fixed order and numbers the issues.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .config import AuditConfig
from .core.base_rule import BaseRule
from .core.models import RULE_ORDER, DocumentSet, Finding, Issue, RuleKind
from .rules import default_rules

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """
    Оценщик правил.

    Порядок выдачи: сначала по правилу (RULE_ORDER), затем по первому
    появлению в документах. IssueId назначаются последовательно.
    """

    def __init__(self, config: AuditConfig, rules: Optional[Sequence[BaseRule]] = None):
        self.config = config
        rules = list(rules) if rules is not None else default_rules(config)
        self.rules: List[BaseRule] = sorted(rules, key=lambda rule: RULE_ORDER.index(rule.kind))

    def evaluate(self, documents: DocumentSet) -> Tuple[Issue, ...]:
        """
        Применить правила к документам.

        Returns:
            Issues в порядке выдачи, с IssueId PREFIX-01, PREFIX-02, ...
        """
        rules = self.rules
        if documents.is_empty:
            # Nothing to cross-check; loader rejections are still reported
            logger.info("Objectives or requirements are empty, skipping cross-document rules")
            rules = [rule for rule in rules if rule.kind == RuleKind.UNPARSEABLE_REFERENCE]

        findings: List[Finding] = []
        for i, rule in enumerate(rules, 1):
            logger.debug(f"[{i}/{len(rules)}] Running {rule.name}...")
            findings.extend(rule.run(documents))

        issues = tuple(
            Issue.from_finding(self.config.format_issue_id(number), finding)
            for number, finding in enumerate(findings, 1)
        )
        logger.info(f"Evaluation complete: {len(issues)} issues")
        return issues
