"""
Security classifier.

Triages a submission into BLOCK, WARN or ALLOW using the rule tables in
pattern_hub.moderation.rules. The classifier holds no state between calls.
"""

import logging
from typing import List, Optional, Sequence

from pattern_hub.moderation import rules
from pattern_hub.moderation.results import INSTRUCTIONAL_TYPES, SecurityVerdict, type_name

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100


def build_full_text(title: str, description: str, content: str) -> str:
    """Case-folded haystack the full-text rules run against."""
    return f"{title} {description} {content}".lower()


class SecurityClassifier:
    """Regex policy engine over the block and warn rule tables."""

    def __init__(
        self,
        block_order: Sequence[str] = rules.BLOCK_ORDER,
        warn_checks: Optional[Sequence[rules.RuleCheck]] = None,
    ):
        self.block_order = tuple(block_order)
        self.warn_checks = list(rules.WARN_CHECKS if warn_checks is None else warn_checks)

    def classify(self, content: str, content_type: str, title: str = "", description: str = "") -> SecurityVerdict:
        content_type = type_name(content_type)
        full_text = build_full_text(title, description, content)

        category = self.find_block_category(full_text, content)
        if category:
            reason = rules.BLOCK_MESSAGES.get(category, rules.DEFAULT_BLOCK_MESSAGE)
            logger.warning(
                "Content blocked",
                extra={"category": category, "type": content_type, "preview": content[:PREVIEW_LENGTH]},
            )
            return SecurityVerdict.block(reason, category)

        labels = self.collect_warnings(full_text, content, content_type)
        if labels:
            if content_type in INSTRUCTIONAL_TYPES:
                prefix, category = rules.INSTRUCTION_WARNING_PREFIX, "instruction_warning"
            else:
                prefix, category = rules.SECURITY_WARNING_PREFIX, "security_warning"
            logger.info("Content flagged", extra={"labels": labels, "type": content_type})
            return SecurityVerdict.warn(prefix + ", ".join(labels), category)

        return SecurityVerdict.allow()

    def find_block_category(self, full_text: str, content: str) -> Optional[str]:
        """First block category with a rule matching either text, in table order."""
        for category in self.block_order:
            for rule in rules.BLOCK_RULES[category]:
                if rule.matches(full_text) or rule.matches(content):
                    return category
        return None

    def collect_warnings(self, full_text: str, content: str, content_type: str) -> List[str]:
        """One label per matching warn check, in table order."""
        content_type = type_name(content_type)
        protective = rules.is_protective(full_text)
        labels: List[str] = []
        for check in self.warn_checks:
            if not check.applies_to(content_type):
                continue
            if check.honors_protective and protective:
                continue
            if check.label in labels:
                continue
            if check.matches(full_text, content):
                labels.append(check.label)
        return labels


_default_classifier = SecurityClassifier()


def classify_content(content: str, content_type: str, title: str = "", description: str = "") -> SecurityVerdict:
    """Classify with the default rule tables."""
    return _default_classifier.classify(content, content_type, title, description)
