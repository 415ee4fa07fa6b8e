"""
Grievance Classifier
====================

Rule-based tagging of complaint text with category, priority, location
and a confidence score.

Rules are evaluated in order and the first match wins, so precedence is
exactly the order of DEFAULT_RULES. An escalation pass then raises the
priority of anything that sounds urgent, regardless of category.
"""

import re
from typing import Callable, Optional

from src.config import GrievanceCategory, GrievancePriority, UNKNOWN_LOCATION
from src.grievances.domain.entities import ClassificationResult
from src.grievances.domain.value_objects import ClassificationRule, RuleSet


DEFAULT_RULES = (
    ClassificationRule(
        GrievanceCategory.WATER_SUPPLY,
        ("water", "pipe", "tap", "supply", "leak", "drainage"),
        GrievancePriority.HIGH, 0.85,
    ),
    ClassificationRule(
        GrievanceCategory.ROADS_TRANSPORT,
        ("road", "pothole", "street", "traffic", "footpath", "bridge"),
        GrievancePriority.MEDIUM, 0.82,
    ),
    ClassificationRule(
        GrievanceCategory.ELECTRICITY,
        ("electric", "power", "light", "transformer", "wire", "voltage"),
        GrievancePriority.HIGH, 0.88,
    ),
    ClassificationRule(
        GrievanceCategory.SANITATION,
        ("garbage", "waste", "sewer", "toilet", "clean", "dump"),
        GrievancePriority.MEDIUM, 0.80,
    ),
    ClassificationRule(
        GrievanceCategory.PUBLIC_SAFETY,
        ("crime", "theft", "police", "danger", "security", "accident"),
        GrievancePriority.HIGH, 0.90,
    ),
    ClassificationRule(
        GrievanceCategory.HEALTHCARE,
        ("hospital", "doctor", "health", "medicine", "clinic", "ambulance"),
        GrievancePriority.HIGH, 0.87,
    ),
    ClassificationRule(
        GrievanceCategory.EDUCATION,
        ("school", "college", "education", "teacher", "student", "exam"),
        GrievancePriority.MEDIUM, 0.83,
    ),
)

ESCALATION_KEYWORDS = ("urgent", "emergency", "immediate", "critical", "danger", "life")

DEFAULT_RULE_SET = RuleSet(rules=DEFAULT_RULES, escalation_keywords=ESCALATION_KEYWORDS)


# A place phrase is a short run of capitalized words or numbers ending in
# a locality suffix, optionally followed by a number ("Ward 7"). Runs are
# bounded so matching stays linear in the length of the text.
_WORD = r"(?:[A-Z][A-Za-z]*|\d+)"
_SUFFIX = r"(?i:road|street|colony|nagar|market|area|sector|block|ward)"
_PLACE = (
    rf"((?:{_WORD}\s+){{1,6}}{_SUFFIX}(?:\s+\d+)?"
    rf"|(?:{_WORD}\s+){{0,6}}(?=[A-Z])[A-Za-z]{{0,30}}?{_SUFFIX}(?:\s+\d+)?)\b"
)

LOCATION_PATTERNS = (
    re.compile(rf"\b(?i:near|at|in|from)\s+{_PLACE}"),
    re.compile(rf"\b{_PLACE}"),
)


def extract_location(text: str) -> str:
    """Return the first place phrase found in `text`, or 'Unknown'."""
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return UNKNOWN_LOCATION


class GrievanceClassifier:
    """
    Deterministic keyword classifier.

    The rule set is read through `rule_provider` on every call so a
    hot-reloaded rules file takes effect without rebuilding the service.
    """

    def __init__(self, rule_provider: Optional[Callable[[], RuleSet]] = None):
        self._rule_provider = rule_provider or (lambda: DEFAULT_RULE_SET)

    @classmethod
    def with_rules(cls, rule_set: RuleSet) -> "GrievanceClassifier":
        return cls(lambda: rule_set)

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_provider()

    def classify(self, text: Optional[str]) -> ClassificationResult:
        rule_set = self._rule_provider()
        text = text or ""
        lowered = text.lower()

        category = GrievanceCategory.GENERAL
        priority = GrievancePriority.MEDIUM
        confidence = rule_set.default_confidence

        for rule in rule_set.rules:
            if rule.matches(lowered):
                category = rule.category
                priority = rule.priority
                confidence = rule.confidence
                break

        if any(keyword in lowered for keyword in rule_set.escalation_keywords):
            priority = GrievancePriority.HIGH
            confidence = min(confidence + rule_set.escalation_boost, rule_set.confidence_cap)

        return ClassificationResult(
            category=category,
            priority=priority,
            location=extract_location(text),
            confidence=round(confidence, 4),
        )


_default_classifier = GrievanceClassifier()


def classify(text: Optional[str]) -> ClassificationResult:
    """Classify `text` with the built-in rules."""
    return _default_classifier.classify(text)
