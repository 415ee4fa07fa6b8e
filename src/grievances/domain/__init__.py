"""
Grievance Domain Layer
======================

Domain layer for the grievance module.

Contains:
- Entities: Grievance, ClassificationResult
- Value Objects: ClassificationRule, RuleSet, TicketNumberGenerator,
  StatusTransitionPolicy
- Classifier: ordered keyword rules and location extraction

This layer is framework-agnostic and contains pure business logic.
"""

from src.grievances.domain.entities import (
    Grievance,
    ClassificationResult,
    MUTABLE_FIELDS,
)
from src.grievances.domain.value_objects import (
    ClassificationRule,
    RuleSet,
    ClassificationRuleConfig,
    ClassifierRulesConfig,
    TicketNumberGenerator,
    StatusTransitionPolicy,
)
from src.grievances.domain.classifier import (
    GrievanceClassifier,
    DEFAULT_RULES,
    DEFAULT_RULE_SET,
    ESCALATION_KEYWORDS,
    classify,
    extract_location,
)

__all__ = [
    "Grievance",
    "ClassificationResult",
    "MUTABLE_FIELDS",
    "ClassificationRule",
    "RuleSet",
    "ClassificationRuleConfig",
    "ClassifierRulesConfig",
    "TicketNumberGenerator",
    "StatusTransitionPolicy",
    "GrievanceClassifier",
    "DEFAULT_RULES",
    "DEFAULT_RULE_SET",
    "ESCALATION_KEYWORDS",
    "classify",
    "extract_location",
]
