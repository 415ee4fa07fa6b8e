"""
Grievance Value Objects
=======================

Immutable value objects for the grievance domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from src.config import GrievanceCategory, GrievancePriority, GrievanceStatus


@dataclass(frozen=True)
class ClassificationRule:
    """
    One row of the ordered keyword table.

    A rule matches when any keyword is a substring of the lowercased text.
    """
    category: GrievanceCategory
    keywords: Tuple[str, ...]
    priority: GrievancePriority
    confidence: float

    def matches(self, lowered_text: str) -> bool:
        return any(keyword in lowered_text for keyword in self.keywords)


@dataclass(frozen=True)
class RuleSet:
    """Everything the classifier needs to tag a complaint."""
    rules: Tuple[ClassificationRule, ...]
    escalation_keywords: Tuple[str, ...]
    default_confidence: float = 0.7
    escalation_boost: float = 0.1
    confidence_cap: float = 0.95


class ClassificationRuleConfig(BaseModel):
    """A single category rule as written in the rules YAML file."""
    category: GrievanceCategory
    priority: GrievancePriority
    confidence: float = Field(ge=0.0, le=1.0)
    keywords: List[str] = Field(min_length=1)

    @field_validator("keywords")
    @classmethod
    def normalize_keywords(cls, v: List[str]) -> List[str]:
        """Keywords are matched against lowercased text."""
        cleaned = [k.strip().lower() for k in v if k.strip()]
        if not cleaned:
            raise ValueError("keywords must contain at least one non-blank entry")
        return cleaned


class ClassifierRulesConfig(BaseModel):
    """
    Classifier rules loaded from YAML.

    Rule order is significant: the first matching rule wins.
    """
    rules: List[ClassificationRuleConfig] = Field(min_length=1)
    escalation_keywords: List[str] = Field(
        default_factory=lambda: ["urgent", "emergency", "immediate", "critical", "danger", "life"]
    )
    default_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    escalation_boost: float = Field(default=0.1, ge=0.0, le=1.0)
    confidence_cap: float = Field(default=0.95, ge=0.0, le=1.0)

    @field_validator("escalation_keywords")
    @classmethod
    def normalize_escalation_keywords(cls, v: List[str]) -> List[str]:
        return [k.strip().lower() for k in v if k.strip()]

    def to_rule_set(self) -> RuleSet:
        return RuleSet(
            rules=tuple(
                ClassificationRule(
                    category=r.category,
                    keywords=tuple(r.keywords),
                    priority=r.priority,
                    confidence=r.confidence,
                )
                for r in self.rules
            ),
            escalation_keywords=tuple(self.escalation_keywords),
            default_confidence=self.default_confidence,
            escalation_boost=self.escalation_boost,
            confidence_cap=self.confidence_cap,
        )


class TicketNumberGenerator:
    """
    Produces human-facing ticket numbers of the form PPYYMMNNNN.

    The suffix is random, so uniqueness is left to the caller
    (GrievanceService retries against the store).
    """

    SUFFIX_RANGE = 10_000

    def __init__(
        self,
        prefix: str = "JS",
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None
    ):
        self._prefix = prefix
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.Random()

    def next_ticket_number(self) -> str:
        now = self._clock()
        suffix = self._rng.randrange(self.SUFFIX_RANGE)
        return f"{self._prefix}{now:%y%m}{suffix:04d}"


class StatusTransitionPolicy:
    """
    Decides which status changes an admin may make.

    The permissive policy allows any status to follow any other. The strict
    policy follows Pending -> In Progress -> Resolved, with Rejected reachable
    from both open states and Resolved/Rejected terminal.
    """

    STRICT_TRANSITIONS: Dict[GrievanceStatus, FrozenSet[GrievanceStatus]] = {
        GrievanceStatus.PENDING: frozenset({GrievanceStatus.IN_PROGRESS, GrievanceStatus.REJECTED}),
        GrievanceStatus.IN_PROGRESS: frozenset({GrievanceStatus.RESOLVED, GrievanceStatus.REJECTED}),
        GrievanceStatus.RESOLVED: frozenset(),
        GrievanceStatus.REJECTED: frozenset(),
    }

    INITIAL_STATUS = GrievanceStatus.PENDING

    def __init__(self, strict: bool = False):
        self._strict = strict

    def can_transition(self, current: GrievanceStatus, requested: GrievanceStatus) -> bool:
        if not self._strict or current == requested:
            return True
        return requested in self.STRICT_TRANSITIONS[current]

    def allowed_from(self, current: GrievanceStatus) -> FrozenSet[GrievanceStatus]:
        if not self._strict:
            return frozenset(GrievanceStatus)
        return self.STRICT_TRANSITIONS[current] | {current}
