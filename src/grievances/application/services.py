"""
Grievance Application Services
==============================

Application services orchestrate business logic and coordinate between
domain objects and the grievance store.

Following SOLID principles:
- Single Responsibility: the service owns intake and lifecycle rules only
- Dependency Inversion: depends on IGrievanceStore, not a concrete backend
"""

import uuid
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from src.config import (
    GrievanceCategory, GrievancePriority, GrievanceStatus,
    VALID_CATEGORIES, VALID_PRIORITIES, VALID_STATUSES,
)
from src.core import (
    ApplicationException,
    InvalidStatusTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from src.grievances.domain import (
    ClassificationResult,
    Grievance,
    GrievanceClassifier,
    MUTABLE_FIELDS,
    StatusTransitionPolicy,
    TicketNumberGenerator,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("citizen_name", "citizen_phone", "description")
TITLE_FROM_DESCRIPTION_LENGTH = 50

_ENUM_FIELDS = {
    "category": (GrievanceCategory, VALID_CATEGORIES),
    "priority": (GrievancePriority, VALID_PRIORITIES),
    "status": (GrievanceStatus, VALID_STATUSES),
}


# ========== Repository Interfaces (Dependency Inversion) ==========

class IGrievanceStore(ABC):
    """Interface for grievance persistence keyed by grievance ID."""

    @abstractmethod
    async def put(self, grievance: Grievance) -> None:
        """Insert or replace a grievance."""

    @abstractmethod
    async def get(self, grievance_id: str) -> Optional[Grievance]:
        """Get grievance by ID."""

    @abstractmethod
    async def scan(self) -> List[Grievance]:
        """Return every stored grievance, oldest first."""

    @abstractmethod
    async def delete(self, grievance_id: str) -> bool:
        """Remove a grievance; False when it did not exist."""

    @abstractmethod
    async def find_by_ticket_number(self, ticket_number: str) -> Optional[Grievance]:
        """Get grievance by its human-facing ticket number."""


# ========== Application Services ==========

class GrievanceService:
    """
    Service for grievance intake and administration.

    Runs the classifier at intake, issues collision-free ticket numbers and
    applies the status transition policy on update.
    """

    def __init__(
        self,
        store: IGrievanceStore,
        classifier: Optional[GrievanceClassifier] = None,
        ticket_generator: Optional[TicketNumberGenerator] = None,
        transition_policy: Optional[StatusTransitionPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        min_description_length: int = 20,
        ticket_number_max_attempts: int = 10,
    ):
        self._store = store
        self._classifier = classifier or GrievanceClassifier()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tickets = ticket_generator or TicketNumberGenerator(clock=self._clock)
        self._policy = transition_policy or StatusTransitionPolicy()
        self._min_description_length = min_description_length
        self._max_ticket_attempts = ticket_number_max_attempts

    @property
    def store(self) -> IGrievanceStore:
        return self._store

    # ---------- Create ----------

    async def create(self, fields: Mapping[str, Any]) -> Grievance:
        """
        Validate a citizen submission, classify it and persist it.

        Category, priority and location supplied by the citizen are kept;
        the classifier only fills in what is missing.

        Raises:
            ValidationException: required fields missing or description too short
        """
        self._validate_submission(fields)

        description = fields["description"]
        category = fields.get("category")
        priority = fields.get("priority")
        location = fields.get("location")

        confidence = 1.0
        if not (category and priority and location):
            result = self._classifier.classify(description)
            category = category or result.category
            priority = priority or result.priority
            location = location or result.location
            confidence = result.confidence
            logger.info(
                "Grievance classified",
                extra={
                    "category": result.category.value,
                    "priority": result.priority.value,
                    "location": result.location,
                    "confidence": result.confidence,
                }
            )

        now = self._clock()
        grievance = Grievance(
            grievance_id=f"grv_{uuid.uuid4()}",
            ticket_number=await self._issue_ticket_number(),
            citizen_name=fields["citizen_name"],
            citizen_phone=fields["citizen_phone"],
            citizen_email=fields.get("citizen_email") or "",
            title=fields.get("title") or description[:TITLE_FROM_DESCRIPTION_LENGTH],
            description=description,
            category=self._coerce("category", category),
            priority=self._coerce("priority", priority),
            status=StatusTransitionPolicy.INITIAL_STATUS,
            location=location,
            admin_remarks="",
            confidence=confidence,
            created_at=now,
            updated_at=now,
        )

        await self._store.put(grievance)

        logger.info(
            "Grievance created",
            extra={
                "grievance_id": grievance.grievance_id,
                "ticket_number": grievance.ticket_number,
                "category": grievance.category.value,
                "priority": grievance.priority.value,
            }
        )
        return grievance

    def _validate_submission(self, fields: Mapping[str, Any]) -> None:
        missing = [
            name for name in REQUIRED_FIELDS
            if not isinstance(fields.get(name), str) or not fields[name].strip()
        ]
        if missing:
            raise ValidationException(
                f"Missing required fields: {', '.join(missing)}",
                {"missing": missing}
            )

        description = fields["description"].strip()
        if len(description) < self._min_description_length:
            raise ValidationException(
                f"Description must be at least {self._min_description_length} characters",
                {"length": len(description), "minimum": self._min_description_length}
            )

    async def _issue_ticket_number(self) -> str:
        for attempt in range(1, self._max_ticket_attempts + 1):
            candidate = self._tickets.next_ticket_number()
            if await self._store.find_by_ticket_number(candidate) is None:
                return candidate
            logger.warning(
                "Ticket number collision",
                extra={"ticket_number": candidate, "attempt": attempt}
            )
        raise ApplicationException(
            f"Could not issue a unique ticket number after {self._max_ticket_attempts} attempts"
        )

    # ---------- Read ----------

    async def list(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        q: Optional[str] = None,
    ) -> List[Grievance]:
        """All grievances in insertion order, optionally filtered."""
        grievances = await self._store.scan()

        if status:
            grievances = [g for g in grievances if g.status.value == status]
        if priority:
            grievances = [g for g in grievances if g.priority.value == priority]
        if category:
            grievances = [g for g in grievances if g.category.value == category]
        if q:
            grievances = [g for g in grievances if g.matches_search(q)]

        return grievances

    async def get_by_id(self, grievance_id: str) -> Grievance:
        grievance = await self._store.get(grievance_id)
        if grievance is None:
            raise ResourceNotFoundException("Grievance", grievance_id)
        return grievance

    async def get_by_ticket_number(self, ticket_number: str) -> Grievance:
        normalized = (ticket_number or "").strip().upper()
        grievance = await self._store.find_by_ticket_number(normalized) if normalized else None
        if grievance is None:
            raise ResourceNotFoundException("Grievance", normalized or ticket_number)
        return grievance

    # ---------- Update ----------

    async def update(self, grievance_id: str, changes: Mapping[str, Any]) -> Grievance:
        """
        Merge admin changes over an existing grievance.

        The update timestamp is refreshed on every call, even when nothing
        else changes.

        Raises:
            ResourceNotFoundException: unknown grievance
            ValidationException: attempt to change an immutable field
            InvalidStatusTransitionException: strict workflow forbids the move
        """
        existing = await self.get_by_id(grievance_id)

        immutable = sorted(set(changes) - MUTABLE_FIELDS)
        if immutable:
            raise ValidationException(
                f"Fields cannot be updated: {', '.join(immutable)}",
                {"fields": immutable}
            )

        merged: Dict[str, Any] = {}
        for name, value in changes.items():
            if value is None:
                continue
            merged[name] = self._coerce(name, value) if name in _ENUM_FIELDS else value

        requested = merged.get("status")
        if requested is not None and not self._policy.can_transition(existing.status, requested):
            raise InvalidStatusTransitionException(
                grievance_id, existing.status.value, requested.value
            )

        updated = existing.with_changes(merged, updated_at=self._clock())
        await self._store.put(updated)

        logger.info(
            "Grievance updated",
            extra={
                "grievance_id": grievance_id,
                "fields": sorted(merged),
                "status": updated.status.value,
            }
        )
        return updated

    # ---------- Delete ----------

    async def delete(self, grievance_id: str) -> Dict[str, str]:
        await self.get_by_id(grievance_id)
        await self._store.delete(grievance_id)
        logger.info("Grievance deleted", extra={"grievance_id": grievance_id})
        return {"message": "Grievance deleted successfully"}

    # ---------- Supporting operations ----------

    def analyze(self, text: str) -> ClassificationResult:
        """Classify text without persisting anything."""
        return self._classifier.classify(text)

    async def stats(self) -> Dict[str, Any]:
        grievances = await self._store.scan()

        by_status = Counter(g.status.value for g in grievances)
        by_priority = Counter(g.priority.value for g in grievances)
        by_category = Counter(g.category.value for g in grievances)

        return {
            "total": len(grievances),
            "high_priority": by_priority.get(GrievancePriority.HIGH.value, 0),
            "by_status": {s: by_status.get(s, 0) for s in VALID_STATUSES},
            "by_priority": {p: by_priority.get(p, 0) for p in VALID_PRIORITIES},
            "by_category": {c: by_category.get(c, 0) for c in VALID_CATEGORIES},
        }

    @staticmethod
    def _coerce(name: str, value: Any):
        enum_type, allowed = _ENUM_FIELDS[name]
        if isinstance(value, enum_type):
            return value
        try:
            return enum_type(value)
        except ValueError:
            raise ValidationException(
                f"Invalid {name} '{value}'; expected one of {allowed}",
                {"field": name, "allowed": allowed}
            ) from None
