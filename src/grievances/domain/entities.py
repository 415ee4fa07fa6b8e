"""
Grievance Domain Entities
=========================

Pure Python business objects for citizen grievances.

Entities are free of infrastructure concerns; persistence and
serialization live in the infrastructure and application layers.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict

from src.config import (
    GrievanceCategory, GrievancePriority, GrievanceStatus, UNKNOWN_LOCATION
)


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of running the rule-based classifier over complaint text.

    Always fully populated; unmatched text yields the General defaults.
    """
    category: GrievanceCategory = GrievanceCategory.GENERAL
    priority: GrievancePriority = GrievancePriority.MEDIUM
    location: str = UNKNOWN_LOCATION
    confidence: float = 0.7

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")


# Fields an admin may change after intake.
MUTABLE_FIELDS = frozenset({
    "status", "admin_remarks", "category", "priority", "location", "title"
})


@dataclass
class Grievance:
    """
    A citizen-submitted complaint.

    `grievance_id`, `ticket_number` and `created_at` never change once
    assigned. `updated_at` moves forward on every write.
    """

    # Identity
    grievance_id: str
    ticket_number: str

    # Citizen
    citizen_name: str
    citizen_phone: str

    # Complaint
    description: str
    category: GrievanceCategory
    priority: GrievancePriority
    status: GrievanceStatus

    # Timestamps
    created_at: datetime
    updated_at: datetime

    citizen_email: str = ""
    title: str = ""
    location: str = UNKNOWN_LOCATION
    admin_remarks: str = ""
    confidence: float = 1.0

    def __post_init__(self):
        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")

    def copy(self) -> "Grievance":
        return replace(self)

    def with_changes(self, changes: Dict[str, Any], updated_at: datetime) -> "Grievance":
        """Return a copy with `changes` applied and the update timestamp refreshed."""
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        return replace(self, **changes, updated_at=max(updated_at, self.created_at))

    def matches_search(self, query: str) -> bool:
        """Case-insensitive search over the fields shown in the admin table."""
        needle = query.lower()
        haystacks = (self.ticket_number, self.description, self.citizen_name, self.location)
        return any(needle in value.lower() for value in haystacks)
