"""
Grievance Infrastructure Models
===============================

SQLAlchemy ORM model for the grievance key-value table.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.config import GrievanceCategory, GrievancePriority, GrievanceStatus
from src.grievances.domain import Grievance
from src.infrastructure.database import Base


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timezone-aware columns back naive
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class GrievanceModel(Base):
    """
    Database model for the Grievance entity.

    One row per grievance, keyed by grievance_id.
    """
    __tablename__ = "grievances"

    # Primary key
    grievance_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Human-facing identifier
    ticket_number: Mapped[str] = mapped_column(String(16), index=True, nullable=False)

    # Citizen
    citizen_name: Mapped[str] = mapped_column(String(255), nullable=False)
    citizen_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    citizen_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Complaint
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_remarks: Mapped[str] = mapped_column(Text, nullable=False, default="")
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_domain(cls, grievance: Grievance) -> "GrievanceModel":
        return cls(
            grievance_id=grievance.grievance_id,
            ticket_number=grievance.ticket_number,
            citizen_name=grievance.citizen_name,
            citizen_phone=grievance.citizen_phone,
            citizen_email=grievance.citizen_email,
            title=grievance.title,
            description=grievance.description,
            category=grievance.category.value,
            priority=grievance.priority.value,
            status=grievance.status.value,
            location=grievance.location,
            admin_remarks=grievance.admin_remarks,
            confidence=grievance.confidence,
            created_at=grievance.created_at,
            updated_at=grievance.updated_at,
        )

    def to_domain(self) -> Grievance:
        return Grievance(
            grievance_id=self.grievance_id,
            ticket_number=self.ticket_number,
            citizen_name=self.citizen_name,
            citizen_phone=self.citizen_phone,
            citizen_email=self.citizen_email,
            title=self.title,
            description=self.description,
            category=GrievanceCategory(self.category),
            priority=GrievancePriority(self.priority),
            status=GrievanceStatus(self.status),
            location=self.location,
            admin_remarks=self.admin_remarks,
            confidence=self.confidence,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )
