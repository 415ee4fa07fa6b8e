"""
Grievance Application DTOs
==========================

Data Transfer Objects for the grievance API layer.

Pydantic models for request/response validation. JSON keys are camelCase
to match the citizen and admin front-ends; Python attributes stay
snake_case.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.grievances.domain import ClassificationResult, Grievance


# ========== Type Aliases for Literals ==========
CategoryStr = Literal[
    "Water Supply", "Roads & Transport", "Electricity", "Sanitation",
    "Public Safety", "Healthcare", "Education", "General"
]
PriorityStr = Literal["High", "Medium", "Low"]
StatusStr = Literal["Pending", "In Progress", "Resolved", "Rejected"]


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_fields(self) -> Dict[str, Any]:
        """Snake-case dict of the fields the client actually sent."""
        return self.model_dump(exclude_none=True)


# ========== Request DTOs ==========

class GrievanceCreateRequest(CamelModel):
    """
    Citizen submission.

    Presence and length of required fields is checked by the service so
    that missing fields produce a single readable 400 message.
    """
    citizen_name: Optional[str] = Field(None, description="Citizen's full name")
    citizen_phone: Optional[str] = Field(None, description="Contact phone number")
    description: Optional[str] = Field(None, description="Complaint text, at least 20 characters")
    citizen_email: Optional[str] = Field(None, description="Contact email")
    title: Optional[str] = Field(None, description="Short title; defaults to the start of the description")
    category: Optional[CategoryStr] = Field(None, description="Explicit category; classified when omitted")
    priority: Optional[PriorityStr] = Field(None, description="Explicit priority; classified when omitted")
    location: Optional[str] = Field(None, description="Explicit location; extracted when omitted")


class GrievanceUpdateRequest(CamelModel):
    """Admin update. `status` is required by the API; other keys are rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    status: Optional[StatusStr] = None
    admin_remarks: Optional[str] = None
    category: Optional[CategoryStr] = None
    priority: Optional[PriorityStr] = None
    location: Optional[str] = None
    title: Optional[str] = None


class AnalyzeRequest(CamelModel):
    """Free text to classify without creating a grievance."""
    text: str = Field(..., description="Complaint text")


# ========== Response DTOs ==========

class GrievanceResponse(CamelModel):
    """Full grievance record."""
    grievance_id: str
    ticket_number: str
    citizen_name: str
    citizen_phone: str
    citizen_email: str
    title: str
    description: str
    category: CategoryStr
    priority: PriorityStr
    status: StatusStr
    location: str
    admin_remarks: str
    confidence: float
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, grievance: Grievance) -> "GrievanceResponse":
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


class ClassificationResponse(CamelModel):
    """Classifier output for the live preview."""
    category: CategoryStr
    priority: PriorityStr
    location: str
    confidence: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_domain(cls, result: ClassificationResult) -> "ClassificationResponse":
        return cls(
            category=result.category.value,
            priority=result.priority.value,
            location=result.location,
            confidence=result.confidence,
        )


class StatsResponse(CamelModel):
    """Admin dashboard KPIs."""
    total: int
    high_priority: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: Dict[str, int]


class MessageResponse(CamelModel):
    message: str


# ========== Error Body ==========

class ErrorEnvelope(BaseModel):
    """`{error}` body returned by every failed request."""
    error: str
