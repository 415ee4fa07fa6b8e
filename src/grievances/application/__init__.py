"""
Grievance Application Layer
===========================

Application layer for the grievance module.

Contains:
- Services: intake, lifecycle and reporting orchestration
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and the store interface,
but not on concrete infrastructure implementations.
"""

from src.grievances.application.dto import (
    GrievanceCreateRequest,
    GrievanceUpdateRequest,
    AnalyzeRequest,
    GrievanceResponse,
    ClassificationResponse,
    StatsResponse,
    MessageResponse,
    ErrorEnvelope,
)
from src.grievances.application.services import (
    GrievanceService,
    IGrievanceStore,
)

__all__ = [
    # DTOs
    "GrievanceCreateRequest",
    "GrievanceUpdateRequest",
    "AnalyzeRequest",
    "GrievanceResponse",
    "ClassificationResponse",
    "StatsResponse",
    "MessageResponse",
    "ErrorEnvelope",
    # Services
    "GrievanceService",
    # Repository Interfaces
    "IGrievanceStore",
]
