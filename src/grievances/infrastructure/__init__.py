"""
Grievance Infrastructure Layer
==============================

Infrastructure implementations for the grievance module.

Contains:
- Models: SQLAlchemy ORM model for the grievance table
- Repositories: in-memory, table and fallback stores
- External: classifier rules file loading and hot reload
"""

from src.grievances.infrastructure.models import GrievanceModel
from src.grievances.infrastructure.repositories import (
    InMemoryGrievanceStore,
    SQLAlchemyGrievanceStore,
    FallbackGrievanceStore,
    StorageSource,
    StoreResult,
)
from src.grievances.infrastructure.external import (
    ClassifierRulesManager,
    RulesFileHandler,
)

__all__ = [
    "GrievanceModel",
    "InMemoryGrievanceStore",
    "SQLAlchemyGrievanceStore",
    "FallbackGrievanceStore",
    "StorageSource",
    "StoreResult",
    "ClassifierRulesManager",
    "RulesFileHandler",
]
