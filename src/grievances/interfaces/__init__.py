"""
Grievance Interfaces Layer
==========================

Interface adapters (controllers) for the grievance module.

Contains:
- Controllers: FastAPI route handlers
"""

from src.grievances.interfaces.controllers import grievance_router, get_grievance_service

__all__ = ["grievance_router", "get_grievance_service"]
