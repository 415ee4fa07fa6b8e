"""
Grievance Controllers (API Routes)
==================================

FastAPI routes for grievance intake and administration.

Controllers are thin - they delegate to GrievanceService and wrap results
in the `{statusCode, data}` envelope.
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from src.core import ValidationException
from src.grievances.application import (
    AnalyzeRequest,
    ClassificationResponse,
    ErrorEnvelope,
    GrievanceCreateRequest,
    GrievanceResponse,
    GrievanceService,
    GrievanceUpdateRequest,
    MessageResponse,
    StatsResponse,
)
from src.grievances.application.dto import CategoryStr, PriorityStr, StatusStr
from src.shared.api.responses import success_response
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(
    prefix="/grievances",
    tags=["Grievances"],
    responses={
        400: {"model": ErrorEnvelope, "description": "Invalid request"},
        404: {"model": ErrorEnvelope, "description": "Grievance not found"},
        500: {"model": ErrorEnvelope, "description": "Internal error"},
    },
)


# ========== Example payloads for Swagger ==========

CREATE_REQUEST_EXAMPLE = {
    "citizenName": "Rajesh Kumar",
    "citizenPhone": "9876543210",
    "citizenEmail": "rajesh@example.com",
    "description": "Severe water leakage in main pipeline near Sector 15 Market since 3 days."
}

GRIEVANCE_RESPONSE_EXAMPLE = {
    "statusCode": 201,
    "data": {
        "grievanceId": "grv_6f1c1f0e-2d7b-4c59-9a53-0c6f5f2b1a11",
        "ticketNumber": "JS25010427",
        "citizenName": "Rajesh Kumar",
        "citizenPhone": "9876543210",
        "citizenEmail": "rajesh@example.com",
        "title": "Severe water leakage in main pipeline near Sector",
        "description": "Severe water leakage in main pipeline near Sector 15 Market since 3 days.",
        "category": "Water Supply",
        "priority": "High",
        "status": "Pending",
        "location": "Sector 15 Market",
        "adminRemarks": "",
        "confidence": 0.85,
        "createdAt": "2025-01-15T10:00:00Z",
        "updatedAt": "2025-01-15T10:00:00Z"
    }
}


# ========== Dependencies ==========

def get_grievance_service(request: Request) -> GrievanceService:
    """Get the grievance service built during application startup."""
    service = getattr(request.app.state, "grievance_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Grievance service not initialized"
        )
    return service


# ========== Route Handlers ==========

@router.post(
    "",
    summary="Submit a grievance",
    description="""
    Submit a citizen grievance.

    `citizenName`, `citizenPhone` and `description` (20+ characters) are
    required. Category, priority and location are derived from the
    description when not supplied. New grievances start as `Pending`.
    """,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"content": {"application/json": {"example": GRIEVANCE_RESPONSE_EXAMPLE}}},
        400: {"model": ErrorEnvelope, "description": "Missing required fields or description too short"},
    },
    openapi_extra={"requestBody": {"content": {"application/json": {"example": CREATE_REQUEST_EXAMPLE}}}},
)
async def create_grievance(
    request: Request,
    payload: GrievanceCreateRequest,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    start_time = time.perf_counter()
    grievance = await service.create(payload.to_fields())

    logger.info(
        "Grievance submitted",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", "unknown"),
            "grievance_id": grievance.grievance_id,
            "ticket_number": grievance.ticket_number,
            "processing_time_ms": int((time.perf_counter() - start_time) * 1000)
        }
    )
    return success_response(201, GrievanceResponse.from_domain(grievance))


@router.get("", summary="List grievances")
async def list_grievances(
    status_filter: Optional[StatusStr] = Query(None, alias="status"),
    priority: Optional[PriorityStr] = Query(None),
    category: Optional[CategoryStr] = Query(None),
    q: Optional[str] = Query(None, description="Search ticket number, description, name or location"),
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    grievances = await service.list(status=status_filter, priority=priority, category=category, q=q)
    return success_response(200, [GrievanceResponse.from_domain(g) for g in grievances])


@router.get("/stats", summary="Dashboard statistics")
async def grievance_stats(
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    stats = await service.stats()
    return success_response(200, StatsResponse(**stats))


@router.get("/track/{ticket_number}", summary="Track a grievance by ticket number")
async def track_grievance(
    ticket_number: str,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    grievance = await service.get_by_ticket_number(ticket_number)
    return success_response(200, GrievanceResponse.from_domain(grievance))


@router.post("/analyze", summary="Preview classification without submitting")
async def analyze_text(
    payload: AnalyzeRequest,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    result = service.analyze(payload.text)
    return success_response(200, ClassificationResponse.from_domain(result))


@router.get("/{grievance_id}", summary="Get a grievance")
async def get_grievance(
    grievance_id: str,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    grievance = await service.get_by_id(grievance_id)
    return success_response(200, GrievanceResponse.from_domain(grievance))


@router.put(
    "/{grievance_id}",
    summary="Update grievance status and remarks",
    description="""
    Admin update. `status` is required; `adminRemarks`, `category`,
    `priority`, `location` and `title` may be corrected at the same time.
    """,
)
async def update_grievance(
    grievance_id: str,
    payload: GrievanceUpdateRequest,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    if payload.status is None:
        raise ValidationException("Status is required")

    grievance = await service.update(grievance_id, payload.to_fields())
    return success_response(200, GrievanceResponse.from_domain(grievance))


@router.delete("/{grievance_id}", summary="Delete a grievance")
async def delete_grievance(
    grievance_id: str,
    service: GrievanceService = Depends(get_grievance_service)
) -> JSONResponse:
    result = await service.delete(grievance_id)
    return success_response(200, MessageResponse(**result))


# Export router for inclusion in main app
grievance_router = router
