"""
Citizen Grievance Service - Main Application
============================================

Grievance intake with rule-based classification, ticket tracking and an
admin status workflow.

Modules:
- Grievances: intake, tracking, admin updates and dashboard statistics

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and the classifier
- Infrastructure: Grievance stores, database, classifier rules file
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configuration and Core
from src.config import Settings, settings
from src.core import ApplicationException

# Infrastructure
from src.infrastructure.database import (
    init_database, close_database, create_tables, get_session_maker
)

# Grievance module
from src.grievances.application import GrievanceService, IGrievanceStore
from src.grievances.domain import (
    GrievanceClassifier, StatusTransitionPolicy, TicketNumberGenerator
)
from src.grievances.infrastructure import (
    ClassifierRulesManager,
    FallbackGrievanceStore,
    InMemoryGrievanceStore,
    SQLAlchemyGrievanceStore,
)
from src.grievances.interfaces import grievance_router

# Shared API
from src.shared.api.middleware import (
    CorrelationIDMiddleware,
    ErrorBoundaryMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    PreflightMiddleware,
    application_exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)

# Logging
from src.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


async def build_store(app_settings: Settings) -> IGrievanceStore:
    """
    Select the grievance store for the configured backend.

    The table backend is always wrapped in the in-memory fallback, so an
    unreachable database degrades the service instead of stopping it.
    """
    if app_settings.storage_backend == "memory":
        logger.info("Using in-memory grievance store")
        return InMemoryGrievanceStore()

    logger.info("Initializing grievance table")
    init_database(app_settings.database_url)
    try:
        await create_tables()
    except Exception as e:
        logger.warning(f"Grievance table not available - running in degraded mode: {e}")

    return FallbackGrievanceStore(
        SQLAlchemyGrievanceStore(get_session_maker()),
        InMemoryGrievanceStore(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Load classifier rules (an invalid rules file aborts startup) and watch the file
    3. Build the grievance store
    4. Build the grievance service

    SHUTDOWN:
    1. Stop the rules file watcher
    2. Close database connections

    Settings placed on `app.state.settings` before startup take precedence
    over the environment.
    """
    app_settings: Settings = getattr(app.state, "settings", None) or settings

    # === STARTUP ===
    setup_logging(app_settings.log_level, app_settings.environment)
    logger.info("Starting Grievance Service", extra={
        "version": app_settings.app_version,
        "environment": app_settings.environment,
        "storage_backend": app_settings.storage_backend,
    })

    logger.info("Loading classifier rules")
    rules_manager = ClassifierRulesManager()
    rules_manager.load(app_settings.classifier_rules_path)
    rules_manager.start_watching()

    store = await build_store(app_settings)

    grievance_service = GrievanceService(
        store,
        classifier=GrievanceClassifier(rules_manager.get_rule_set),
        ticket_generator=TicketNumberGenerator(prefix=app_settings.ticket_prefix),
        transition_policy=StatusTransitionPolicy(strict=app_settings.enforce_status_workflow),
        min_description_length=app_settings.min_description_length,
        ticket_number_max_attempts=app_settings.ticket_number_max_attempts,
    )

    # Store services in app state for dependency injection
    app.state.settings = app_settings
    app.state.rules_manager = rules_manager
    app.state.store = store
    app.state.grievance_service = grievance_service

    logger.info("Grievance Service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Grievance Service")

    rules_manager.stop_watching()
    await close_database()

    app.state.grievance_service = None

    logger.info("Grievance Service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Citizen Grievance API",
    description="""
    ## Citizen Grievance Intake and Tracking

    Citizens submit grievances; the service classifies each one by department,
    priority and location, issues a ticket number and lets administrators move
    it through its lifecycle.

    ---

    ### Grievances

    **Endpoints** (also served under `/api`):
    - `POST /grievances` - Submit a grievance
    - `GET /grievances` - List grievances (filter by status, priority, category, `q`)
    - `GET /grievances/stats` - Dashboard statistics
    - `GET /grievances/track/{ticketNumber}` - Track by ticket number
    - `POST /grievances/analyze` - Preview classification
    - `GET|PUT|DELETE /grievances/{id}` - Read, update status, delete

    **Categories:** Water Supply, Roads & Transport, Electricity, Sanitation,
    Public Safety, Healthcare, Education, General

    **Lifecycle:** Pending -> In Progress -> Resolved / Rejected

    ---

    ### Responses

    Success: `{"statusCode": 200, "data": ...}` - Error: `{"error": "..."}`

    ---
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === Middleware (last added runs first) ===
app.add_middleware(ErrorBoundaryMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PreflightMiddleware)

# === Exception Handlers ===
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)

# === Include Module Routers ===
app.include_router(grievance_router)
app.include_router(grievance_router, prefix="/api")


# === Health Check Endpoint ===

HEALTH_EXAMPLE = {
    "status": "ok",
    "message": "Server is running",
    "version": "1.0.0",
    "environment": "development",
    "checks": {
        "storage": "table",
        "fallback_events": 0,
        "classifier_rules": 7,
        "rules_watcher": "stopped"
    }
}


@app.get("/health", tags=["Health"], responses={
    200: {"description": "Service is running", "content": {"application/json": {"example": HEALTH_EXAMPLE}}}
})
@app.get("/api/health", tags=["Health"], include_in_schema=False)
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports the storage backend, how many store operations were served by
    the in-memory fallback, and the active classifier rules.
    """
    state = request.app.state
    store = getattr(state, "store", None)
    rules_manager = getattr(state, "rules_manager", None)
    app_settings = getattr(state, "settings", None) or settings

    checks = {
        "storage": app_settings.storage_backend,
        "fallback_events": getattr(store, "fallback_events", 0),
        "classifier_rules": 0,
        "rules_watcher": "stopped",
    }
    if rules_manager is not None:
        checks["classifier_rules"] = len(rules_manager.rule_set.rules)
        checks["rules_watcher"] = "running" if rules_manager.is_watching else "stopped"

    return {
        "status": "ok",
        "message": "Server is running",
        "version": app_settings.app_version,
        "environment": app_settings.environment,
        "checks": checks
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
