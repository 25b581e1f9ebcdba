"""
FastAPI Application Entry Point.

This is the main application file for the AmbuReview Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from ambureview.app.core.config import settings
from ambureview.app.api.v1.router import router as api_v1_router
from ambureview.app.api.v1.endpoints import realtime
from ambureview.app.core.observability import ObservabilityMiddleware, configure_logging
from ambureview.app.core.redis_client import ping_redis, close_redis
from ambureview.app.db.session import engine, Base, AsyncSessionLocal
from ambureview.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from ambureview.app.services.config_store import config_store
from ambureview.app.services.job_runner import job_runner
from ambureview.app.services.scheduler import JobScheduler

# Import models to ensure they are registered with Base
from ambureview.app.models.user import User
from ambureview.app.models.audit_log import AuditLog
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.material import Material, InventoryItem, InventoryLog
from ambureview.app.models.review import DailyVehicleCheck, MechanicalReview, CleaningLog
from ambureview.app.models.checklist import ChecklistTemplate, ChecklistItem, Checklist, ChecklistResponse
from ambureview.app.models.ampulario import Space, AmpularioMaterial
from ambureview.app.models.usvb import UsvbKit, UsvbKitMaterial
from ambureview.app.models.incident import Incident
from ambureview.app.models.notification import Notification
from ambureview.app.models.config_entry import ConfigEntry

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables.
    2. Writes missing configuration defaults.
    3. Starts the job scheduler (unless disabled).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        await config_store.bootstrap(db)

    if not await ping_redis():
        logger.warning("Redis unreachable: token revocation checks will fail open")

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = JobScheduler(job_runner)
        scheduler.start()

    yield

    if scheduler:
        await scheduler.stop()
    await close_redis()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Ambulance fleet review, inventory and incident management API",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")

# Live ambulance channel (/ws/ambulances/{id})
app.include_router(realtime.router)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to AmbuReview Backend API",
        "docs": "/docs",
        "health": "/health",
    }
