"""
Configuration store API endpoints.

Reads are open to every authenticated user (the crew apps need the storage
locations and the review template); writes are admin/coordinator only.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.schemas.config import (
    StorageLocationsPayload, MechanicalReviewTemplatePayload, NotificationEmailPayload
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.config_defaults import (
    STORAGE_LOCATIONS_KEY, MECHANICAL_REVIEW_ITEMS_KEY, NOTIFICATION_EMAIL_KEY
)
from ambureview.app.services.config_store import config_store

router = APIRouter(prefix="/config", tags=["Configuration"])


async def _save(db: AsyncSession, current_user: dict, key: str, value):
    await config_store.set(db, key, value)
    await log_user_action(db, current_user, AuditAction.CONFIG_UPDATED, "config", None, {"key": key, "value": value})


@router.get("/storage-locations", response_model=StorageLocationsPayload)
async def get_storage_locations(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return {"locations": await config_store.get(db, STORAGE_LOCATIONS_KEY)}


@router.put("/storage-locations", response_model=StorageLocationsPayload)
async def set_storage_locations(
    payload: StorageLocationsPayload,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    await _save(db, current_user, STORAGE_LOCATIONS_KEY, payload.locations)
    return payload


@router.get("/mechanical-review-items", response_model=MechanicalReviewTemplatePayload)
async def get_mechanical_review_items(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return {"items": await config_store.get(db, MECHANICAL_REVIEW_ITEMS_KEY)}


@router.put("/mechanical-review-items", response_model=MechanicalReviewTemplatePayload)
async def set_mechanical_review_items(
    payload: MechanicalReviewTemplatePayload,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    await _save(db, current_user, MECHANICAL_REVIEW_ITEMS_KEY, [item.model_dump() for item in payload.items])
    return payload


@router.get("/notification-email", response_model=NotificationEmailPayload)
async def get_notification_email(
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return {"email": await config_store.get(db, NOTIFICATION_EMAIL_KEY)}


@router.put("/notification-email", response_model=NotificationEmailPayload)
async def set_notification_email(
    payload: NotificationEmailPayload,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Extra address copied on every alert email; null disables it."""
    await _save(db, current_user, NOTIFICATION_EMAIL_KEY, payload.email)
    return payload
