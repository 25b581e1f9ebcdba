"""
Review Service.

Stores workflow stage records (daily check, mechanical review, cleaning)
and completes the matching stage in the same transaction. A record whose
prerequisite stages are pending is refused before anything is stored.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError
from ambureview.app.domain.workflow.state_machine import ensure_stage_unlocked, complete_stage
from ambureview.app.models.review import DailyVehicleCheck, MechanicalReview, CleaningLog
from ambureview.app.models.review_enums import ChecklistItemStatus
from ambureview.app.models.workflow_enums import WorkflowStage
from ambureview.app.schemas.review import DailyCheckCreate, MechanicalReviewCreate, CleaningLogCreate
from ambureview.app.services.ambulance_service import AmbulanceService
from ambureview.app.services.config_defaults import MECHANICAL_REVIEW_ITEMS_KEY
from ambureview.app.services.config_store import config_store

logger = logging.getLogger(__name__)


async def _record_stage(db: AsyncSession, ambulance_id: int, stage: WorkflowStage, record):
    ambulance = await AmbulanceService.get(db, ambulance_id)
    ensure_stage_unlocked(ambulance, stage)

    db.add(record)
    complete_stage(ambulance, stage, True, datetime.utcnow())
    await db.commit()
    await db.refresh(record)
    logger.info("Ambulance %s completed stage %s (record %s)", ambulance_id, stage.value, record.id)
    return record


async def _list(db: AsyncSession, model, ambulance_id: int, limit: int) -> list:
    await AmbulanceService.get(db, ambulance_id)
    result = await db.execute(
        select(model)
        .where(model.ambulance_id == ambulance_id)
        .order_by(desc(model.created_at), desc(model.id))
        .limit(limit)
    )
    return result.scalars().all()


async def _latest(db: AsyncSession, model, ambulance_id: int, resource: str):
    records = await _list(db, model, ambulance_id, limit=1)
    if not records:
        raise ResourceNotFoundError(resource)
    return records[0]


class ReviewService:

    @staticmethod
    async def submit_daily_check(db: AsyncSession, ambulance_id: int, data: DailyCheckCreate, user_id: int):
        record = DailyVehicleCheck(ambulance_id=ambulance_id, performed_by_id=user_id, **data.model_dump())
        return await _record_stage(db, ambulance_id, WorkflowStage.DAILY_CHECK, record)

    @staticmethod
    async def expand_template(db: AsyncSession) -> List[dict]:
        """Configured mechanical checklist, every item defaulted to OK."""
        template = await config_store.get(db, MECHANICAL_REVIEW_ITEMS_KEY) or []
        return [
            {
                "name": entry["name"],
                "category": entry.get("category"),
                "status": ChecklistItemStatus.OK.value,
                "notes": None,
            }
            for entry in template
        ]

    @staticmethod
    async def submit_mechanical_review(db: AsyncSession, ambulance_id: int, data: MechanicalReviewCreate, user_id: int):
        if data.items:
            items = [item.model_dump(mode="json") for item in data.items]
        else:
            items = await ReviewService.expand_template(db)

        record = MechanicalReview(
            ambulance_id=ambulance_id,
            performed_by_id=user_id,
            items=items,
            notes=data.notes,
        )
        return await _record_stage(db, ambulance_id, WorkflowStage.MECHANICAL, record)

    @staticmethod
    async def submit_cleaning_log(db: AsyncSession, ambulance_id: int, data: CleaningLogCreate, user_id: int):
        record = CleaningLog(
            ambulance_id=ambulance_id,
            performed_by_id=user_id,
            materials_used=data.materials_used,
            observations=data.observations,
        )
        return await _record_stage(db, ambulance_id, WorkflowStage.CLEANING, record)

    @staticmethod
    async def list_daily_checks(db: AsyncSession, ambulance_id: int, limit: int = 50):
        return await _list(db, DailyVehicleCheck, ambulance_id, limit)

    @staticmethod
    async def latest_daily_check(db: AsyncSession, ambulance_id: int):
        return await _latest(db, DailyVehicleCheck, ambulance_id, "Daily check")

    @staticmethod
    async def list_mechanical_reviews(db: AsyncSession, ambulance_id: int, limit: int = 50):
        return await _list(db, MechanicalReview, ambulance_id, limit)

    @staticmethod
    async def latest_mechanical_review(db: AsyncSession, ambulance_id: int):
        return await _latest(db, MechanicalReview, ambulance_id, "Mechanical review")

    @staticmethod
    async def list_cleaning_logs(db: AsyncSession, ambulance_id: int, limit: int = 50):
        return await _list(db, CleaningLog, ambulance_id, limit)

    @staticmethod
    async def latest_cleaning_log(db: AsyncSession, ambulance_id: int):
        return await _latest(db, CleaningLog, ambulance_id, "Cleaning log")
