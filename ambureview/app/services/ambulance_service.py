"""
Ambulance Service.

CRUD, check-in and workflow transitions for ambulances.
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, ConflictError
from ambureview.app.domain.workflow.state_machine import complete_stage, workflow_snapshot
from ambureview.app.models.ambulance import Ambulance
from ambureview.app.models.checklist import Checklist, ChecklistResponse
from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import ACTIVE_INCIDENT_STATUSES
from ambureview.app.models.inventory_enums import InventoryStatus
from ambureview.app.models.material import InventoryItem, InventoryLog
from ambureview.app.models.review import DailyVehicleCheck, MechanicalReview, CleaningLog
from ambureview.app.models.user import User
from ambureview.app.models.workflow_enums import WorkflowStage
from ambureview.app.schemas.ambulance import AmbulanceCreate, AmbulanceUpdate

logger = logging.getLogger(__name__)


class AmbulanceService:

    @staticmethod
    async def get(db: AsyncSession, ambulance_id: int) -> Ambulance:
        result = await db.execute(select(Ambulance).where(Ambulance.id == ambulance_id))
        ambulance = result.scalar_one_or_none()
        if not ambulance:
            raise ResourceNotFoundError("Ambulance", ambulance_id)
        return ambulance

    @staticmethod
    async def list(
        db: AsyncSession,
        ambulance_id: Optional[int] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Ambulance]:
        query = select(Ambulance).order_by(Ambulance.code)
        if ambulance_id is not None:
            query = query.where(Ambulance.id == ambulance_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                func.lower(Ambulance.code).like(pattern)
                | func.lower(Ambulance.plate).like(pattern)
                | func.lower(Ambulance.name).like(pattern)
            )
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def _ensure_unique(db: AsyncSession, code: Optional[str], plate: Optional[str], exclude_id: Optional[int] = None):
        if code is not None:
            query = select(Ambulance.id).where(Ambulance.code == code)
            if exclude_id is not None:
                query = query.where(Ambulance.id != exclude_id)
            if (await db.execute(query)).first():
                raise ConflictError("Ambulance code already exists", details={"field": "code", "value": code})

        if plate is not None:
            query = select(Ambulance.id).where(Ambulance.plate == plate)
            if exclude_id is not None:
                query = query.where(Ambulance.id != exclude_id)
            if (await db.execute(query)).first():
                raise ConflictError("Plate already registered", details={"field": "plate", "value": plate})

    @staticmethod
    async def create(db: AsyncSession, data: AmbulanceCreate) -> Ambulance:
        await AmbulanceService._ensure_unique(db, data.code, data.plate)

        ambulance = Ambulance(**data.model_dump())
        db.add(ambulance)
        await db.commit()
        await db.refresh(ambulance)
        logger.info("Ambulance %s created (id=%s)", ambulance.code, ambulance.id)
        return ambulance

    @staticmethod
    async def update(db: AsyncSession, ambulance_id: int, data: AmbulanceUpdate) -> tuple[Ambulance, dict]:
        ambulance = await AmbulanceService.get(db, ambulance_id)
        update_data = data.model_dump(exclude_unset=True)

        await AmbulanceService._ensure_unique(
            db, update_data.get("code"), update_data.get("plate"), exclude_id=ambulance_id
        )

        for field, value in update_data.items():
            setattr(ambulance, field, value)

        await db.commit()
        await db.refresh(ambulance)
        return ambulance, update_data

    @staticmethod
    async def delete(db: AsyncSession, ambulance_id: int) -> Ambulance:
        """
        Delete an ambulance together with its owned records.

        Incidents are kept for the audit trail and detached from the
        ambulance and its items; assigned users are unassigned.
        """
        ambulance = await AmbulanceService.get(db, ambulance_id)
        item_ids = select(InventoryItem.id).where(InventoryItem.ambulance_id == ambulance_id)

        await db.execute(
            update(Incident)
            .where(Incident.ambulance_id == ambulance_id)
            .values(ambulance_id=None, inventory_item_id=None)
        )
        await db.execute(
            update(Incident)
            .where(Incident.inventory_item_id.in_(item_ids))
            .values(inventory_item_id=None)
        )
        await db.execute(
            update(User)
            .where(User.assigned_ambulance_id == ambulance_id)
            .values(assigned_ambulance_id=None)
        )
        await db.execute(delete(InventoryLog).where(InventoryLog.inventory_item_id.in_(item_ids)))
        await db.execute(delete(InventoryItem).where(InventoryItem.ambulance_id == ambulance_id))
        await db.execute(delete(DailyVehicleCheck).where(DailyVehicleCheck.ambulance_id == ambulance_id))
        await db.execute(delete(MechanicalReview).where(MechanicalReview.ambulance_id == ambulance_id))
        await db.execute(delete(CleaningLog).where(CleaningLog.ambulance_id == ambulance_id))
        checklist_ids = select(Checklist.id).where(Checklist.ambulance_id == ambulance_id)
        await db.execute(delete(ChecklistResponse).where(ChecklistResponse.checklist_id.in_(checklist_ids)))
        await db.execute(delete(Checklist).where(Checklist.ambulance_id == ambulance_id))

        await db.delete(ambulance)
        await db.commit()
        logger.info("Ambulance %s deleted with its inventory and review history", ambulance_id)
        return ambulance

    @staticmethod
    async def check_in(db: AsyncSession, ambulance_id: int, kilometers: int, user_id: int) -> Ambulance:
        ambulance = await AmbulanceService.get(db, ambulance_id)
        ambulance.last_known_kilometers = kilometers
        ambulance.last_check_in_by_user_id = user_id
        ambulance.last_check_in_date = datetime.utcnow()
        await db.commit()
        await db.refresh(ambulance)
        return ambulance

    @staticmethod
    async def set_stage(db: AsyncSession, ambulance_id: int, stage: WorkflowStage, value: bool) -> Ambulance:
        """Apply a workflow transition (see domain.workflow.state_machine)."""
        ambulance = await AmbulanceService.get(db, ambulance_id)
        complete_stage(ambulance, stage, value, datetime.utcnow())
        await db.commit()
        await db.refresh(ambulance)
        logger.info("Ambulance %s stage %s set to %s", ambulance_id, stage.value, value)
        return ambulance

    @staticmethod
    async def status_summary(db: AsyncSession, ambulance_id: int) -> dict:
        ambulance = await AmbulanceService.get(db, ambulance_id)

        result = await db.execute(
            select(InventoryItem.status, func.count(InventoryItem.id))
            .where(InventoryItem.ambulance_id == ambulance_id)
            .group_by(InventoryItem.status)
        )
        counts = {row[0]: row[1] for row in result.all()}

        active = await db.execute(
            select(func.count(Incident.id)).where(
                Incident.ambulance_id == ambulance_id,
                Incident.status.in_(ACTIVE_INCIDENT_STATUSES)
            )
        )

        return {
            "ambulance_id": ambulance.id,
            "workflow": workflow_snapshot(ambulance),
            "expired_items": counts.get(InventoryStatus.EXPIRED, 0),
            "low_stock_items": counts.get(InventoryStatus.LOW, 0),
            "active_incidents": active.scalar() or 0,
        }
