"""
Incident Service.

Manual incident creation, filtering and status transitions. Incidents are
never deleted.
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, InvalidInputError
from ambureview.app.domain.incidents.transitions import apply_transition
from ambureview.app.models.incident import Incident
from ambureview.app.models.incident_enums import (
    IncidentType, IncidentSeverity, IncidentStatus, ACTIVE_INCIDENT_STATUSES
)
from ambureview.app.models.material import InventoryItem
from ambureview.app.models.user import User
from ambureview.app.schemas.incident import IncidentCreate, IncidentUpdate
from ambureview.app.services.ambulance_service import AmbulanceService
from ambureview.app.services.notification_service import NotificationDispatcher, notification_dispatcher

logger = logging.getLogger(__name__)


class IncidentService:

    @staticmethod
    async def get(db: AsyncSession, incident_id: int) -> Incident:
        incident = await db.get(Incident, incident_id)
        if not incident:
            raise ResourceNotFoundError("Incident", incident_id)
        return incident

    @staticmethod
    async def _ensure_user(db: AsyncSession, user_id: int):
        if not await db.get(User, user_id):
            raise ResourceNotFoundError("User", user_id)

    @staticmethod
    async def create(
        db: AsyncSession,
        data: IncidentCreate,
        creator_id: int,
        dispatcher: NotificationDispatcher = notification_dispatcher
    ) -> Incident:
        await AmbulanceService.get(db, data.ambulance_id)

        if data.inventory_item_id is not None:
            item = await db.get(InventoryItem, data.inventory_item_id)
            if not item:
                raise ResourceNotFoundError("Inventory item", data.inventory_item_id)
            if item.ambulance_id != data.ambulance_id:
                raise InvalidInputError(
                    "Inventory item does not belong to this ambulance",
                    details={"inventory_item_id": item.id, "ambulance_id": data.ambulance_id}
                )

        responsible_id = data.responsible_id if data.responsible_id is not None else creator_id
        if data.responsible_id is not None:
            await IncidentService._ensure_user(db, responsible_id)

        incident = Incident(
            **data.model_dump(exclude={"responsible_id"}),
            responsible_id=responsible_id,
            created_by_id=creator_id,
        )
        db.add(incident)
        await db.commit()
        await db.refresh(incident)
        logger.info("Incident %s opened for ambulance %s by user %s", incident.id, incident.ambulance_id, creator_id)

        try:
            await dispatcher.send_incident_alert(db, incident)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Notification for incident %s failed", incident.id)
            incident = await db.get(Incident, incident.id, populate_existing=True)

        return incident

    @staticmethod
    async def list(
        db: AsyncSession,
        ambulance_id: Optional[int] = None,
        type: Optional[IncidentType] = None,
        severity: Optional[IncidentSeverity] = None,
        status: Optional[IncidentStatus] = None,
        responsible_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Incident]:
        query = select(Incident).order_by(desc(Incident.created_at), desc(Incident.id))
        if ambulance_id is not None:
            query = query.where(Incident.ambulance_id == ambulance_id)
        if type:
            query = query.where(Incident.type == type)
        if severity:
            query = query.where(Incident.severity == severity)
        if status:
            query = query.where(Incident.status == status)
        if responsible_id is not None:
            query = query.where(Incident.responsible_id == responsible_id)
        if date_from:
            query = query.where(Incident.created_at >= date_from)
        if date_to:
            query = query.where(Incident.created_at <= date_to)
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def update(db: AsyncSession, incident_id: int, data: IncidentUpdate) -> tuple[Incident, dict]:
        incident = await IncidentService.get(db, incident_id)
        update_data = data.model_dump(exclude_unset=True)

        new_status = update_data.pop("status", None)
        if update_data.get("responsible_id") is not None:
            await IncidentService._ensure_user(db, update_data["responsible_id"])

        for field, value in update_data.items():
            setattr(incident, field, value)
        if new_status is not None:
            apply_transition(incident, new_status, datetime.utcnow())
            update_data["status"] = new_status

        await db.commit()
        await db.refresh(incident)
        return incident, update_data

    @staticmethod
    async def overdue(db: AsyncSession, now: Optional[datetime] = None, ambulance_id: Optional[int] = None) -> List[Incident]:
        query = select(Incident).where(
            Incident.due_date.is_not(None),
            Incident.due_date < (now or datetime.utcnow()),
            Incident.status.in_(ACTIVE_INCIDENT_STATUSES)
        ).order_by(Incident.due_date)
        if ambulance_id is not None:
            query = query.where(Incident.ambulance_id == ambulance_id)
        result = await db.execute(query)
        return result.scalars().all()

    @staticmethod
    async def stats(db: AsyncSession, now: Optional[datetime] = None, ambulance_id: Optional[int] = None) -> dict:
        scope = []
        if ambulance_id is not None:
            scope.append(Incident.ambulance_id == ambulance_id)

        async def _grouped(column, enum_cls):
            counts = {member.value: 0 for member in enum_cls}
            rows = await db.execute(select(column, func.count(Incident.id)).where(*scope).group_by(column))
            for value, count in rows.all():
                counts[value.value] = count
            return counts

        by_status = await _grouped(Incident.status, IncidentStatus)
        by_type = await _grouped(Incident.type, IncidentType)
        by_severity = await _grouped(Incident.severity, IncidentSeverity)
        overdue = await IncidentService.overdue(db, now, ambulance_id)

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_type": by_type,
            "by_severity": by_severity,
            "overdue": len(overdue),
        }
