"""
Incident API Endpoints.

Incidents are created by the daily job or by hand and only ever change
status; there is no delete.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import AmbulanceAccessGuard, is_staff
from ambureview.app.core.exceptions import InsufficientPermissionsError
from ambureview.app.db.session import get_db
from ambureview.app.models.incident_enums import IncidentType, IncidentSeverity, IncidentStatus
from ambureview.app.schemas.incident import (
    IncidentCreate, IncidentUpdate, IncidentResponse, IncidentStatsResponse
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.incident_service import IncidentService

router = APIRouter(prefix="/incidents", tags=["Incidents"])
ambulance_guard = AmbulanceAccessGuard()


def _enforce_incident_access(incident, current_user: dict):
    if is_staff(current_user):
        return
    if incident.ambulance_id is None:
        raise InsufficientPermissionsError("This incident is not linked to your ambulance")
    ambulance_guard.enforce(incident.ambulance_id, current_user)


@router.post("", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_data: IncidentCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Open an incident by hand.

    The responsible user defaults to the creator. An incident notification
    is dispatched on a best-effort basis.
    """
    ambulance_guard.enforce(incident_data.ambulance_id, current_user)
    incident = await IncidentService.create(db, incident_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.INCIDENT_CREATED, "incident", incident.id,
        {"ambulance_id": incident.ambulance_id, "type": incident.type.value, "severity": incident.severity.value}
    )
    return IncidentResponse.model_validate(incident)


@router.get("", response_model=List[IncidentResponse])
async def list_incidents(
    ambulance_id: Optional[int] = None,
    type: Optional[IncidentType] = None,
    severity: Optional[IncidentSeverity] = None,
    incident_status: Optional[IncidentStatus] = Query(None, alias="status"),
    responsible_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    assigned = ambulance_guard.filter_by_access(current_user)
    if assigned is not None:
        ambulance_id = assigned

    return await IncidentService.list(
        db, ambulance_id, type, severity, incident_status, responsible_id, date_from, date_to, skip, limit
    )


@router.get("/stats", response_model=IncidentStatsResponse)
async def incident_stats(
    ambulance_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    assigned = ambulance_guard.filter_by_access(current_user)
    return await IncidentService.stats(db, ambulance_id=assigned if assigned is not None else ambulance_id)


@router.get("/overdue", response_model=List[IncidentResponse])
async def overdue_incidents(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Open or in-progress incidents past their due date."""
    return await IncidentService.overdue(db, ambulance_id=ambulance_guard.filter_by_access(current_user))


@router.get("/{incident_id}", response_model=IncidentResponse)
async def get_incident(
    incident_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    incident = await IncidentService.get(db, incident_id)
    _enforce_incident_access(incident, current_user)
    return incident


@router.patch("/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: int,
    incident_data: IncidentUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update an incident.

    Status moves OPEN -> IN_PROGRESS -> RESOLVED -> CLOSED, and OPEN or
    IN_PROGRESS may close directly. Other transitions are refused with 409.
    """
    incident = await IncidentService.get(db, incident_id)
    _enforce_incident_access(incident, current_user)

    incident, changes = await IncidentService.update(db, incident_id, incident_data)

    await log_user_action(
        db, current_user, AuditAction.INCIDENT_UPDATED, "incident", incident.id, jsonable_encoder(changes)
    )
    return IncidentResponse.model_validate(incident)
