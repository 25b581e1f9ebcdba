"""
Ambulance API Endpoints.

Fleet CRUD, odometer check-in and the per-ambulance review workflow.
Crew users (USER role) can only read and act on their assigned ambulance.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES, AmbulanceAccessGuard
from ambureview.app.db.session import get_db
from ambureview.app.domain.workflow.state_machine import parse_stage, workflow_snapshot
from ambureview.app.schemas.ambulance import (
    AmbulanceCreate, AmbulanceUpdate, AmbulanceResponse, CheckInRequest,
    StageUpdateRequest, WorkflowResponse, AmbulanceStatusResponse
)
from ambureview.app.services.ambulance_service import AmbulanceService
from ambureview.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/ambulances", tags=["Ambulances"])
ambulance_guard = AmbulanceAccessGuard()


@router.post("", response_model=AmbulanceResponse, status_code=status.HTTP_201_CREATED)
async def create_ambulance(
    ambulance_data: AmbulanceCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Register a new ambulance (admin/coordinator). Code and plate must be unique."""
    ambulance = await AmbulanceService.create(db, ambulance_data)

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_CREATED, "ambulance", ambulance.id,
        {"code": ambulance.code, "plate": ambulance.plate}
    )
    return AmbulanceResponse.model_validate(ambulance)


@router.get("", response_model=List[AmbulanceResponse])
async def list_ambulances(
    search: Optional[str] = Query(None, description="Code, plate or name substring"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the fleet. Crew users only see their assigned ambulance."""
    ambulance_id = ambulance_guard.filter_by_access(current_user)
    return await AmbulanceService.list(db, ambulance_id, search, skip, limit)


@router.get("/{ambulance_id}", response_model=AmbulanceResponse)
async def get_ambulance(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await AmbulanceService.get(db, ambulance_id)


@router.patch("/{ambulance_id}", response_model=AmbulanceResponse)
async def update_ambulance(
    ambulance_id: int,
    ambulance_data: AmbulanceUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    ambulance, changes = await AmbulanceService.update(db, ambulance_id, ambulance_data)

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_UPDATED, "ambulance", ambulance.id, jsonable_encoder(changes)
    )
    return AmbulanceResponse.model_validate(ambulance)


@router.delete("/{ambulance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ambulance(
    ambulance_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an ambulance with its reviews, checks, cleaning logs and inventory.

    Incidents are kept and detached.
    """
    ambulance = await AmbulanceService.delete(db, ambulance_id)

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_DELETED, "ambulance", ambulance_id,
        {"code": ambulance.code, "plate": ambulance.plate}
    )


@router.post("/{ambulance_id}/check-in", response_model=AmbulanceResponse)
async def check_in(
    ambulance_id: int,
    request: CheckInRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record the odometer reading at the start of a shift."""
    ambulance_guard.enforce(ambulance_id, current_user)
    ambulance = await AmbulanceService.check_in(db, ambulance_id, request.kilometers, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_CHECKED_IN, "ambulance", ambulance.id,
        {"kilometers": request.kilometers}
    )
    return AmbulanceResponse.model_validate(ambulance)


@router.get("/{ambulance_id}/workflow", response_model=WorkflowResponse)
async def get_workflow(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stage flags, last completion times and the screen currently unlocked."""
    ambulance_guard.enforce(ambulance_id, current_user)
    ambulance = await AmbulanceService.get(db, ambulance_id)
    return workflow_snapshot(ambulance)


@router.post("/{ambulance_id}/workflow/{stage}", response_model=AmbulanceResponse)
async def set_workflow_stage(
    ambulance_id: int,
    stage: str,
    request: StageUpdateRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Complete or invalidate a workflow stage.

    - `false` also clears every later stage.
    - `true` requires every earlier stage (409 otherwise).
    - `inventory=true` closes the cycle and resets all four stages.

    Unknown stage names are rejected with 400.
    """
    workflow_stage = parse_stage(stage)
    ambulance_guard.enforce(ambulance_id, current_user)
    ambulance = await AmbulanceService.set_stage(db, ambulance_id, workflow_stage, request.status)

    await log_user_action(
        db, current_user, AuditAction.WORKFLOW_STAGE_SET, "ambulance", ambulance.id,
        {"stage": workflow_stage.value, "status": request.status}
    )
    return AmbulanceResponse.model_validate(ambulance)


@router.get("/{ambulance_id}/status", response_model=AmbulanceStatusResponse)
async def get_status(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await AmbulanceService.status_summary(db, ambulance_id)
