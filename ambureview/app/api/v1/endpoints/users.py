"""
User management API endpoints (admin and coordinator).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.models.enums import UserRole
from ambureview.app.schemas.auth import UserResponse
from ambureview.app.schemas.user import UserCreate, UserUpdate, AssignAmbulanceRequest
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Create an account. Coordinators cannot create admins."""
    user = await UserService.create(db, user_data, current_user["role"])

    await log_user_action(
        db, current_user, AuditAction.USER_CREATED, "user", user.id,
        {"username": user.username, "role": user.role.value, "assigned_ambulance_id": user.assigned_ambulance_id}
    )
    return UserResponse.model_validate(user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService.list(db, role, is_active, skip, limit)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService.get(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    user, changes = await UserService.update(db, user_id, user_data, current_user["role"])

    action = AuditAction.ROLE_CHANGED if "role" in changes else AuditAction.USER_UPDATED
    await log_user_action(db, current_user, action, "user", user.id, jsonable_encoder(changes))
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate a user and revoke all their tokens.

    Users are never hard-deleted.
    """
    user = await UserService.deactivate(db, user_id, current_user["user_id"], current_user["role"])

    await log_user_action(db, current_user, AuditAction.USER_DEACTIVATED, "user", user.id, {"username": user.username})
    return UserResponse.model_validate(user)


@router.post("/{user_id}/assign-ambulance", response_model=UserResponse)
async def assign_ambulance(
    user_id: int,
    request: AssignAmbulanceRequest,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService.assign_ambulance(db, user_id, request.ambulance_id)

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_ASSIGNED, "user", user.id, {"ambulance_id": request.ambulance_id}
    )
    return UserResponse.model_validate(user)


@router.post("/{user_id}/unassign-ambulance", response_model=UserResponse)
async def unassign_ambulance(
    user_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    previous = (await UserService.get(db, user_id)).assigned_ambulance_id
    user = await UserService.assign_ambulance(db, user_id, None)

    await log_user_action(
        db, current_user, AuditAction.AMBULANCE_UNASSIGNED, "user", user.id, {"ambulance_id": previous}
    )
    return UserResponse.model_validate(user)
