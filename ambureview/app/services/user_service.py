"""
User Service.

Account management. Users are never hard-deleted: deactivation keeps audit
rows and incident responsibles valid and revokes every issued token.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import (
    ResourceNotFoundError, ConflictError, InsufficientPermissionsError, InvalidInputError
)
from ambureview.app.core.security import get_password_hash
from ambureview.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from ambureview.app.models.enums import UserRole
from ambureview.app.models.user import User
from ambureview.app.schemas.user import UserCreate, UserUpdate
from ambureview.app.services.ambulance_service import AmbulanceService

logger = logging.getLogger(__name__)


def _ensure_may_grant(actor_role: str, role: Optional[UserRole]):
    if role == UserRole.ADMIN and actor_role != UserRole.ADMIN.value:
        raise InsufficientPermissionsError("Only admins can grant the ADMIN role")


class UserService:

    @staticmethod
    async def get(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise ResourceNotFoundError("User", user_id)
        return user

    @staticmethod
    async def list(
        db: AsyncSession,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[User]:
        query = select(User).order_by(User.username)
        if role:
            query = query.where(User.role == role)
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def _ensure_unique(db: AsyncSession, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None):
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return

        query = select(User).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        existing = (await db.execute(query)).scalars().first()
        if existing:
            if username and existing.username == username:
                raise ConflictError("Username already registered", details={"field": "username"})
            raise ConflictError("Email already registered", details={"field": "email"})

    @staticmethod
    async def create(db: AsyncSession, data: UserCreate, actor_role: str) -> User:
        _ensure_may_grant(actor_role, data.role)
        await UserService._ensure_unique(db, data.username, data.email)
        if data.assigned_ambulance_id is not None:
            await AmbulanceService.get(db, data.assigned_ambulance_id)

        user = User(
            email=data.email,
            username=data.username,
            full_name=data.full_name,
            hashed_password=get_password_hash(data.password),
            role=data.role,
            assigned_ambulance_id=data.assigned_ambulance_id,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("User %s created with role %s", user.username, user.role.value)
        return user

    @staticmethod
    async def update(db: AsyncSession, user_id: int, data: UserUpdate, actor_role: str) -> tuple[User, dict]:
        user = await UserService.get(db, user_id)
        update_data = data.model_dump(exclude_unset=True)

        if user.role == UserRole.ADMIN and actor_role != UserRole.ADMIN.value:
            raise InsufficientPermissionsError("Only admins can modify admin accounts")
        _ensure_may_grant(actor_role, update_data.get("role"))
        if "email" in update_data:
            await UserService._ensure_unique(db, None, update_data["email"], exclude_id=user_id)

        password = update_data.pop("password", None)
        if password:
            user.hashed_password = get_password_hash(password)

        was_active = user.is_active
        for field, value in update_data.items():
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)

        if was_active and not user.is_active:
            await revoke_all_user_tokens(user.id)
        elif not was_active and user.is_active:
            await clear_user_token_revocation(user.id)

        # Never echo the new password into audit payloads
        if password:
            update_data["password_changed"] = True
        return user, update_data

    @staticmethod
    async def deactivate(db: AsyncSession, user_id: int, actor_id: int, actor_role: str) -> User:
        user = await UserService.get(db, user_id)
        if user.id == actor_id:
            raise InvalidInputError("You cannot deactivate your own account")
        if user.role == UserRole.ADMIN and actor_role != UserRole.ADMIN.value:
            raise InsufficientPermissionsError("Only admins can deactivate admin accounts")

        user.is_active = False
        await db.commit()
        await db.refresh(user)
        await revoke_all_user_tokens(user.id)
        logger.info("User %s deactivated by user %s", user.username, actor_id)
        return user

    @staticmethod
    async def assign_ambulance(db: AsyncSession, user_id: int, ambulance_id: Optional[int]) -> User:
        user = await UserService.get(db, user_id)
        if ambulance_id is not None:
            await AmbulanceService.get(db, ambulance_id)
        user.assigned_ambulance_id = ambulance_id
        await db.commit()
        await db.refresh(user)
        return user
