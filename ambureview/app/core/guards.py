"""
Security guards for role-based and ambulance-scoped access control.

Coordinators and admins manage the whole fleet; crew users only see the
ambulance they are assigned to.
"""

from typing import List, Optional
from fastapi import Depends, HTTPException, status
from ambureview.app.models.enums import UserRole
from ambureview.app.core.dependencies import get_current_user

STAFF_ROLES = [UserRole.ADMIN, UserRole.COORDINATOR]


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/ambulances")
        async def create_ambulance(current_user: dict = Depends(require_role(STAFF_ROLES))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates user role

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """Dependency for admin-only endpoints."""
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


def is_staff(current_user: dict) -> bool:
    return current_user.get("role") in {r.value for r in STAFF_ROLES}


class AmbulanceAccessGuard:
    """
    Ambulance-scoped access guard.

    Usage:
        ambulance_guard = AmbulanceAccessGuard()

        @router.get("/ambulances/{ambulance_id}")
        async def get_ambulance(ambulance_id: int, current_user: dict = Depends(get_current_user)):
            ambulance_guard.enforce(ambulance_id, current_user)
            ...
    """

    def enforce(self, ambulance_id: int, current_user: dict):
        """
        Raise 403 unless the user may operate on the given ambulance.

        Staff roles are always allowed; crew users only on their assigned ambulance.
        """
        if is_staff(current_user):
            return

        if current_user.get("assigned_ambulance_id") != ambulance_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. This ambulance is not assigned to you."
            )

    def filter_by_access(self, current_user: dict) -> Optional[int]:
        """
        Get the ambulance_id to filter list queries by.

        For staff: Returns None (no filtering needed)
        For crew users: Returns their assigned ambulance, 403 if they have none
        """
        if is_staff(current_user):
            return None

        assigned = current_user.get("assigned_ambulance_id")
        if assigned is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No ambulance assigned to this user"
            )
        return assigned
