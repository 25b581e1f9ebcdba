"""
Audit log API endpoints (admin and coordinator, read-only).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.schemas.audit import AuditLogResponse
from ambureview.app.services.audit import get_audit_trail, get_audit_entry

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    actor_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await get_audit_trail(db, entity, entity_id, action, actor_id, limit, offset)


@router.get("/recent", response_model=List[AuditLogResponse])
async def recent_audit_logs(
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await get_audit_trail(db, limit=limit)


@router.get("/{audit_id}", response_model=AuditLogResponse)
async def get_audit_log(
    audit_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await get_audit_entry(db, audit_id)
