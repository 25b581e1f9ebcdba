"""
Audit logging service.

Append-only trail of mutations on ambulances, users and material entities,
plus authentication events.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from ambureview.app.core.exceptions import ResourceNotFoundError
from ambureview.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    TOKEN_REVOKED = "TOKEN_REVOKED"

    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    ROLE_CHANGED = "ROLE_CHANGED"
    AMBULANCE_ASSIGNED = "AMBULANCE_ASSIGNED"
    AMBULANCE_UNASSIGNED = "AMBULANCE_UNASSIGNED"

    AMBULANCE_CREATED = "AMBULANCE_CREATED"
    AMBULANCE_UPDATED = "AMBULANCE_UPDATED"
    AMBULANCE_DELETED = "AMBULANCE_DELETED"
    AMBULANCE_CHECKED_IN = "AMBULANCE_CHECKED_IN"
    WORKFLOW_STAGE_SET = "WORKFLOW_STAGE_SET"

    DAILY_CHECK_SUBMITTED = "DAILY_CHECK_SUBMITTED"
    MECHANICAL_REVIEW_SUBMITTED = "MECHANICAL_REVIEW_SUBMITTED"
    CLEANING_LOGGED = "CLEANING_LOGGED"

    CHECKLIST_TEMPLATE_CREATED = "CHECKLIST_TEMPLATE_CREATED"
    CHECKLIST_TEMPLATE_UPDATED = "CHECKLIST_TEMPLATE_UPDATED"
    CHECKLIST_TEMPLATE_DELETED = "CHECKLIST_TEMPLATE_DELETED"
    CHECKLIST_CREATED = "CHECKLIST_CREATED"
    CHECKLIST_UPDATED = "CHECKLIST_UPDATED"
    CHECKLIST_DELETED = "CHECKLIST_DELETED"
    CHECKLIST_RESPONSE_SAVED = "CHECKLIST_RESPONSE_SAVED"

    MATERIAL_CREATED = "MATERIAL_CREATED"
    MATERIAL_UPDATED = "MATERIAL_UPDATED"
    MATERIAL_DELETED = "MATERIAL_DELETED"

    INVENTORY_ITEM_CREATED = "INVENTORY_ITEM_CREATED"
    INVENTORY_ITEM_UPDATED = "INVENTORY_ITEM_UPDATED"
    INVENTORY_ITEM_DELETED = "INVENTORY_ITEM_DELETED"

    SPACE_CREATED = "SPACE_CREATED"
    SPACE_UPDATED = "SPACE_UPDATED"
    SPACE_DELETED = "SPACE_DELETED"
    AMPULARIO_MATERIAL_CREATED = "AMPULARIO_MATERIAL_CREATED"
    AMPULARIO_MATERIAL_UPDATED = "AMPULARIO_MATERIAL_UPDATED"
    AMPULARIO_MATERIAL_DELETED = "AMPULARIO_MATERIAL_DELETED"

    USVB_KIT_CREATED = "USVB_KIT_CREATED"
    USVB_KIT_UPDATED = "USVB_KIT_UPDATED"
    USVB_KIT_DELETED = "USVB_KIT_DELETED"
    USVB_MATERIAL_CREATED = "USVB_MATERIAL_CREATED"
    USVB_MATERIAL_UPDATED = "USVB_MATERIAL_UPDATED"
    USVB_MATERIAL_DELETED = "USVB_MATERIAL_DELETED"

    INCIDENT_CREATED = "INCIDENT_CREATED"
    INCIDENT_UPDATED = "INCIDENT_UPDATED"

    CONFIG_UPDATED = "CONFIG_UPDATED"
    JOB_TRIGGERED = "JOB_TRIGGERED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    payload: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Append an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action (None for system jobs)
        actor_username: Username of actor
        entity: Entity type acted upon, e.g. "ambulance"
        entity_id: Primary key of the entity
        payload: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        entity=entity,
        entity_id=entity_id,
        payload=payload,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_user_action(
    db: AsyncSession,
    current_user: dict,
    action: str,
    entity: str,
    entity_id: Optional[int],
    payload: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log a mutation performed by the authenticated user of a request."""
    return await log_event(
        db=db,
        action=action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        entity=entity,
        entity_id=entity_id,
        payload=payload
    )


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    username: Optional[str],
    ip_address: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Log an authentication event (login success/failure, logout).

    Args:
        db: Database session
        action: AuditAction.LOGIN_SUCCESS, LOGIN_FAILED or TOKEN_REVOKED
        user_id: ID of user attempting login
        username: Username attempting login
        ip_address: IP address of login attempt
        payload: Additional context (e.g., failure reason)
    """
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_username=username,
        entity="user",
        entity_id=user_id,
        ip_address=ip_address,
        payload=payload
    )


async def get_audit_trail(
    db: AsyncSession,
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    actor_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity:
        query = query.where(AuditLog.entity == entity)

    if entity_id is not None:
        query = query.where(AuditLog.entity_id == entity_id)

    if action:
        query = query.where(AuditLog.action == action)

    if actor_id is not None:
        query = query.where(AuditLog.actor_id == actor_id)

    query = query.offset(offset).limit(limit)

    result = await db.execute(query)
    return result.scalars().all()


async def get_audit_entry(db: AsyncSession, audit_id: int) -> AuditLog:
    result = await db.execute(select(AuditLog).where(AuditLog.id == audit_id))
    entry = result.scalar_one_or_none()
    if not entry:
        raise ResourceNotFoundError("Audit entry", audit_id)
    return entry
