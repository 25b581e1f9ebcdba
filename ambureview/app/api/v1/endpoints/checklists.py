"""
Checklist API Endpoints.

Templates and their items are managed by staff. Crew users run
checklists and record answers on their assigned ambulance only.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES, AmbulanceAccessGuard
from ambureview.app.db.session import get_db
from ambureview.app.models.review_enums import ChecklistStatus
from ambureview.app.schemas.checklist import (
    ChecklistTemplateCreate, ChecklistTemplateUpdate, ChecklistTemplateResponse,
    ChecklistItemCreate, ChecklistItemUpdate, ChecklistItemResponse,
    ChecklistCreate, ChecklistUpdate, ChecklistDetail,
    ChecklistAnswer, ChecklistAnswerResponse
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.checklist_service import ChecklistService

router = APIRouter(prefix="/checklists", tags=["Checklists"])
ambulance_guard = AmbulanceAccessGuard()


# --- Templates ---

@router.post("/templates", response_model=ChecklistTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: ChecklistTemplateCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    template = await ChecklistService.create_template(db, template_data)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_CREATED, "checklist_template", template.id,
        {"name": template.name, "items": len(template_data.items)}
    )
    return await ChecklistService.template_view(db, template)


@router.get("/templates", response_model=List[ChecklistTemplateResponse])
async def list_templates(
    active: Optional[bool] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first."""
    return [await ChecklistService.template_view(db, t) for t in await ChecklistService.list_templates(db, active)]


@router.get("/templates/{template_id}", response_model=ChecklistTemplateResponse)
async def get_template(
    template_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    template = await ChecklistService.get_template(db, template_id)
    return await ChecklistService.template_view(db, template)


@router.patch("/templates/{template_id}", response_model=ChecklistTemplateResponse)
async def update_template(
    template_id: int,
    template_data: ChecklistTemplateUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    template, changes = await ChecklistService.update_template(db, template_id, template_data)
    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_UPDATED, "checklist_template", template.id,
        jsonable_encoder(changes)
    )
    return await ChecklistService.template_view(db, template)


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    template = await ChecklistService.delete_template(db, template_id)
    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_DELETED, "checklist_template", template_id,
        {"name": template.name}
    )


# --- Template items ---

@router.post("/templates/{template_id}/items", response_model=ChecklistItemResponse, status_code=status.HTTP_201_CREATED)
async def add_item(
    template_id: int,
    item_data: ChecklistItemCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Append an item at the end of the template."""
    item = await ChecklistService.add_item(db, template_id, item_data)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_UPDATED, "checklist_template", template_id,
        {"added_item": item.label}
    )
    return ChecklistItemResponse.model_validate(item)


@router.patch("/items/{item_id}", response_model=ChecklistItemResponse)
async def update_item(
    item_id: int,
    item_data: ChecklistItemUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    item, changes = await ChecklistService.update_item(db, item_id, item_data)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_UPDATED, "checklist_template", item.template_id,
        {"item_id": item.id, **jsonable_encoder(changes)}
    )
    return ChecklistItemResponse.model_validate(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    item = await ChecklistService.delete_item(db, item_id)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_TEMPLATE_UPDATED, "checklist_template", item.template_id,
        {"removed_item": item.label}
    )


# --- Checklist runs ---

@router.post("", response_model=ChecklistDetail, status_code=status.HTTP_201_CREATED)
async def create_checklist(
    checklist_data: ChecklistCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(checklist_data.ambulance_id, current_user)
    checklist = await ChecklistService.create(db, checklist_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_CREATED, "checklist", checklist.id,
        {"ambulance_id": checklist.ambulance_id, "template_id": checklist.template_id}
    )
    return await ChecklistService.checklist_view(db, checklist)


@router.get("", response_model=List[ChecklistDetail])
async def list_checklists(
    ambulance_id: Optional[int] = None,
    user_id: Optional[int] = None,
    status: Optional[ChecklistStatus] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first. Crew users only see their own ambulance."""
    assigned = ambulance_guard.filter_by_access(current_user)
    if assigned is not None:
        if ambulance_id is not None:
            ambulance_guard.enforce(ambulance_id, current_user)
        ambulance_id = assigned

    checklists = await ChecklistService.list(db, ambulance_id, user_id, status, date_from, date_to, skip, limit)
    return [await ChecklistService.checklist_view(db, c) for c in checklists]


@router.get("/{checklist_id}", response_model=ChecklistDetail)
async def get_checklist(
    checklist_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    checklist = await ChecklistService.get(db, checklist_id)
    ambulance_guard.enforce(checklist.ambulance_id, current_user)
    return await ChecklistService.checklist_view(db, checklist)


@router.patch("/{checklist_id}", response_model=ChecklistDetail)
async def update_checklist(
    checklist_id: int,
    checklist_data: ChecklistUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Completing a checklist requires an answer for every required item."""
    checklist = await ChecklistService.get(db, checklist_id)
    ambulance_guard.enforce(checklist.ambulance_id, current_user)
    checklist, changes = await ChecklistService.update(db, checklist_id, checklist_data)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_UPDATED, "checklist", checklist.id, jsonable_encoder(changes)
    )
    return await ChecklistService.checklist_view(db, checklist)


@router.delete("/{checklist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_checklist(
    checklist_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    checklist = await ChecklistService.delete(db, checklist_id)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_DELETED, "checklist", checklist_id,
        {"ambulance_id": checklist.ambulance_id}
    )


# --- Responses ---

@router.put("/{checklist_id}/responses/{item_id}", response_model=ChecklistAnswerResponse)
async def save_response(
    checklist_id: int,
    item_id: int,
    answer: ChecklistAnswer,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record or replace the answer for one item."""
    checklist = await ChecklistService.get(db, checklist_id)
    ambulance_guard.enforce(checklist.ambulance_id, current_user)
    response = await ChecklistService.save_response(db, checklist_id, item_id, answer)

    await log_user_action(
        db, current_user, AuditAction.CHECKLIST_RESPONSE_SAVED, "checklist", checklist_id,
        {"item_id": item_id, "value": response.value}
    )
    return ChecklistAnswerResponse.model_validate(response)


@router.get("/{checklist_id}/responses", response_model=List[ChecklistAnswerResponse])
async def get_responses(
    checklist_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    checklist = await ChecklistService.get(db, checklist_id)
    ambulance_guard.enforce(checklist.ambulance_id, current_user)
    return await ChecklistService.responses(db, checklist_id)
