"""
Checklist service.

Templates own an ordered list of items. A checklist is one run of an
active template against an ambulance; answers are upserted per item and
a run can only be completed once every required item has a value.
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, ConflictError, InvalidInputError
from ambureview.app.models.checklist import ChecklistTemplate, ChecklistItem, Checklist, ChecklistResponse
from ambureview.app.models.review_enums import ChecklistItemType, ChecklistStatus
from ambureview.app.schemas.checklist import (
    ChecklistTemplateCreate, ChecklistTemplateUpdate, ChecklistItemCreate, ChecklistItemUpdate,
    ChecklistCreate, ChecklistUpdate, ChecklistAnswer
)
from ambureview.app.services.ambulance_service import AmbulanceService

logger = logging.getLogger(__name__)

OKKO_VALUES = {"OK", "KO"}


def validate_answer(item: ChecklistItem, value: Optional[str]) -> Optional[str]:
    """Normalise an answer for the item's type; raises InvalidInputError."""
    if value is None or value == "":
        return None
    if item.type == ChecklistItemType.OKKO:
        value = value.upper()
        if value not in OKKO_VALUES:
            raise InvalidInputError(
                f"'{item.label}' must be answered OK or KO", details={"item_id": item.id, "value": value}
            )
    elif item.type == ChecklistItemType.NUMBER:
        try:
            float(value)
        except ValueError:
            raise InvalidInputError(
                f"'{item.label}' must be answered with a number", details={"item_id": item.id, "value": value}
            )
    return value


class ChecklistService:

    # --- Templates ---

    @staticmethod
    async def get_template(db: AsyncSession, template_id: int) -> ChecklistTemplate:
        template = await db.get(ChecklistTemplate, template_id)
        if not template:
            raise ResourceNotFoundError("Checklist template", template_id)
        return template

    @staticmethod
    async def template_items(db: AsyncSession, template_id: int) -> List[ChecklistItem]:
        result = await db.execute(
            select(ChecklistItem)
            .where(ChecklistItem.template_id == template_id)
            .order_by(ChecklistItem.position, ChecklistItem.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _usage(db: AsyncSession, template_id: int) -> int:
        result = await db.execute(select(func.count(Checklist.id)).where(Checklist.template_id == template_id))
        return result.scalar() or 0

    @staticmethod
    async def template_view(db: AsyncSession, template: ChecklistTemplate) -> dict:
        return {
            "id": template.id,
            "name": template.name,
            "periodicity": template.periodicity,
            "active": template.active,
            "created_at": template.created_at,
            "updated_at": template.updated_at,
            "items": await ChecklistService.template_items(db, template.id),
            "checklists": await ChecklistService._usage(db, template.id),
        }

    @staticmethod
    async def list_templates(db: AsyncSession, active: Optional[bool] = None) -> List[ChecklistTemplate]:
        query = select(ChecklistTemplate).order_by(ChecklistTemplate.created_at.desc(), ChecklistTemplate.id.desc())
        if active is not None:
            query = query.where(ChecklistTemplate.active == active)
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None):
        query = select(ChecklistTemplate.id).where(func.lower(ChecklistTemplate.name) == name.lower())
        if exclude_id is not None:
            query = query.where(ChecklistTemplate.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"Checklist template '{name}' already exists", details={"field": "name"})

    @staticmethod
    async def create_template(db: AsyncSession, data: ChecklistTemplateCreate) -> ChecklistTemplate:
        await ChecklistService._ensure_unique_name(db, data.name)

        template = ChecklistTemplate(**data.model_dump(exclude={"items"}))
        db.add(template)
        await db.flush()

        for position, entry in enumerate(data.items):
            db.add(ChecklistItem(template_id=template.id, position=position, **entry.model_dump()))

        await db.commit()
        await db.refresh(template)
        logger.info("Checklist template '%s' created with %d items", template.name, len(data.items))
        return template

    @staticmethod
    async def update_template(
        db: AsyncSession, template_id: int, data: ChecklistTemplateUpdate
    ) -> tuple[ChecklistTemplate, dict]:
        template = await ChecklistService.get_template(db, template_id)
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            await ChecklistService._ensure_unique_name(db, update_data["name"], exclude_id=template_id)
        for field, value in update_data.items():
            setattr(template, field, value)
        await db.commit()
        await db.refresh(template)
        return template, update_data

    @staticmethod
    async def delete_template(db: AsyncSession, template_id: int) -> ChecklistTemplate:
        template = await ChecklistService.get_template(db, template_id)
        used = await ChecklistService._usage(db, template_id)
        if used:
            raise ConflictError(
                f"Checklist template '{template.name}' is in use and cannot be deleted",
                details={"checklists": used}
            )
        await db.execute(delete(ChecklistItem).where(ChecklistItem.template_id == template_id))
        await db.delete(template)
        await db.commit()
        return template

    # --- Template items ---

    @staticmethod
    async def get_item(db: AsyncSession, item_id: int) -> ChecklistItem:
        item = await db.get(ChecklistItem, item_id)
        if not item:
            raise ResourceNotFoundError("Checklist item", item_id)
        return item

    @staticmethod
    async def add_item(db: AsyncSession, template_id: int, data: ChecklistItemCreate) -> ChecklistItem:
        await ChecklistService.get_template(db, template_id)
        last = await db.execute(
            select(func.max(ChecklistItem.position)).where(ChecklistItem.template_id == template_id)
        )
        last_position = last.scalar()
        item = ChecklistItem(
            template_id=template_id,
            position=0 if last_position is None else last_position + 1,
            **data.model_dump()
        )
        db.add(item)
        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def update_item(db: AsyncSession, item_id: int, data: ChecklistItemUpdate) -> tuple[ChecklistItem, dict]:
        item = await ChecklistService.get_item(db, item_id)
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(item, field, value)
        await db.commit()
        await db.refresh(item)
        return item, update_data

    @staticmethod
    async def delete_item(db: AsyncSession, item_id: int) -> ChecklistItem:
        item = await ChecklistService.get_item(db, item_id)
        answered = await db.execute(
            select(func.count(ChecklistResponse.id)).where(ChecklistResponse.item_id == item_id)
        )
        if answered.scalar():
            raise ConflictError(
                f"Checklist item '{item.label}' has recorded answers and cannot be deleted",
                details={"item_id": item_id}
            )
        template_id = item.template_id
        await db.delete(item)
        await db.flush()

        for position, remaining in enumerate(await ChecklistService.template_items(db, template_id)):
            remaining.position = position

        await db.commit()
        return item

    # --- Checklists ---

    @staticmethod
    async def get(db: AsyncSession, checklist_id: int) -> Checklist:
        checklist = await db.get(Checklist, checklist_id)
        if not checklist:
            raise ResourceNotFoundError("Checklist", checklist_id)
        return checklist

    @staticmethod
    async def responses(db: AsyncSession, checklist_id: int) -> List[ChecklistResponse]:
        result = await db.execute(
            select(ChecklistResponse)
            .join(ChecklistItem, ChecklistItem.id == ChecklistResponse.item_id)
            .where(ChecklistResponse.checklist_id == checklist_id)
            .order_by(ChecklistItem.position, ChecklistItem.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def checklist_view(db: AsyncSession, checklist: Checklist) -> dict:
        """Checklist columns plus its template items and answers."""
        template = await ChecklistService.get_template(db, checklist.template_id)
        return {
            "id": checklist.id,
            "template_id": checklist.template_id,
            "template_name": template.name,
            "ambulance_id": checklist.ambulance_id,
            "user_id": checklist.user_id,
            "date": checklist.date,
            "status": checklist.status,
            "notes": checklist.notes,
            "created_at": checklist.created_at,
            "updated_at": checklist.updated_at,
            "items": await ChecklistService.template_items(db, checklist.template_id),
            "responses": await ChecklistService.responses(db, checklist.id),
        }

    @staticmethod
    async def list(
        db: AsyncSession,
        ambulance_id: Optional[int] = None,
        user_id: Optional[int] = None,
        status: Optional[ChecklistStatus] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Checklist]:
        query = select(Checklist).order_by(Checklist.date.desc(), Checklist.id.desc())
        if ambulance_id is not None:
            query = query.where(Checklist.ambulance_id == ambulance_id)
        if user_id is not None:
            query = query.where(Checklist.user_id == user_id)
        if status:
            query = query.where(Checklist.status == status)
        if date_from:
            query = query.where(Checklist.date >= date_from)
        if date_to:
            query = query.where(Checklist.date <= date_to)
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def create(db: AsyncSession, data: ChecklistCreate, user_id: Optional[int]) -> Checklist:
        await AmbulanceService.get(db, data.ambulance_id)
        template = await ChecklistService.get_template(db, data.template_id)
        if not template.active:
            raise InvalidInputError(
                f"Checklist template '{template.name}' is inactive", details={"template_id": template.id}
            )

        checklist = Checklist(
            ambulance_id=data.ambulance_id,
            template_id=data.template_id,
            user_id=user_id,
            date=data.date or datetime.utcnow(),
            notes=data.notes,
        )
        db.add(checklist)
        await db.commit()
        await db.refresh(checklist)
        return checklist

    @staticmethod
    async def _missing_required(db: AsyncSession, checklist: Checklist) -> List[int]:
        answered = {r.item_id for r in await ChecklistService.responses(db, checklist.id) if r.value is not None}
        return [
            item.id for item in await ChecklistService.template_items(db, checklist.template_id)
            if item.required and item.id not in answered
        ]

    @staticmethod
    async def update(db: AsyncSession, checklist_id: int, data: ChecklistUpdate) -> tuple[Checklist, dict]:
        checklist = await ChecklistService.get(db, checklist_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("status") == ChecklistStatus.COMPLETED:
            missing = await ChecklistService._missing_required(db, checklist)
            if missing:
                raise InvalidInputError(
                    "Required checklist items are unanswered", details={"missing_item_ids": missing}
                )

        for field, value in update_data.items():
            setattr(checklist, field, value)
        await db.commit()
        await db.refresh(checklist)
        return checklist, update_data

    @staticmethod
    async def delete(db: AsyncSession, checklist_id: int) -> Checklist:
        checklist = await ChecklistService.get(db, checklist_id)
        await db.execute(delete(ChecklistResponse).where(ChecklistResponse.checklist_id == checklist_id))
        await db.delete(checklist)
        await db.commit()
        return checklist

    @staticmethod
    async def save_response(
        db: AsyncSession, checklist_id: int, item_id: int, data: ChecklistAnswer
    ) -> ChecklistResponse:
        """Insert or replace the answer for one item of a checklist run."""
        checklist = await ChecklistService.get(db, checklist_id)
        item = await ChecklistService.get_item(db, item_id)

        if item.template_id != checklist.template_id:
            raise InvalidInputError(
                "Item does not belong to this checklist's template",
                details={"item_id": item_id, "template_id": checklist.template_id}
            )
        if checklist.status == ChecklistStatus.COMPLETED:
            raise ConflictError("Checklist is already completed", details={"checklist_id": checklist_id})

        value = validate_answer(item, data.value)

        result = await db.execute(
            select(ChecklistResponse).where(
                ChecklistResponse.checklist_id == checklist_id,
                ChecklistResponse.item_id == item_id
            )
        )
        response = result.scalar_one_or_none()
        if response is None:
            response = ChecklistResponse(checklist_id=checklist_id, item_id=item_id)
            db.add(response)
        response.value = value
        response.notes = data.notes

        if checklist.status == ChecklistStatus.PENDING:
            checklist.status = ChecklistStatus.IN_PROGRESS

        await db.commit()
        await db.refresh(response)
        return response
