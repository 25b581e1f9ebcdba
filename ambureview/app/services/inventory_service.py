"""
Inventory Service.

Material catalogue and ambulance inventory items. Every write that touches
quantity, min_stock or expiry_date re-derives the stored status, and every
quantity change appends an inventory log row.
"""

import logging
from datetime import date, timedelta
from typing import Optional, List

from sqlalchemy import select, func, desc, update
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, ConflictError
from ambureview.app.domain.inventory.status import apply_status
from ambureview.app.models.incident import Incident
from ambureview.app.models.inventory_enums import InventoryStatus, MaterialKind
from ambureview.app.models.material import Material, InventoryItem, InventoryLog
from ambureview.app.schemas.material import (
    MaterialCreate, MaterialUpdate, InventoryItemCreate, InventoryItemUpdate
)
from ambureview.app.services.ambulance_service import AmbulanceService

logger = logging.getLogger(__name__)

STATUS_FIELDS = {"quantity", "min_stock", "expiry_date"}


class MaterialService:

    @staticmethod
    async def get(db: AsyncSession, material_id: int) -> Material:
        material = await db.get(Material, material_id)
        if not material:
            raise ResourceNotFoundError("Material", material_id)
        return material

    @staticmethod
    async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None):
        query = select(Material.id).where(func.lower(Material.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Material.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"Material '{name}' already exists", details={"field": "name"})

    @staticmethod
    async def list(
        db: AsyncSession,
        kind: Optional[MaterialKind] = None,
        category: Optional[str] = None,
        critical: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Material]:
        query = select(Material).order_by(Material.name)
        if kind:
            query = query.where(Material.kind == kind)
        if category:
            query = query.where(Material.category == category)
        if critical is not None:
            query = query.where(Material.critical == critical)
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def search(db: AsyncSession, q: str, limit: int = 20) -> List[Material]:
        pattern = f"%{q.lower()}%"
        result = await db.execute(
            select(Material)
            .where(func.lower(Material.name).like(pattern) | func.lower(Material.reference).like(pattern))
            .order_by(Material.name)
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def create(db: AsyncSession, data: MaterialCreate) -> Material:
        await MaterialService._ensure_unique_name(db, data.name)
        material = Material(**data.model_dump())
        db.add(material)
        await db.commit()
        await db.refresh(material)
        return material

    @staticmethod
    async def update(db: AsyncSession, material_id: int, data: MaterialUpdate) -> tuple[Material, dict]:
        material = await MaterialService.get(db, material_id)
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            await MaterialService._ensure_unique_name(db, update_data["name"], exclude_id=material_id)
        for field, value in update_data.items():
            setattr(material, field, value)
        await db.commit()
        await db.refresh(material)
        return material, update_data

    @staticmethod
    async def delete(db: AsyncSession, material_id: int) -> Material:
        material = await MaterialService.get(db, material_id)
        in_use = await db.execute(
            select(func.count(InventoryItem.id)).where(InventoryItem.material_id == material_id)
        )
        if in_use.scalar():
            raise ConflictError(
                f"Material '{material.name}' is stocked in ambulances and cannot be deleted",
                details={"material_id": material_id}
            )
        await db.delete(material)
        await db.commit()
        return material


class InventoryService:

    @staticmethod
    async def get(db: AsyncSession, item_id: int) -> InventoryItem:
        item = await db.get(InventoryItem, item_id)
        if not item:
            raise ResourceNotFoundError("Inventory item", item_id)
        return item

    @staticmethod
    async def _ensure_unique_batch(
        db: AsyncSession, ambulance_id: int, material_id: int, batch: Optional[str], exclude_id: Optional[int] = None
    ):
        query = select(InventoryItem.id).where(
            InventoryItem.ambulance_id == ambulance_id,
            InventoryItem.material_id == material_id,
            InventoryItem.batch.is_(None) if batch is None else InventoryItem.batch == batch
        )
        if exclude_id is not None:
            query = query.where(InventoryItem.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(
                "This material and batch are already stocked in the ambulance",
                details={"ambulance_id": ambulance_id, "material_id": material_id, "batch": batch}
            )

    @staticmethod
    def _log_change(db: AsyncSession, item: InventoryItem, before: int, after: int, reason: Optional[str], user_id: Optional[int]):
        db.add(InventoryLog(
            inventory_item_id=item.id,
            diff=after - before,
            quantity_before=before,
            quantity_after=after,
            reason=reason,
            user_id=user_id,
        ))

    @staticmethod
    async def list(
        db: AsyncSession,
        ambulance_id: Optional[int] = None,
        material_id: Optional[int] = None,
        status: Optional[InventoryStatus] = None,
        location: Optional[str] = None,
        critical: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[InventoryItem]:
        query = select(InventoryItem).order_by(InventoryItem.ambulance_id, InventoryItem.id)
        if ambulance_id is not None:
            query = query.where(InventoryItem.ambulance_id == ambulance_id)
        if material_id is not None:
            query = query.where(InventoryItem.material_id == material_id)
        if status:
            query = query.where(InventoryItem.status == status)
        if location:
            query = query.where(func.lower(InventoryItem.location).like(f"%{location.lower()}%"))
        if critical is not None:
            query = query.join(Material, Material.id == InventoryItem.material_id).where(Material.critical == critical)
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def create(db: AsyncSession, data: InventoryItemCreate, user_id: Optional[int], today: Optional[date] = None) -> InventoryItem:
        await AmbulanceService.get(db, data.ambulance_id)
        await MaterialService.get(db, data.material_id)
        await InventoryService._ensure_unique_batch(db, data.ambulance_id, data.material_id, data.batch)

        item = InventoryItem(**data.model_dump())
        apply_status(item, today or date.today())
        db.add(item)
        await db.flush()

        if item.quantity:
            InventoryService._log_change(db, item, 0, item.quantity, "Initial stock", user_id)

        await db.commit()
        await db.refresh(item)
        return item

    @staticmethod
    async def update(
        db: AsyncSession, item_id: int, data: InventoryItemUpdate, user_id: Optional[int], today: Optional[date] = None
    ) -> tuple[InventoryItem, dict]:
        item = await InventoryService.get(db, item_id)
        update_data = data.model_dump(exclude_unset=True)
        reason = update_data.pop("reason", None)

        if "batch" in update_data:
            await InventoryService._ensure_unique_batch(
                db, item.ambulance_id, item.material_id, update_data["batch"], exclude_id=item.id
            )

        before = item.quantity
        for field, value in update_data.items():
            setattr(item, field, value)

        if item.quantity != before:
            InventoryService._log_change(db, item, before, item.quantity, reason, user_id)

        if STATUS_FIELDS & update_data.keys():
            apply_status(item, today or date.today())

        await db.commit()
        await db.refresh(item)
        return item, update_data

    @staticmethod
    async def delete(db: AsyncSession, item_id: int) -> InventoryItem:
        item = await InventoryService.get(db, item_id)
        await db.execute(
            update(Incident).where(Incident.inventory_item_id == item_id).values(inventory_item_id=None)
        )
        await db.execute(
            InventoryLog.__table__.delete().where(InventoryLog.inventory_item_id == item_id)
        )
        await db.delete(item)
        await db.commit()
        return item

    @staticmethod
    async def logs(db: AsyncSession, item_id: int, limit: int = 100) -> List[InventoryLog]:
        await InventoryService.get(db, item_id)
        result = await db.execute(
            select(InventoryLog)
            .where(InventoryLog.inventory_item_id == item_id)
            .order_by(desc(InventoryLog.created_at), desc(InventoryLog.id))
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def low_stock(db: AsyncSession, ambulance_id: Optional[int] = None) -> List[InventoryItem]:
        query = select(InventoryItem).where(
            InventoryItem.min_stock > 0,
            InventoryItem.quantity <= InventoryItem.min_stock
        ).order_by(InventoryItem.quantity)
        if ambulance_id is not None:
            query = query.where(InventoryItem.ambulance_id == ambulance_id)
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def expired(db: AsyncSession, today: date, ambulance_id: Optional[int] = None) -> List[InventoryItem]:
        query = select(InventoryItem).where(
            InventoryItem.expiry_date.is_not(None),
            InventoryItem.expiry_date < today
        ).order_by(InventoryItem.expiry_date)
        if ambulance_id is not None:
            query = query.where(InventoryItem.ambulance_id == ambulance_id)
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def expiring(db: AsyncSession, today: date, days: int = 30, ambulance_id: Optional[int] = None) -> List[InventoryItem]:
        query = select(InventoryItem).where(
            InventoryItem.expiry_date >= today,
            InventoryItem.expiry_date <= today + timedelta(days=days)
        ).order_by(InventoryItem.expiry_date)
        if ambulance_id is not None:
            query = query.where(InventoryItem.ambulance_id == ambulance_id)
        return (await db.execute(query)).scalars().all()

    @staticmethod
    async def stats(db: AsyncSession, today: date, ambulance_id: Optional[int] = None) -> dict:
        scope = []
        if ambulance_id is not None:
            scope.append(InventoryItem.ambulance_id == ambulance_id)

        totals = await db.execute(
            select(func.count(InventoryItem.id), func.coalesce(func.sum(InventoryItem.quantity), 0)).where(*scope)
        )
        total_items, total_units = totals.one()

        by_status = await db.execute(
            select(InventoryItem.status, func.count(InventoryItem.id)).where(*scope).group_by(InventoryItem.status)
        )
        status_counts = {s.value: 0 for s in InventoryStatus}
        for status, count in by_status.all():
            status_counts[status.value] = count

        critical = await db.execute(
            select(func.count(InventoryItem.id))
            .join(Material, Material.id == InventoryItem.material_id)
            .where(Material.critical == True, *scope)
        )
        expiring = await db.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.expiry_date >= today,
                InventoryItem.expiry_date <= today + timedelta(days=30),
                *scope
            )
        )

        return {
            "total_items": total_items,
            "total_units": int(total_units),
            "by_status": status_counts,
            "critical_items": critical.scalar() or 0,
            "expiring_within_30_days": expiring.scalar() or 0,
        }
