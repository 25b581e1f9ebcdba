"""
Ampulario (central store) service.
"""

import logging
from datetime import date, timedelta
from typing import Optional, List

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, ConflictError
from ambureview.app.domain.alerts.derivation import Alert, derive_central_alerts
from ambureview.app.domain.inventory.status import apply_status
from ambureview.app.models.ampulario import Space, AmpularioMaterial
from ambureview.app.models.inventory_enums import MaterialRoute, InventoryStatus
from ambureview.app.models.material import InventoryLog
from ambureview.app.repositories.fleet_repository import FleetRepository
from ambureview.app.schemas.ampulario import (
    SpaceCreate, SpaceUpdate, AmpularioMaterialCreate, AmpularioMaterialUpdate
)

logger = logging.getLogger(__name__)

STATUS_FIELDS = {"quantity", "min_stock", "expiry_date"}
EXPIRING_FILTER_DAYS = 30


class SpaceService:

    @staticmethod
    async def get(db: AsyncSession, space_id: int) -> Space:
        space = await db.get(Space, space_id)
        if not space:
            raise ResourceNotFoundError("Space", space_id)
        return space

    @staticmethod
    async def list(db: AsyncSession) -> List[Space]:
        result = await db.execute(select(Space).order_by(Space.name))
        return result.scalars().all()

    @staticmethod
    async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None):
        query = select(Space.id).where(func.lower(Space.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Space.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"Space '{name}' already exists", details={"field": "name"})

    @staticmethod
    async def create(db: AsyncSession, data: SpaceCreate) -> Space:
        await SpaceService._ensure_unique_name(db, data.name)
        space = Space(**data.model_dump())
        db.add(space)
        await db.commit()
        await db.refresh(space)
        return space

    @staticmethod
    async def update(db: AsyncSession, space_id: int, data: SpaceUpdate) -> tuple[Space, dict]:
        space = await SpaceService.get(db, space_id)
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            await SpaceService._ensure_unique_name(db, update_data["name"], exclude_id=space_id)
        for field, value in update_data.items():
            setattr(space, field, value)
        await db.commit()
        await db.refresh(space)
        return space, update_data

    @staticmethod
    async def delete(db: AsyncSession, space_id: int) -> Space:
        space = await SpaceService.get(db, space_id)
        stocked = await db.execute(
            select(func.count(AmpularioMaterial.id)).where(AmpularioMaterial.space_id == space_id)
        )
        if stocked.scalar():
            raise ConflictError(
                f"Space '{space.name}' still holds materials",
                details={"space_id": space_id}
            )
        await db.delete(space)
        await db.commit()
        return space


class AmpularioService:

    @staticmethod
    async def get(db: AsyncSession, material_id: int) -> AmpularioMaterial:
        material = await db.get(AmpularioMaterial, material_id)
        if not material:
            raise ResourceNotFoundError("Ampulario material", material_id)
        return material

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession, space_id: int, name: str, dose: str, exclude_id: Optional[int] = None
    ):
        query = select(AmpularioMaterial.id).where(
            AmpularioMaterial.space_id == space_id,
            func.lower(AmpularioMaterial.name) == name.lower(),
            func.lower(AmpularioMaterial.dose) == dose.lower(),
        )
        if exclude_id is not None:
            query = query.where(AmpularioMaterial.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(
                f"'{name} {dose}' already exists in this space",
                details={"space_id": space_id, "name": name, "dose": dose}
            )

    @staticmethod
    def _log_change(db: AsyncSession, material: AmpularioMaterial, before: int, reason: Optional[str], user_id: Optional[int]):
        db.add(InventoryLog(
            ampulario_material_id=material.id,
            diff=material.quantity - before,
            quantity_before=before,
            quantity_after=material.quantity,
            reason=reason,
            user_id=user_id,
        ))

    @staticmethod
    async def list(
        db: AsyncSession,
        today: date,
        space_id: Optional[int] = None,
        route: Optional[MaterialRoute] = None,
        name: Optional[str] = None,
        expiring: bool = False,
        low_stock: bool = False,
        skip: int = 0,
        limit: int = 100
    ) -> List[AmpularioMaterial]:
        query = select(AmpularioMaterial).order_by(AmpularioMaterial.name, AmpularioMaterial.dose)
        if space_id is not None:
            query = query.where(AmpularioMaterial.space_id == space_id)
        if route:
            query = query.where(AmpularioMaterial.route == route)
        if name:
            query = query.where(func.lower(AmpularioMaterial.name).like(f"%{name.lower()}%"))
        if expiring:
            query = query.where(
                AmpularioMaterial.expiry_date >= today,
                AmpularioMaterial.expiry_date <= today + timedelta(days=EXPIRING_FILTER_DAYS)
            )
        if low_stock:
            query = query.where(
                AmpularioMaterial.min_stock.is_not(None),
                AmpularioMaterial.quantity <= AmpularioMaterial.min_stock
            )
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    @staticmethod
    async def create(
        db: AsyncSession, data: AmpularioMaterialCreate, user_id: Optional[int], today: Optional[date] = None
    ) -> AmpularioMaterial:
        await SpaceService.get(db, data.space_id)
        await AmpularioService._ensure_unique(db, data.space_id, data.name, data.dose)

        material = AmpularioMaterial(**data.model_dump())
        apply_status(material, today or date.today())
        db.add(material)
        await db.flush()

        if material.quantity:
            AmpularioService._log_change(db, material, 0, "Initial stock", user_id)

        await db.commit()
        await db.refresh(material)
        return material

    @staticmethod
    async def update(
        db: AsyncSession,
        material_id: int,
        data: AmpularioMaterialUpdate,
        user_id: Optional[int],
        today: Optional[date] = None
    ) -> tuple[AmpularioMaterial, dict]:
        material = await AmpularioService.get(db, material_id)
        update_data = data.model_dump(exclude_unset=True)
        reason = update_data.pop("reason", None)

        if "space_id" in update_data:
            await SpaceService.get(db, update_data["space_id"])
        if {"space_id", "name", "dose"} & update_data.keys():
            await AmpularioService._ensure_unique(
                db,
                update_data.get("space_id", material.space_id),
                update_data.get("name", material.name),
                update_data.get("dose", material.dose),
                exclude_id=material_id,
            )

        before = material.quantity
        for field, value in update_data.items():
            setattr(material, field, value)

        if material.quantity != before:
            AmpularioService._log_change(db, material, before, reason, user_id)
        if STATUS_FIELDS & update_data.keys():
            apply_status(material, today or date.today())

        await db.commit()
        await db.refresh(material)
        return material, update_data

    @staticmethod
    async def delete(db: AsyncSession, material_id: int) -> AmpularioMaterial:
        material = await AmpularioService.get(db, material_id)
        await db.execute(
            InventoryLog.__table__.delete().where(InventoryLog.ampulario_material_id == material_id)
        )
        await db.delete(material)
        await db.commit()
        return material

    @staticmethod
    async def expired(db: AsyncSession, today: date) -> List[AmpularioMaterial]:
        result = await db.execute(
            select(AmpularioMaterial)
            .where(AmpularioMaterial.expiry_date < today)
            .order_by(AmpularioMaterial.expiry_date)
        )
        return result.scalars().all()

    @staticmethod
    async def expiring(db: AsyncSession, today: date, days: int = EXPIRING_FILTER_DAYS) -> List[AmpularioMaterial]:
        result = await db.execute(
            select(AmpularioMaterial)
            .where(
                AmpularioMaterial.expiry_date >= today,
                AmpularioMaterial.expiry_date <= today + timedelta(days=days)
            )
            .order_by(AmpularioMaterial.expiry_date)
        )
        return result.scalars().all()

    @staticmethod
    async def low_stock(db: AsyncSession) -> List[AmpularioMaterial]:
        result = await db.execute(
            select(AmpularioMaterial)
            .where(
                AmpularioMaterial.min_stock.is_not(None),
                AmpularioMaterial.quantity <= AmpularioMaterial.min_stock
            )
            .order_by(AmpularioMaterial.quantity)
        )
        return result.scalars().all()

    @staticmethod
    async def stats(db: AsyncSession) -> dict:
        totals = await db.execute(
            select(func.count(AmpularioMaterial.id), func.coalesce(func.sum(AmpularioMaterial.quantity), 0))
        )
        total_materials, total_units = totals.one()

        by_route = {r.value: 0 for r in MaterialRoute}
        rows = await db.execute(
            select(AmpularioMaterial.route, func.count(AmpularioMaterial.id)).group_by(AmpularioMaterial.route)
        )
        for route, count in rows.all():
            by_route[route.value] = count

        by_status = {s.value: 0 for s in InventoryStatus}
        rows = await db.execute(
            select(AmpularioMaterial.status, func.count(AmpularioMaterial.id)).group_by(AmpularioMaterial.status)
        )
        for status, count in rows.all():
            by_status[status.value] = count

        spaces = await db.execute(select(func.count(Space.id)))

        return {
            "total_materials": total_materials,
            "total_units": int(total_units),
            "by_route": by_route,
            "by_status": by_status,
            "spaces": spaces.scalar() or 0,
        }

    @staticmethod
    async def alerts(db: AsyncSession, today: date, space_id: Optional[int] = None) -> List[Alert]:
        repo = FleetRepository(db)
        materials = await repo.list_central_materials(space_id)
        return derive_central_alerts(materials, await repo.space_names(), today)

    @staticmethod
    async def logs(db: AsyncSession, material_id: Optional[int] = None, limit: int = 100) -> List[InventoryLog]:
        query = select(InventoryLog).where(InventoryLog.ampulario_material_id.is_not(None))
        if material_id is not None:
            query = query.where(InventoryLog.ampulario_material_id == material_id)
        result = await db.execute(
            query.order_by(desc(InventoryLog.created_at), desc(InventoryLog.id)).limit(limit)
        )
        return result.scalars().all()
