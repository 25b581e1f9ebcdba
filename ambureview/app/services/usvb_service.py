"""
USVB kit service.

Kits hold an ordered list of materials. Positions are contiguous within a
kit; moving a material swaps it with its neighbour.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import ResourceNotFoundError, ConflictError, InvalidInputError
from ambureview.app.domain.inventory.status import kit_material_status, kit_overall_status
from ambureview.app.models.inventory_enums import KitMaterialStatus
from ambureview.app.models.usvb import UsvbKit, UsvbKitMaterial
from ambureview.app.schemas.usvb import KitCreate, KitUpdate, KitMaterialCreate, KitMaterialUpdate

logger = logging.getLogger(__name__)


def _refresh_status(material: UsvbKitMaterial) -> None:
    material.status = kit_material_status(material.quantity, material.target_quantity)


class UsvbService:

    @staticmethod
    async def get_kit(db: AsyncSession, kit_id: int) -> UsvbKit:
        kit = await db.get(UsvbKit, kit_id)
        if not kit:
            raise ResourceNotFoundError("USVB kit", kit_id)
        return kit

    @staticmethod
    async def get_kit_by_number(db: AsyncSession, number: int) -> UsvbKit:
        result = await db.execute(select(UsvbKit).where(UsvbKit.number == number))
        kit = result.scalar_one_or_none()
        if not kit:
            raise ResourceNotFoundError("USVB kit", number)
        return kit

    @staticmethod
    async def get_material(db: AsyncSession, material_id: int) -> UsvbKitMaterial:
        material = await db.get(UsvbKitMaterial, material_id)
        if not material:
            raise ResourceNotFoundError("Kit material", material_id)
        return material

    @staticmethod
    async def kit_materials(db: AsyncSession, kit_id: int) -> List[UsvbKitMaterial]:
        result = await db.execute(
            select(UsvbKitMaterial)
            .where(UsvbKitMaterial.kit_id == kit_id)
            .order_by(UsvbKitMaterial.position, UsvbKitMaterial.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def kit_view(db: AsyncSession, kit: UsvbKit) -> dict:
        """Kit columns plus its ordered materials."""
        materials = await UsvbService.kit_materials(db, kit.id)
        return {
            "id": kit.id,
            "number": kit.number,
            "name": kit.name,
            "category": kit.category,
            "description": kit.description,
            "created_at": kit.created_at,
            "updated_at": kit.updated_at,
            "materials": materials,
        }

    @staticmethod
    async def list_kits(db: AsyncSession) -> List[UsvbKit]:
        result = await db.execute(select(UsvbKit).order_by(UsvbKit.number))
        return result.scalars().all()

    @staticmethod
    async def _ensure_unique_number(db: AsyncSession, number: int, exclude_id: Optional[int] = None):
        query = select(UsvbKit.id).where(UsvbKit.number == number)
        if exclude_id is not None:
            query = query.where(UsvbKit.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"Kit number {number} already exists", details={"field": "number"})

    @staticmethod
    async def _ensure_unique_material(db: AsyncSession, kit_id: int, name: str, exclude_id: Optional[int] = None):
        query = select(UsvbKitMaterial.id).where(
            UsvbKitMaterial.kit_id == kit_id,
            func.lower(UsvbKitMaterial.name) == name.lower()
        )
        if exclude_id is not None:
            query = query.where(UsvbKitMaterial.id != exclude_id)
        if (await db.execute(query)).first():
            raise ConflictError(f"Material '{name}' already exists in this kit", details={"kit_id": kit_id})

    @staticmethod
    async def create_kit(db: AsyncSession, data: KitCreate) -> UsvbKit:
        await UsvbService._ensure_unique_number(db, data.number)

        names = [m.name.lower() for m in data.materials]
        if len(names) != len(set(names)):
            raise ConflictError("Material names must be unique within a kit")

        kit = UsvbKit(**data.model_dump(exclude={"materials"}))
        db.add(kit)
        await db.flush()

        for position, entry in enumerate(data.materials):
            material = UsvbKitMaterial(kit_id=kit.id, position=position, **entry.model_dump())
            _refresh_status(material)
            db.add(material)

        await db.commit()
        await db.refresh(kit)
        logger.info("USVB kit %s created with %d materials", kit.number, len(data.materials))
        return kit

    @staticmethod
    async def update_kit(db: AsyncSession, kit_id: int, data: KitUpdate) -> tuple[UsvbKit, dict]:
        kit = await UsvbService.get_kit(db, kit_id)
        update_data = data.model_dump(exclude_unset=True)
        if "number" in update_data:
            await UsvbService._ensure_unique_number(db, update_data["number"], exclude_id=kit_id)
        for field, value in update_data.items():
            setattr(kit, field, value)
        await db.commit()
        await db.refresh(kit)
        return kit, update_data

    @staticmethod
    async def delete_kit(db: AsyncSession, kit_id: int) -> UsvbKit:
        kit = await UsvbService.get_kit(db, kit_id)
        await db.execute(delete(UsvbKitMaterial).where(UsvbKitMaterial.kit_id == kit_id))
        await db.delete(kit)
        await db.commit()
        return kit

    @staticmethod
    async def kit_status(db: AsyncSession, kit_id: int) -> dict:
        kit = await UsvbService.get_kit(db, kit_id)
        statuses = [m.status for m in await UsvbService.kit_materials(db, kit_id)]
        return {
            "kit_id": kit.id,
            "number": kit.number,
            "status": kit_overall_status(statuses),
            "total_materials": len(statuses),
            "out_of_stock": statuses.count(KitMaterialStatus.OUT),
            "low_stock": statuses.count(KitMaterialStatus.LOW),
        }

    @staticmethod
    async def low_stock_materials(db: AsyncSession) -> List[UsvbKitMaterial]:
        result = await db.execute(
            select(UsvbKitMaterial)
            .where(UsvbKitMaterial.status.in_([KitMaterialStatus.LOW, KitMaterialStatus.OUT]))
            .order_by(UsvbKitMaterial.kit_id, UsvbKitMaterial.position)
        )
        return result.scalars().all()

    @staticmethod
    async def add_material(db: AsyncSession, kit_id: int, data: KitMaterialCreate) -> UsvbKitMaterial:
        await UsvbService.get_kit(db, kit_id)
        await UsvbService._ensure_unique_material(db, kit_id, data.name)

        last = await db.execute(
            select(func.max(UsvbKitMaterial.position)).where(UsvbKitMaterial.kit_id == kit_id)
        )
        last_position = last.scalar()
        material = UsvbKitMaterial(
            kit_id=kit_id,
            position=0 if last_position is None else last_position + 1,
            **data.model_dump()
        )
        _refresh_status(material)
        db.add(material)
        await db.commit()
        await db.refresh(material)
        return material

    @staticmethod
    async def update_material(db: AsyncSession, material_id: int, data: KitMaterialUpdate) -> tuple[UsvbKitMaterial, dict]:
        material = await UsvbService.get_material(db, material_id)
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            await UsvbService._ensure_unique_material(db, material.kit_id, update_data["name"], exclude_id=material_id)
        for field, value in update_data.items():
            setattr(material, field, value)
        _refresh_status(material)
        await db.commit()
        await db.refresh(material)
        return material, update_data

    @staticmethod
    async def set_quantity(db: AsyncSession, material_id: int, quantity: int) -> UsvbKitMaterial:
        material = await UsvbService.get_material(db, material_id)
        material.quantity = quantity
        _refresh_status(material)
        await db.commit()
        await db.refresh(material)
        return material

    @staticmethod
    async def delete_material(db: AsyncSession, material_id: int) -> UsvbKitMaterial:
        material = await UsvbService.get_material(db, material_id)
        kit_id = material.kit_id
        await db.delete(material)
        await db.flush()

        # Close the gap left in the ordering
        for position, remaining in enumerate(await UsvbService.kit_materials(db, kit_id)):
            remaining.position = position

        await db.commit()
        return material

    @staticmethod
    async def move_material(db: AsyncSession, material_id: int, direction: str) -> List[UsvbKitMaterial]:
        material = await UsvbService.get_material(db, material_id)
        materials = await UsvbService.kit_materials(db, material.kit_id)
        index = next(i for i, m in enumerate(materials) if m.id == material.id)
        target = index - 1 if direction == "up" else index + 1

        if target < 0 or target >= len(materials):
            raise InvalidInputError(
                f"Material is already at the {'top' if direction == 'up' else 'bottom'} of the kit",
                details={"material_id": material_id, "direction": direction}
            )

        materials[index], materials[target] = materials[target], materials[index]
        for position, entry in enumerate(materials):
            entry.position = position

        await db.commit()
        return await UsvbService.kit_materials(db, material.kit_id)
