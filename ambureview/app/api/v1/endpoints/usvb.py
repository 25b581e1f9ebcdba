"""
USVB kit API Endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.schemas.usvb import (
    KitCreate, KitUpdate, KitResponse, KitStatusResponse,
    KitMaterialCreate, KitMaterialUpdate, KitMaterialQuantityUpdate,
    KitMaterialMoveRequest, KitMaterialResponse
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.usvb_service import UsvbService

router = APIRouter(prefix="/usvb", tags=["USVB Kits"])


# --- Kits ---

@router.post("/kits", response_model=KitResponse, status_code=status.HTTP_201_CREATED)
async def create_kit(
    kit_data: KitCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Create a kit with its initial materials, in the given order."""
    kit = await UsvbService.create_kit(db, kit_data)

    await log_user_action(
        db, current_user, AuditAction.USVB_KIT_CREATED, "usvb_kit", kit.id,
        {"number": kit.number, "name": kit.name, "materials": len(kit_data.materials)}
    )
    return await UsvbService.kit_view(db, kit)


@router.get("/kits", response_model=List[KitResponse])
async def list_kits(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return [await UsvbService.kit_view(db, kit) for kit in await UsvbService.list_kits(db)]


@router.get("/kits/low-stock", response_model=List[KitMaterialResponse])
async def low_stock_materials(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Kit materials currently low or out."""
    return await UsvbService.low_stock_materials(db)


@router.get("/kits/number/{number}", response_model=KitResponse)
async def get_kit_by_number(
    number: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    kit = await UsvbService.get_kit_by_number(db, number)
    return await UsvbService.kit_view(db, kit)


@router.get("/kits/{kit_id}", response_model=KitResponse)
async def get_kit(
    kit_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    kit = await UsvbService.get_kit(db, kit_id)
    return await UsvbService.kit_view(db, kit)


@router.patch("/kits/{kit_id}", response_model=KitResponse)
async def update_kit(
    kit_id: int,
    kit_data: KitUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    kit, changes = await UsvbService.update_kit(db, kit_id, kit_data)
    await log_user_action(db, current_user, AuditAction.USVB_KIT_UPDATED, "usvb_kit", kit.id, jsonable_encoder(changes))
    return await UsvbService.kit_view(db, kit)


@router.delete("/kits/{kit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_kit(
    kit_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    kit = await UsvbService.delete_kit(db, kit_id)
    await log_user_action(db, current_user, AuditAction.USVB_KIT_DELETED, "usvb_kit", kit_id, {"number": kit.number})


@router.get("/kits/{kit_id}/status", response_model=KitStatusResponse)
async def kit_status(
    kit_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """critical if any material is out, warning if any is low, else ok."""
    return await UsvbService.kit_status(db, kit_id)


# --- Kit materials ---

@router.post("/kits/{kit_id}/materials", response_model=KitMaterialResponse, status_code=status.HTTP_201_CREATED)
async def add_material(
    kit_id: int,
    material_data: KitMaterialCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material = await UsvbService.add_material(db, kit_id, material_data)

    await log_user_action(
        db, current_user, AuditAction.USVB_MATERIAL_CREATED, "usvb_material", material.id,
        {"kit_id": kit_id, "name": material.name}
    )
    return KitMaterialResponse.model_validate(material)


@router.patch("/materials/{material_id}", response_model=KitMaterialResponse)
async def update_material(
    material_id: int,
    material_data: KitMaterialUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material, changes = await UsvbService.update_material(db, material_id, material_data)

    await log_user_action(
        db, current_user, AuditAction.USVB_MATERIAL_UPDATED, "usvb_material", material.id, jsonable_encoder(changes)
    )
    return KitMaterialResponse.model_validate(material)


@router.put("/materials/{material_id}/quantity", response_model=KitMaterialResponse)
async def set_material_quantity(
    material_id: int,
    request: KitMaterialQuantityUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a counted quantity during a kit audit (any crew member)."""
    material = await UsvbService.set_quantity(db, material_id, request.quantity)

    await log_user_action(
        db, current_user, AuditAction.USVB_MATERIAL_UPDATED, "usvb_material", material.id,
        {"quantity": request.quantity}
    )
    return KitMaterialResponse.model_validate(material)


@router.post("/materials/{material_id}/move", response_model=List[KitMaterialResponse])
async def move_material(
    material_id: int,
    request: KitMaterialMoveRequest,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Swap the material with its neighbour; returns the kit's new order."""
    return await UsvbService.move_material(db, material_id, request.direction)


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material = await UsvbService.delete_material(db, material_id)

    await log_user_action(
        db, current_user, AuditAction.USVB_MATERIAL_DELETED, "usvb_material", material_id,
        {"kit_id": material.kit_id, "name": material.name}
    )
