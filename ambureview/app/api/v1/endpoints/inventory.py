"""
Material catalogue and ambulance inventory API endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES, AmbulanceAccessGuard
from ambureview.app.db.session import get_db
from ambureview.app.models.inventory_enums import InventoryStatus, MaterialKind
from ambureview.app.schemas.material import (
    MaterialCreate, MaterialUpdate, MaterialResponse,
    InventoryItemCreate, InventoryItemUpdate, InventoryItemResponse,
    InventoryLogResponse, InventoryStatsResponse
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.inventory_service import MaterialService, InventoryService

materials_router = APIRouter(prefix="/materials", tags=["Materials"])
router = APIRouter(prefix="/inventory", tags=["Inventory"])
ambulance_guard = AmbulanceAccessGuard()


def _scope(current_user: dict, ambulance_id: Optional[int]) -> Optional[int]:
    """Ambulance filter for list queries; crew users are pinned to their own."""
    assigned = ambulance_guard.filter_by_access(current_user)
    if assigned is None:
        return ambulance_id
    if ambulance_id is not None:
        ambulance_guard.enforce(ambulance_id, current_user)
    return assigned


# --- Material catalogue ---

@materials_router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    material_data: MaterialCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material = await MaterialService.create(db, material_data)

    await log_user_action(
        db, current_user, AuditAction.MATERIAL_CREATED, "material", material.id,
        {"name": material.name, "kind": material.kind.value}
    )
    return MaterialResponse.model_validate(material)


@materials_router.get("", response_model=List[MaterialResponse])
async def list_materials(
    kind: Optional[MaterialKind] = None,
    category: Optional[str] = None,
    critical: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MaterialService.list(db, kind, category, critical, skip, limit)


@materials_router.get("/search", response_model=List[MaterialResponse])
async def search_materials(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Name or reference substring, case-insensitive."""
    return await MaterialService.search(db, q, limit)


@materials_router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(
    material_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MaterialService.get(db, material_id)


@materials_router.patch("/{material_id}", response_model=MaterialResponse)
async def update_material(
    material_id: int,
    material_data: MaterialUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material, changes = await MaterialService.update(db, material_id, material_data)

    await log_user_action(
        db, current_user, AuditAction.MATERIAL_UPDATED, "material", material.id, jsonable_encoder(changes)
    )
    return MaterialResponse.model_validate(material)


@materials_router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Refused with 409 while any ambulance still stocks the material."""
    material = await MaterialService.delete(db, material_id)

    await log_user_action(
        db, current_user, AuditAction.MATERIAL_DELETED, "material", material_id, {"name": material.name}
    )


# --- Ambulance inventory ---

@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def low_stock_items(
    ambulance_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InventoryService.low_stock(db, _scope(current_user, ambulance_id))


@router.get("/expired", response_model=List[InventoryItemResponse])
async def expired_items(
    ambulance_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InventoryService.expired(db, date.today(), _scope(current_user, ambulance_id))


@router.get("/expiring", response_model=List[InventoryItemResponse])
async def expiring_items(
    days: int = Query(30, ge=0, le=365),
    ambulance_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Items expiring between today and `days` from now."""
    return await InventoryService.expiring(db, date.today(), days, _scope(current_user, ambulance_id))


@router.get("/stats", response_model=InventoryStatsResponse)
async def inventory_stats(
    ambulance_id: Optional[int] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InventoryService.stats(db, date.today(), _scope(current_user, ambulance_id))


@router.post("", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: InventoryItemCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stock a material into an ambulance. Status is derived, never accepted."""
    ambulance_guard.enforce(item_data.ambulance_id, current_user)
    item = await InventoryService.create(db, item_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.INVENTORY_ITEM_CREATED, "inventory_item", item.id,
        {"ambulance_id": item.ambulance_id, "material_id": item.material_id, "quantity": item.quantity}
    )
    return InventoryItemResponse.model_validate(item)


@router.get("", response_model=List[InventoryItemResponse])
async def list_items(
    ambulance_id: Optional[int] = None,
    material_id: Optional[int] = None,
    status: Optional[InventoryStatus] = None,
    location: Optional[str] = Query(None, description="Case-insensitive substring"),
    critical: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await InventoryService.list(
        db, _scope(current_user, ambulance_id), material_id, status, location, critical, skip, limit
    )


@router.get("/{item_id}", response_model=InventoryItemResponse)
async def get_item(
    item_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    item = await InventoryService.get(db, item_id)
    ambulance_guard.enforce(item.ambulance_id, current_user)
    return item


@router.patch("/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: int,
    item_data: InventoryItemUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Quantity changes are logged with the optional `reason`."""
    item = await InventoryService.get(db, item_id)
    ambulance_guard.enforce(item.ambulance_id, current_user)
    item, changes = await InventoryService.update(db, item_id, item_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.INVENTORY_ITEM_UPDATED, "inventory_item", item.id, jsonable_encoder(changes)
    )
    return InventoryItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    item = await InventoryService.delete(db, item_id)

    await log_user_action(
        db, current_user, AuditAction.INVENTORY_ITEM_DELETED, "inventory_item", item_id,
        {"ambulance_id": item.ambulance_id, "material_id": item.material_id}
    )


@router.get("/{item_id}/logs", response_model=List[InventoryLogResponse])
async def item_logs(
    item_id: int,
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    item = await InventoryService.get(db, item_id)
    ambulance_guard.enforce(item.ambulance_id, current_user)
    return await InventoryService.logs(db, item_id, limit)
