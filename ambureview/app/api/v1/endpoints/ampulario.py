"""
Ampulario (central medication store) API Endpoints.

Any authenticated user can read the store; spaces and materials are managed
by coordinators and admins.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.models.inventory_enums import MaterialRoute
from ambureview.app.schemas.alert import AlertResponse
from ambureview.app.schemas.ampulario import (
    SpaceCreate, SpaceUpdate, SpaceResponse,
    AmpularioMaterialCreate, AmpularioMaterialUpdate, AmpularioMaterialResponse,
    AmpularioStatsResponse
)
from ambureview.app.schemas.material import InventoryLogResponse
from ambureview.app.services.ampulario_service import SpaceService, AmpularioService
from ambureview.app.services.audit import log_user_action, AuditAction

router = APIRouter(prefix="/ampulario", tags=["Ampulario"])


# --- Spaces ---

@router.post("/spaces", response_model=SpaceResponse, status_code=status.HTTP_201_CREATED)
async def create_space(
    space_data: SpaceCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    space = await SpaceService.create(db, space_data)
    await log_user_action(db, current_user, AuditAction.SPACE_CREATED, "space", space.id, {"name": space.name})
    return SpaceResponse.model_validate(space)


@router.get("/spaces", response_model=List[SpaceResponse])
async def list_spaces(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await SpaceService.list(db)


@router.get("/spaces/{space_id}", response_model=SpaceResponse)
async def get_space(
    space_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await SpaceService.get(db, space_id)


@router.patch("/spaces/{space_id}", response_model=SpaceResponse)
async def update_space(
    space_id: int,
    space_data: SpaceUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    space, changes = await SpaceService.update(db, space_id, space_data)
    await log_user_action(db, current_user, AuditAction.SPACE_UPDATED, "space", space.id, jsonable_encoder(changes))
    return SpaceResponse.model_validate(space)


@router.delete("/spaces/{space_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_space(
    space_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Only empty spaces can be deleted (409 otherwise)."""
    space = await SpaceService.delete(db, space_id)
    await log_user_action(db, current_user, AuditAction.SPACE_DELETED, "space", space_id, {"name": space.name})


# --- Materials ---

@router.get("/materials/expired", response_model=List[AmpularioMaterialResponse])
async def expired_materials(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.expired(db, date.today())


@router.get("/materials/expiring", response_model=List[AmpularioMaterialResponse])
async def expiring_materials(
    days: int = Query(30, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.expiring(db, date.today(), days)


@router.get("/materials/low-stock", response_model=List[AmpularioMaterialResponse])
async def low_stock_materials(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.low_stock(db)


@router.get("/materials/stats", response_model=AmpularioStatsResponse)
async def material_stats(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.stats(db)


@router.post("/materials", response_model=AmpularioMaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    material_data: AmpularioMaterialCreate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Name and dose must be unique within the space."""
    material = await AmpularioService.create(db, material_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.AMPULARIO_MATERIAL_CREATED, "ampulario_material", material.id,
        {"space_id": material.space_id, "name": material.name, "dose": material.dose, "quantity": material.quantity}
    )
    return AmpularioMaterialResponse.model_validate(material)


@router.get("/materials", response_model=List[AmpularioMaterialResponse])
async def list_materials(
    space_id: Optional[int] = None,
    route: Optional[MaterialRoute] = None,
    name: Optional[str] = Query(None, description="Case-insensitive substring"),
    expiring: bool = Query(False, description="Only materials expiring within 30 days"),
    low_stock: bool = Query(False, description="Only materials at or below their minimum"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.list(
        db, date.today(), space_id, route, name, expiring, low_stock, skip, limit
    )


@router.get("/materials/{material_id}", response_model=AmpularioMaterialResponse)
async def get_material(
    material_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.get(db, material_id)


@router.patch("/materials/{material_id}", response_model=AmpularioMaterialResponse)
async def update_material(
    material_id: int,
    material_data: AmpularioMaterialUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material, changes = await AmpularioService.update(db, material_id, material_data, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.AMPULARIO_MATERIAL_UPDATED, "ampulario_material", material.id,
        jsonable_encoder(changes)
    )
    return AmpularioMaterialResponse.model_validate(material)


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: int,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    material = await AmpularioService.delete(db, material_id)

    await log_user_action(
        db, current_user, AuditAction.AMPULARIO_MATERIAL_DELETED, "ampulario_material", material_id,
        {"name": material.name, "dose": material.dose}
    )


# --- Derived views ---

@router.get("/alerts", response_model=List[AlertResponse])
async def central_alerts(
    space_id: Optional[int] = None,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Expiry and low-stock alerts for the central store."""
    alerts = await AmpularioService.alerts(db, date.today(), space_id)
    return [AlertResponse.model_validate(alert) for alert in alerts]


@router.get("/logs", response_model=List[InventoryLogResponse])
async def central_logs(
    material_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await AmpularioService.logs(db, material_id, limit)
