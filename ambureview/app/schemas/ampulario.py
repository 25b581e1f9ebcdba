"""
Central store (ampulario) schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Optional, Dict
from ambureview.app.models.inventory_enums import MaterialRoute, InventoryStatus
from ambureview.app.schemas.validators import reject_null


class SpaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class SpaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None

    check_not_null = field_validator("name")(reject_null)


class SpaceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AmpularioMaterialCreate(BaseModel):
    space_id: int
    name: str = Field(..., min_length=1, max_length=200)
    dose: str = Field(..., min_length=1, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    route: MaterialRoute
    quantity: int = Field(0, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    batch: Optional[str] = Field(None, max_length=100)


class AmpularioMaterialUpdate(BaseModel):
    space_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    dose: Optional[str] = Field(None, min_length=1, max_length=100)
    unit: Optional[str] = Field(None, max_length=50)
    route: Optional[MaterialRoute] = None
    quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    batch: Optional[str] = Field(None, max_length=100)
    reason: Optional[str] = Field(None, max_length=500)

    check_not_null = field_validator("space_id", "name", "dose", "route", "quantity")(reject_null)


class AmpularioMaterialResponse(BaseModel):
    id: int
    space_id: int
    name: str
    dose: str
    unit: Optional[str]
    route: MaterialRoute
    quantity: int
    min_stock: Optional[int]
    expiry_date: Optional[date]
    batch: Optional[str]
    status: InventoryStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AmpularioStatsResponse(BaseModel):
    total_materials: int
    total_units: int
    by_route: Dict[str, int]
    by_status: Dict[str, int]
    spaces: int
