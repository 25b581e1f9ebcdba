"""
USVB kit schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List, Literal
from ambureview.app.models.inventory_enums import KitCategory, KitMaterialStatus
from ambureview.app.schemas.validators import reject_null


class KitMaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(0, ge=0)
    target_quantity: int = Field(..., ge=0)


class KitMaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    quantity: Optional[int] = Field(None, ge=0)
    target_quantity: Optional[int] = Field(None, ge=0)

    check_not_null = field_validator("name", "quantity", "target_quantity")(reject_null)


class KitMaterialQuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=0)


class KitMaterialMoveRequest(BaseModel):
    direction: Literal["up", "down"]


class KitMaterialResponse(BaseModel):
    id: int
    kit_id: int
    name: str
    position: int
    quantity: int
    target_quantity: int
    status: KitMaterialStatus
    updated_at: datetime

    class Config:
        from_attributes = True


class KitCreate(BaseModel):
    number: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    category: KitCategory = KitCategory.OTHER
    description: Optional[str] = None
    materials: List[KitMaterialCreate] = []


class KitUpdate(BaseModel):
    number: Optional[int] = Field(None, ge=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[KitCategory] = None
    description: Optional[str] = None

    check_not_null = field_validator("number", "name", "category")(reject_null)


class KitResponse(BaseModel):
    id: int
    number: int
    name: str
    category: KitCategory
    description: Optional[str]
    created_at: datetime
    updated_at: datetime
    materials: List[KitMaterialResponse] = []


class KitStatusResponse(BaseModel):
    kit_id: int
    number: int
    status: Literal["ok", "warning", "critical"]
    total_materials: int
    out_of_stock: int
    low_stock: int
