"""
Material catalogue and ambulance inventory schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Optional, Dict
from ambureview.app.models.inventory_enums import MaterialKind, InventoryStatus, EquipmentStatus
from ambureview.app.schemas.validators import reject_null


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    reference: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    kind: MaterialKind = MaterialKind.CONSUMABLE
    critical: bool = False
    description: Optional[str] = None


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    reference: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    kind: Optional[MaterialKind] = None
    critical: Optional[bool] = None
    description: Optional[str] = None

    check_not_null = field_validator("name", "kind", "critical")(reject_null)


class MaterialResponse(BaseModel):
    id: int
    name: str
    reference: Optional[str]
    category: Optional[str]
    kind: MaterialKind
    critical: bool
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InventoryItemCreate(BaseModel):
    """
    Status is never accepted from clients; it is derived from quantity,
    min_stock and expiry_date.
    """
    ambulance_id: int
    material_id: int
    quantity: int = Field(0, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    batch: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    serial_number: Optional[str] = Field(None, max_length=100)
    equipment_status: Optional[EquipmentStatus] = None


class InventoryItemUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    batch: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    serial_number: Optional[str] = Field(None, max_length=100)
    equipment_status: Optional[EquipmentStatus] = None
    reason: Optional[str] = Field(None, max_length=500, description="Reason logged with a quantity change")

    check_not_null = field_validator("quantity")(reject_null)


class InventoryItemResponse(BaseModel):
    id: int
    ambulance_id: int
    material_id: int
    quantity: int
    min_stock: Optional[int]
    expiry_date: Optional[date]
    batch: Optional[str]
    location: Optional[str]
    status: InventoryStatus
    serial_number: Optional[str]
    equipment_status: Optional[EquipmentStatus]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InventoryLogResponse(BaseModel):
    id: int
    inventory_item_id: Optional[int]
    ampulario_material_id: Optional[int]
    diff: int
    quantity_before: int
    quantity_after: int
    reason: Optional[str]
    user_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryStatsResponse(BaseModel):
    total_items: int
    total_units: int
    by_status: Dict[str, int]
    critical_items: int
    expiring_within_30_days: int
