"""
Review (workflow stage record) schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from ambureview.app.models.review_enums import (
    ChecklistItemStatus, FuelLevel, TyrePressureStatus, PresenceStatus, DeviceStatus
)


class DailyCheckCreate(BaseModel):
    fuel_level: FuelLevel
    tyre_pressure: TyrePressureStatus
    documents: PresenceStatus
    ipad_status: DeviceStatus
    pax_bag: Optional[PresenceStatus] = None
    pax_folder: Optional[PresenceStatus] = None
    front_left_notes: Optional[str] = None
    front_right_notes: Optional[str] = None
    rear_left_notes: Optional[str] = None
    rear_right_notes: Optional[str] = None
    notes: Optional[str] = None


class DailyCheckResponse(DailyCheckCreate):
    id: int
    ambulance_id: int
    performed_by_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class ChecklistItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = None
    status: ChecklistItemStatus = ChecklistItemStatus.OK
    notes: Optional[str] = None


class MechanicalReviewCreate(BaseModel):
    """An empty item list expands the configured review template."""
    items: List[ChecklistItem] = []
    notes: Optional[str] = None


class MechanicalReviewResponse(BaseModel):
    id: int
    ambulance_id: int
    performed_by_id: Optional[int]
    items: List[ChecklistItem]
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class CleaningLogCreate(BaseModel):
    materials_used: List[str] = []
    observations: Optional[str] = None


class CleaningLogResponse(BaseModel):
    id: int
    ambulance_id: int
    performed_by_id: Optional[int]
    materials_used: Optional[List[str]]
    observations: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
