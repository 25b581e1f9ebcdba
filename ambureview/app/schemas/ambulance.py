"""
Ambulance and workflow schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Dict
from ambureview.app.schemas.validators import reject_null


class AmbulanceCreate(BaseModel):
    """Schema for registering a new ambulance."""
    code: str = Field(..., min_length=1, max_length=50, description="Internal fleet code")
    plate: str = Field(..., min_length=1, max_length=20, description="License plate")
    name: Optional[str] = Field(None, max_length=200)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    last_known_kilometers: Optional[int] = Field(None, ge=0)


class AmbulanceUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    plate: Optional[str] = Field(None, min_length=1, max_length=20)
    name: Optional[str] = Field(None, max_length=200)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    vehicle_type: Optional[str] = Field(None, max_length=50)

    check_not_null = field_validator("code", "plate")(reject_null)


class AmbulanceResponse(BaseModel):
    id: int
    code: str
    plate: str
    name: Optional[str]
    model: Optional[str]
    year: Optional[int]
    vehicle_type: Optional[str]
    last_known_kilometers: Optional[int]
    last_check_in_by_user_id: Optional[int]
    last_check_in_date: Optional[datetime]
    daily_check_completed: bool
    mechanical_review_completed: bool
    cleaning_completed: bool
    inventory_completed: bool
    last_daily_check: Optional[datetime]
    last_mechanical_review: Optional[datetime]
    last_cleaning: Optional[datetime]
    last_inventory_check: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CheckInRequest(BaseModel):
    kilometers: int = Field(..., ge=0, description="Odometer reading")


class StageUpdateRequest(BaseModel):
    status: bool = Field(..., description="True to complete the stage, False to invalidate it")


class StageState(BaseModel):
    completed: bool
    last_completed_at: Optional[datetime]


class WorkflowResponse(BaseModel):
    ambulance_id: int
    stages: Dict[str, StageState]
    unlocked_screen: str


class AmbulanceStatusResponse(BaseModel):
    ambulance_id: int
    workflow: WorkflowResponse
    expired_items: int
    low_stock_items: int
    active_incidents: int
