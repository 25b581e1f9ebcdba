"""
Checklist template, run and response schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from ambureview.app.models.review_enums import ChecklistPeriodicity, ChecklistItemType, ChecklistStatus
from ambureview.app.schemas.validators import reject_null


class ChecklistItemCreate(BaseModel):
    label: str = Field(..., min_length=1, max_length=255)
    type: ChecklistItemType = ChecklistItemType.OKKO
    category: Optional[str] = Field(None, max_length=100)
    required: bool = True


class ChecklistItemUpdate(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[ChecklistItemType] = None
    category: Optional[str] = Field(None, max_length=100)
    required: Optional[bool] = None

    check_not_null = field_validator("label", "type", "required")(reject_null)


class ChecklistItemResponse(BaseModel):
    id: int
    template_id: int
    label: str
    type: ChecklistItemType
    category: Optional[str]
    required: bool
    position: int

    class Config:
        from_attributes = True


class ChecklistTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    periodicity: ChecklistPeriodicity = ChecklistPeriodicity.DAILY
    active: bool = True
    items: List[ChecklistItemCreate] = []


class ChecklistTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    periodicity: Optional[ChecklistPeriodicity] = None
    active: Optional[bool] = None

    check_not_null = field_validator("name", "periodicity", "active")(reject_null)


class ChecklistTemplateResponse(BaseModel):
    id: int
    name: str
    periodicity: ChecklistPeriodicity
    active: bool
    created_at: datetime
    updated_at: datetime
    items: List[ChecklistItemResponse] = []
    checklists: int = Field(0, description="Checklists run from this template")


class ChecklistCreate(BaseModel):
    ambulance_id: int
    template_id: int
    date: Optional[datetime] = Field(None, description="Defaults to now")
    notes: Optional[str] = None


class ChecklistUpdate(BaseModel):
    status: Optional[ChecklistStatus] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None

    check_not_null = field_validator("status", "date")(reject_null)


class ChecklistAnswer(BaseModel):
    value: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class ChecklistAnswerResponse(BaseModel):
    id: int
    checklist_id: int
    item_id: int
    value: Optional[str]
    notes: Optional[str]
    updated_at: datetime

    class Config:
        from_attributes = True


class ChecklistDetail(BaseModel):
    """A checklist run with its template items and the answers so far."""
    id: int
    template_id: int
    template_name: str
    ambulance_id: int
    user_id: Optional[int]
    date: datetime
    status: ChecklistStatus
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    items: List[ChecklistItemResponse] = []
    responses: List[ChecklistAnswerResponse] = []
