"""
Incident schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, Dict
from ambureview.app.models.incident_enums import IncidentType, IncidentSeverity, IncidentStatus
from ambureview.app.schemas.validators import reject_null


class IncidentCreate(BaseModel):
    ambulance_id: int
    inventory_item_id: Optional[int] = None
    type: IncidentType
    severity: IncidentSeverity = IncidentSeverity.MEDIUM
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    responsible_id: Optional[int] = Field(None, description="Defaults to the creator")
    due_date: Optional[datetime] = None


class IncidentUpdate(BaseModel):
    status: Optional[IncidentStatus] = None
    severity: Optional[IncidentSeverity] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    responsible_id: Optional[int] = None
    due_date: Optional[datetime] = None

    check_not_null = field_validator("status", "severity", "title")(reject_null)


class IncidentResponse(BaseModel):
    id: int
    ambulance_id: Optional[int]
    inventory_item_id: Optional[int]
    type: IncidentType
    severity: IncidentSeverity
    status: IncidentStatus
    title: str
    description: Optional[str]
    responsible_id: Optional[int]
    created_by_id: Optional[int]
    due_date: Optional[datetime]
    resolved_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IncidentStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_type: Dict[str, int]
    by_severity: Dict[str, int]
    overdue: int
