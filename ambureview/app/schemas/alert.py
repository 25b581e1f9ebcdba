"""
Alert schemas (derived, never persisted).
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Literal


class AlertResponse(BaseModel):
    id: str
    type: str
    message: str
    severity: Literal["high", "medium", "low"]
    created_at: datetime
    ambulance_id: Optional[int] = None
    material_id: Optional[int] = None
    space_id: Optional[int] = None
    incident_id: Optional[int] = None

    class Config:
        from_attributes = True
