"""
Configuration store schemas.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional


class StorageLocationsPayload(BaseModel):
    locations: List[str] = Field(..., description="Ordered list of storage location names")


class MechanicalReviewTemplateItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)


class MechanicalReviewTemplatePayload(BaseModel):
    items: List[MechanicalReviewTemplateItem]


class NotificationEmailPayload(BaseModel):
    email: Optional[EmailStr] = None
