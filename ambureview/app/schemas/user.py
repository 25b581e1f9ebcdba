"""
User management schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from ambureview.app.models.enums import UserRole
from ambureview.app.schemas.validators import reject_null


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    full_name: Optional[str] = Field(None, max_length=200)
    role: UserRole = Field(default=UserRole.USER, description="User role (defaults to USER)")
    assigned_ambulance_id: Optional[int] = None


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    check_not_null = field_validator("email", "password", "role", "is_active")(reject_null)


class AssignAmbulanceRequest(BaseModel):
    ambulance_id: int
