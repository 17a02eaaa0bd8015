"""
Invitation Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class InvitationCreate(BaseModel):
    email: EmailStr
    role: UserRole = UserRole.STAFF

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class InvitationResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    invited_by: Optional[int]
    expires_at: datetime
    used: bool
    created_at: datetime

    class Config:
        from_attributes = True
