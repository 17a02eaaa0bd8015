"""
User management Pydantic schemas.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class UserCreate(BaseModel):
    """Schema for creating a user from the admin panel."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.STAFF

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class UserUpdate(BaseModel):
    """Schema for updating a user; omitted fields stay unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else value


class UserResponse(BaseModel):
    """Schema for user information response."""
    id: int
    name: str
    email: str
    role: UserRole
    role_label: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            role_label=user.role.display_name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RoleOption(BaseModel):
    value: UserRole
    label: str
