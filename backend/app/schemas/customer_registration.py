"""
Customer registration Pydantic schemas.

Submitted by the public registration form; all text is trimmed and the email
lowercased before it is stored.
"""

from pydantic import AliasChoices, BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from backend.app.schemas.validators import normalize_email


class CustomerRegistrationCreate(BaseModel):
    """Schema for POST /customer-registrations."""
    entry_number: str = Field(..., pattern=r"^[0-9]{1,10}$")
    name: str = Field(..., min_length=2, max_length=100)
    hospital: str = Field(..., min_length=2, max_length=120)
    address: str = Field(..., min_length=5, max_length=200)
    position: str = Field(..., min_length=2, max_length=80)
    contact_number: str = Field(..., pattern=r"^09[0-9]{9}$")
    email: str = Field(..., max_length=255)
    # Older form builds send this field as "remarks"
    products_interest: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("products_interest", "remarks"),
    )

    class Config:
        str_strip_whitespace = True

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("products_interest")
    @classmethod
    def empty_interest_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class CustomerRegistrationResponse(BaseModel):
    id: int
    entry_number: str
    name: str
    hospital: str
    address: str
    position: str
    contact_number: str
    email: str
    products_interest: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
