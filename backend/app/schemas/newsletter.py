"""
Newsletter Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from backend.app.schemas.validators import normalize_email, reject_disposable_email


class NewsletterSubscribeRequest(BaseModel):
    """Schema for POST /newsletter/subscribe."""
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255)

    class Config:
        str_strip_whitespace = True

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return reject_disposable_email(normalize_email(value))


class NewsletterSubscriptionResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    unsubscribed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True
