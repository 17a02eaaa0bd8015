"""
Announcement Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class AnnouncementCreate(BaseModel):
    """Schema for creating an announcement."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class AnnouncementUpdate(BaseModel):
    """Schema for updating an announcement."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
