"""
Principal Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class PrincipalData(BaseModel):
    """Validated principal fields shared by create and update."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_featured: bool = False


class PrincipalResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    logo: Optional[str]
    is_featured: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
