"""
Blog Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class BlogData(BaseModel):
    """Validated blog fields shared by create and update."""
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None


class BlogResponse(BaseModel):
    id: int
    title: str
    content: Optional[str]
    images: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
