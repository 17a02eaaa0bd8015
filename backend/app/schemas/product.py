"""
Product Pydantic schemas.

Admin writes arrive as multipart forms (images are files); the endpoint
collects the form fields into ``ProductData`` before calling the service.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from backend.app.models.enums import ProductType


class ProductData(BaseModel):
    """Validated product fields shared by create and update."""
    name: str = Field(..., min_length=1, max_length=255)
    product_type: ProductType
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    is_featured: bool = False
    principal_id: Optional[int] = None


class ProductResponse(BaseModel):
    """Schema for admin product responses (stored relative image paths)."""
    id: int
    name: str
    product_type: ProductType
    description: Optional[str]
    images: List[str]
    features: List[str]
    is_featured: bool
    principal_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProductTypeOption(BaseModel):
    value: str
    label: str
