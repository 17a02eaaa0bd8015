"""
Product database model.

Catalog item with up to five ordered image paths and an ordered list of
feature strings, optionally owned by a principal.
"""

from sqlalchemy import Column, Integer, String, Boolean, Text, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.enums import ProductType
from backend.app.models.mixins import TimestampMixin


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    product_type = Column(
        Enum(ProductType, name="product_type", values_callable=lambda types: [t.value for t in types]),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    features = Column(JSON, nullable=False, default=list)
    is_featured = Column(Boolean, default=False, nullable=False, index=True)

    # Ownership - Product optionally belongs to one Principal
    principal_id = Column(Integer, ForeignKey("principals.id", ondelete="SET NULL"), nullable=True, index=True)
    principal = relationship("Principal", back_populates="products", lazy="noload")

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', type='{self.product_type.value}')>"
