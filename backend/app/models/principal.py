"""
Principal (brand partner) database model.
"""

from sqlalchemy import Column, Integer, String, Boolean, Text
from sqlalchemy.orm import relationship
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


class Principal(TimestampMixin, Base):
    """
    A brand partner whose products are distributed.

    Deleting a principal keeps its products and clears their principal_id.
    """
    __tablename__ = "principals"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    logo = Column(String(500), nullable=True)
    is_featured = Column(Boolean, default=False, nullable=False, index=True)

    products = relationship("Product", back_populates="principal", lazy="noload", passive_deletes=True)

    def __repr__(self):
        return f"<Principal(id={self.id}, name='{self.name}', featured={self.is_featured})>"
