"""
Hero background database model.
"""

from sqlalchemy import Column, Integer, String
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


class HeroBackground(TimestampMixin, Base):
    __tablename__ = "hero_backgrounds"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # Relative to the public storage root, e.g. hero-bg/<uuid>.jpg
    image_path = Column(String(255), nullable=False)

    def __repr__(self):
        return f"<HeroBackground(id={self.id}, image_path='{self.image_path}')>"
