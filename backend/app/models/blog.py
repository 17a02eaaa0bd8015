"""
Blog database model.
"""

from sqlalchemy import Column, Integer, String, Text, JSON
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


class Blog(TimestampMixin, Base):
    __tablename__ = "blogs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    content = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<Blog(id={self.id}, title='{self.title}')>"
