"""
Announcement database model.
"""

from sqlalchemy import Column, Integer, String, Text
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


class Announcement(TimestampMixin, Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Announcement(id={self.id}, title='{self.title}')>"
