"""
Invitation database model.

A single-use capability token that lets an invited person register an
account with a preassigned role.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from backend.app.db.session import Base
from backend.app.models.enums import UserRole
from backend.app.models.mixins import TimestampMixin, utcnow


class Invitation(TimestampMixin, Base):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), index=True, nullable=False)
    token = Column(String(128), unique=True, index=True, nullable=False)
    role = Column(
        Enum(UserRole, name="invitation_role", values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.STAFF,
        nullable=False,
    )
    invited_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, default=False, nullable=False)

    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # SQLite drops tzinfo; values are stored as UTC
            expires_at = expires_at.replace(tzinfo=utcnow().tzinfo)
        return expires_at <= utcnow()

    @property
    def is_valid(self) -> bool:
        return not self.used and not self.is_expired

    def __repr__(self):
        return f"<Invitation(id={self.id}, email='{self.email}', role='{self.role.value}', used={self.used})>"
