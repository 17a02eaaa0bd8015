"""
User database model.

Accounts for the admin panel. Authorization hierarchy:
system_admin > admin > staff.
"""

from sqlalchemy import Column, Integer, String, Enum
from backend.app.db.session import Base
from backend.app.models.enums import UserRole
from backend.app.models.mixins import TimestampMixin


class User(TimestampMixin, Base):
    """User model for authentication and user management."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.STAFF,
        nullable=False,
    )

    @property
    def is_system_admin(self) -> bool:
        return self.role == UserRole.SYSTEM_ADMIN

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_admin_privileges(self) -> bool:
        return self.role.has_admin_privileges

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
