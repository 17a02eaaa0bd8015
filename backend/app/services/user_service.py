"""
User Service.

Account management for the admin panel. Authorization decisions live in
``UserManagementGuard``; this service only reads and writes rows.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from backend.app.core.security import get_password_hash, verify_password
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.user import UserCreate, UserUpdate
from backend.app.services.pagination import paginate, search_clause

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    async def get_user(db: AsyncSession, user_id: int) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    async def find_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            AuthenticationError: unknown email or wrong password (same message for both)
        """
        user = await UserService.find_by_email(db, email)
        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("These credentials do not match our records.")
        return user

    @staticmethod
    async def list_users(
        db: AsyncSession,
        roles: List[UserRole],
        search: Optional[str],
        page: int,
        per_page: int,
    ):
        query = select(User).where(User.role.in_(roles))
        if search:
            query = query.where(search_clause(search, User.name, User.email))
        query = query.order_by(User.created_at.desc(), User.id.desc())
        return await paginate(db, query, page, per_page)

    @staticmethod
    async def _ensure_unique_email(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> None:
        existing = await UserService.find_by_email(db, email)
        if existing and existing.id != exclude_id:
            raise ValidationError.for_field("email", "The email has already been taken.")

    @staticmethod
    async def create_user(
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.STAFF,
    ) -> User:
        await UserService._ensure_unique_email(db, email)
        user = User(
            name=name,
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            role=role,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"User created: id={user.id}, role={user.role.value}")
        return user

    @staticmethod
    async def create_from_request(db: AsyncSession, data: UserCreate) -> User:
        return await UserService.create_user(db, data.name, data.email, data.password, data.role)

    @staticmethod
    async def update_user(db: AsyncSession, user: User, data: UserUpdate) -> User:
        if data.email is not None and data.email != user.email:
            await UserService._ensure_unique_email(db, data.email, exclude_id=user.id)
            user.email = data.email
        if data.name is not None:
            user.name = data.name
        if data.role is not None:
            user.role = data.role
        if data.password:
            user.hashed_password = get_password_hash(data.password)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user: User) -> None:
        user_id = user.id
        await db.delete(user)
        await db.commit()
        logger.info(f"User deleted: id={user_id}")
