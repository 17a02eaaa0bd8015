"""
Authentication dependencies for FastAPI.

The admin API authenticates with a bearer token; the dashboard endpoints use
the same JWT carried in the session cookie set at login.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.core.config import settings
from backend.app.core.exceptions import AuthenticationError
from backend.app.core.jwt import decode_access_token
from backend.app.db.session import get_db
from backend.app.models.user import User

# HTTP Bearer security scheme; missing headers are reported as 401 below
security = HTTPBearer(auto_error=False)


async def _user_from_token(token: Optional[str], db: AsyncSession) -> User:
    # 1. Decode and validate JWT
    if not token:
        raise AuthenticationError()
    payload = decode_access_token(token)
    if payload is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    # 2. Real-time database check: the account may have been deleted
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("User not found")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency for bearer-token authentication.

    Returns:
        The authenticated User row

    Raises:
        AuthenticationError: 401 if the token is missing, invalid or orphaned
    """
    return await _user_from_token(credentials.credentials if credentials else None, db)


async def get_session_user(
    request: Request,
    db: AsyncSession = Depends(get_db)
) -> User:
    """FastAPI dependency for cookie-session authentication (dashboard)."""
    return await _user_from_token(request.cookies.get(settings.session_cookie_name), db)
