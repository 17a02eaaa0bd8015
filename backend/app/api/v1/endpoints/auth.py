"""
Authentication API endpoints.

Provides login, logout, current-user and invitation-based registration.
Login returns a bearer token for the admin API and also sets it as the
session cookie used by the dashboard.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.auth import UserLogin, InvitationRegister, TokenResponse
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.user import UserResponse
from backend.app.core.config import settings
from backend.app.core.jwt import create_access_token
from backend.app.core.dependencies import get_current_user
from backend.app.core.rate_limit import throttle
from backend.app.services.invitation_service import InvitationService
from backend.app.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(user: User, response: Response) -> TokenResponse:
    access_token = create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    })
    response.set_cookie(
        key=settings.session_cookie_name,
        value=access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return TokenResponse(access_token=access_token, user=UserResponse.from_user(user))


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(throttle("auth.login", 5))])
async def login(
    credentials: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    The token is also set as an HttpOnly session cookie.
    """
    user = await UserService.authenticate(db, credentials.email, credentials.password)
    return _issue_token(user, response)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: InvitationRegister,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Register through an invitation link.

    Email and role are taken from the invitation, which is consumed.
    """
    user = await InvitationService.register(db, data)
    return _issue_token(user, response)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out successfully.")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current authenticated user information."""
    return UserResponse.from_user(current_user)
