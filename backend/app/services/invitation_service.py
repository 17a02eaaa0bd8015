"""
Invitation Service.

An invitation is a single-use token that lets someone register with a role
chosen by the inviting administrator.
"""

import logging
import secrets
from datetime import timedelta
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.invitation import Invitation
from backend.app.models.mixins import utcnow
from backend.app.models.user import User
from backend.app.schemas.auth import InvitationRegister
from backend.app.schemas.invitation import InvitationCreate
from backend.app.services.user_service import UserService

logger = logging.getLogger(__name__)


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(48)


def invitation_expiry():
    return utcnow() + timedelta(days=settings.invitation_expire_days)


class InvitationService:

    @staticmethod
    async def get_invitation(db: AsyncSession, invitation_id: int) -> Invitation:
        invitation = await db.get(Invitation, invitation_id)
        if not invitation:
            raise NotFoundError("Invitation", invitation_id)
        return invitation

    @staticmethod
    async def list_pending(db: AsyncSession) -> List[Invitation]:
        result = await db.execute(
            select(Invitation)
            .where(Invitation.used.is_(False))
            .order_by(Invitation.created_at.desc(), Invitation.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def create_invitation(db: AsyncSession, data: InvitationCreate, inviter: User) -> Invitation:
        """
        Invite an email address.

        Raises:
            ValidationError: the address already has an account or a pending invitation
        """
        if await UserService.find_by_email(db, data.email):
            raise ValidationError.for_field("email", "A user with this email already exists.")

        pending = await db.execute(
            select(Invitation).where(Invitation.email == data.email, Invitation.used.is_(False))
        )
        if any(invitation.is_valid for invitation in pending.scalars().all()):
            raise ValidationError.for_field("email", "An invitation has already been sent to this email.")

        invitation = Invitation(
            email=data.email,
            token=generate_invitation_token(),
            role=data.role,
            invited_by=inviter.id,
            expires_at=invitation_expiry(),
        )
        db.add(invitation)
        await db.commit()
        await db.refresh(invitation)
        logger.info(f"Invitation created: id={invitation.id}, role={invitation.role.value}")
        return invitation

    @staticmethod
    async def resend_invitation(db: AsyncSession, invitation: Invitation) -> Invitation:
        """Issue a fresh token and expiry; the old link stops working."""
        if invitation.used:
            raise ValidationError.for_field("invitation", "This invitation has already been used.")
        invitation.token = generate_invitation_token()
        invitation.expires_at = invitation_expiry()
        await db.commit()
        await db.refresh(invitation)
        return invitation

    @staticmethod
    async def cancel_invitation(db: AsyncSession, invitation: Invitation) -> None:
        await db.delete(invitation)
        await db.commit()

    @staticmethod
    async def register(db: AsyncSession, data: InvitationRegister) -> User:
        """
        Create the invited account and consume the invitation.

        Raises:
            ValidationError: unknown, used or expired token
        """
        result = await db.execute(select(Invitation).where(Invitation.token == data.token))
        invitation = result.scalar_one_or_none()
        if not invitation or not invitation.is_valid:
            raise ValidationError.for_field("token", "This invitation link is invalid or has expired.")

        user = await UserService.create_user(db, data.name, invitation.email, data.password, invitation.role)
        invitation.used = True
        await db.commit()
        logger.info(f"Invitation {invitation.id} used by user {user.id}")
        return user
