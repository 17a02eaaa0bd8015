"""
Invitation API endpoints (Admin / System Admin).

Invitees receive a single-use registration link by mail and register
through POST /auth/register.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.invitation import InvitationCreate, InvitationResponse
from backend.app.core.guards import UserManagementGuard, require_admin_privileges
from backend.app.services.email_client import EmailClient, get_mailer
from backend.app.services.invitation_service import InvitationService
from backend.app.services.notification_service import NotificationService

router = APIRouter(prefix="/admin/invitations", tags=["Admin Invitations"])

user_guard = UserManagementGuard()


def _invitation_payload(invitation) -> dict:
    return InvitationResponse.model_validate(invitation).model_dump(mode="json")


@router.get("")
async def list_invitations(
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    """Invitations that have not been used yet (expired ones included)."""
    invitations = await InvitationService.list_pending(db)
    return success_response(
        [_invitation_payload(invitation) for invitation in invitations],
        meta={"count": len(invitations)},
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_invitation(
    data: InvitationCreate,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    mailer: EmailClient = Depends(get_mailer),
):
    user_guard.ensure_can_assign_role(current_user, data.role)
    invitation = await InvitationService.create_invitation(db, data, current_user)
    sent = await NotificationService.send_invitation(mailer, invitation, current_user.name)
    return success_response(
        _invitation_payload(invitation),
        message="Invitation sent successfully." if sent else "Invitation created, but the email could not be sent.",
    )


@router.post("/{invitation_id}/resend")
async def resend_invitation(
    invitation_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    mailer: EmailClient = Depends(get_mailer),
):
    """Rotate the token and expiry, then mail the new link."""
    invitation = await InvitationService.get_invitation(db, invitation_id)
    user_guard.ensure_can_assign_role(current_user, invitation.role)
    invitation = await InvitationService.resend_invitation(db, invitation)
    sent = await NotificationService.send_invitation(mailer, invitation, current_user.name)
    return success_response(
        _invitation_payload(invitation),
        message="Invitation resent successfully." if sent else "Invitation renewed, but the email could not be sent.",
    )


@router.delete("/{invitation_id}")
async def cancel_invitation(
    invitation_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    invitation = await InvitationService.get_invitation(db, invitation_id)
    user_guard.ensure_can_assign_role(current_user, invitation.role)
    await InvitationService.cancel_invitation(db, invitation)
    return success_response(message="Invitation cancelled successfully.")
