"""
Authentication and invitation flow tests.

Tests cover:
- Login, current user and logout
- Invitation lifecycle (create, resend, cancel)
- Registration through an invitation link
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from backend.app.core.config import settings
from backend.app.models.invitation import Invitation
from backend.app.models.mixins import utcnow
from backend.app.models.user import User


async def _invitation(session_factory, email):
    async with session_factory() as session:
        result = await session.execute(select(Invitation).where(Invitation.email == email))
        return result.scalar_one_or_none()


def _register_payload(token, password="welcome-aboard"):
    return {
        "token": token,
        "name": "Invited Person",
        "password": password,
        "password_confirmation": password,
    }


# TEST 1: Login / me / logout

@pytest.mark.asyncio
async def test_login_returns_token_and_sets_cookie(client, admin):
    response = await client.post("/v1/auth/login", json={"email": "Admin@MHRHCI.ph", "password": "password123"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "admin"
    assert response.cookies.get(settings.session_cookie_name) == body["access_token"]

    me = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "admin@mhrhci.ph"


@pytest.mark.asyncio
@pytest.mark.parametrize("credentials", [
    {"email": "admin@mhrhci.ph", "password": "wrong-password"},
    {"email": "nobody@mhrhci.ph", "password": "password123"},
])
async def test_bad_credentials(client, admin, credentials):
    response = await client.post("/v1/auth/login", json=credentials)
    assert response.status_code == 401
    assert response.json()["message"] == "These credentials do not match our records."


@pytest.mark.asyncio
async def test_me_requires_token(client):
    response = await client.get("/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_of_deleted_user_is_rejected(client, staff, staff_headers, db_session):
    await db_session.delete(staff)
    await db_session.commit()

    response = await client.get("/v1/auth/me", headers=staff_headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    response = await client.post("/v1/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully."
    assert f"{settings.session_cookie_name}=" in response.headers["set-cookie"]


# TEST 2: Invitations

@pytest.mark.asyncio
async def test_admin_invites_staff(client, admin_headers, mailer, session_factory):
    response = await client.post(
        "/v1/admin/invitations", json={"email": "Invitee@MHRHCI.ph"}, headers=admin_headers
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Invitation sent successfully."
    assert body["data"]["role"] == "staff"
    assert "token" not in body["data"]

    invitation = await _invitation(session_factory, "invitee@mhrhci.ph")
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "invitee@mhrhci.ph"
    assert f"register?token={invitation.token}" in mailer.sent[0]["body"]
    assert "Admin User has invited you" in mailer.sent[0]["body"]

    listed = await client.get("/v1/admin/invitations", headers=admin_headers)
    assert listed.json()["meta"]["count"] == 1


@pytest.mark.asyncio
async def test_invitation_without_smtp_reports_mail_failure(client, admin_headers, mailer):
    mailer.configured = False
    response = await client.post(
        "/v1/admin/invitations", json={"email": "quiet@mhrhci.ph"}, headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json()["message"] == "Invitation created, but the email could not be sent."


@pytest.mark.asyncio
async def test_cannot_invite_existing_user_or_twice(client, admin_headers, staff):
    response = await client.post(
        "/v1/admin/invitations", json={"email": "staff@mhrhci.ph"}, headers=admin_headers
    )
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["A user with this email already exists."]

    await client.post("/v1/admin/invitations", json={"email": "twice@mhrhci.ph"}, headers=admin_headers)
    response = await client.post(
        "/v1/admin/invitations", json={"email": "twice@mhrhci.ph"}, headers=admin_headers
    )
    assert response.status_code == 422
    assert response.json()["errors"]["email"] == ["An invitation has already been sent to this email."]


@pytest.mark.asyncio
async def test_admin_cannot_invite_system_admin(client, admin_headers, staff_headers):
    response = await client.post(
        "/v1/admin/invitations", json={"email": "boss@mhrhci.ph", "role": "system_admin"}, headers=admin_headers
    )
    assert response.status_code == 403

    response = await client.post(
        "/v1/admin/invitations", json={"email": "peer@mhrhci.ph"}, headers=staff_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_resend_rotates_token(client, admin_headers, mailer, session_factory):
    created = await client.post(
        "/v1/admin/invitations", json={"email": "again@mhrhci.ph"}, headers=admin_headers
    )
    old_token = (await _invitation(session_factory, "again@mhrhci.ph")).token

    response = await client.post(
        f"/v1/admin/invitations/{created.json()['data']['id']}/resend", headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Invitation resent successfully."

    new_token = (await _invitation(session_factory, "again@mhrhci.ph")).token
    assert new_token != old_token
    assert len(mailer.sent) == 2

    stale = await client.post("/v1/auth/register", json=_register_payload(old_token))
    assert stale.status_code == 422


@pytest.mark.asyncio
async def test_cancel_deletes_invitation(client, admin_headers, session_factory):
    created = await client.post(
        "/v1/admin/invitations", json={"email": "gone@mhrhci.ph"}, headers=admin_headers
    )
    invitation_id = created.json()["data"]["id"]

    response = await client.delete(f"/v1/admin/invitations/{invitation_id}", headers=admin_headers)
    assert response.status_code == 200
    assert await _invitation(session_factory, "gone@mhrhci.ph") is None

    response = await client.delete(f"/v1/admin/invitations/{invitation_id}", headers=admin_headers)
    assert response.status_code == 404


# TEST 3: Registration through an invitation

@pytest.mark.asyncio
async def test_register_consumes_invitation(client, admin_headers, session_factory):
    await client.post(
        "/v1/admin/invitations", json={"email": "newcomer@mhrhci.ph", "role": "admin"}, headers=admin_headers
    )
    token = (await _invitation(session_factory, "newcomer@mhrhci.ph")).token

    response = await client.post("/v1/auth/register", json=_register_payload(token))
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "newcomer@mhrhci.ph"
    assert body["user"]["role"] == "admin"

    invitation = await _invitation(session_factory, "newcomer@mhrhci.ph")
    assert invitation.used is True

    again = await client.post("/v1/auth/register", json=_register_payload(token))
    assert again.status_code == 422
    assert again.json()["errors"]["token"] == ["This invitation link is invalid or has expired."]

    listed = await client.get("/v1/admin/invitations", headers=admin_headers)
    assert listed.json()["data"] == []


@pytest.mark.asyncio
async def test_expired_invitation_cannot_register(client, admin, session_factory):
    async with session_factory() as session:
        session.add(Invitation(
            email="late@mhrhci.ph",
            token="expired-token",
            invited_by=admin.id,
            expires_at=utcnow() - timedelta(minutes=1),
        ))
        await session.commit()

    response = await client.post("/v1/auth/register", json=_register_payload("expired-token"))
    assert response.status_code == 422

    async with session_factory() as session:
        result = await session.execute(select(User).where(User.email == "late@mhrhci.ph"))
        assert result.scalar_one_or_none() is None


@pytest.mark.asyncio
async def test_password_confirmation_must_match(client):
    payload = _register_payload("any-token")
    payload["password_confirmation"] = "something-else"

    response = await client.post("/v1/auth/register", json=payload)
    assert response.status_code == 422
    assert "password_confirmation" in response.json()["errors"]
