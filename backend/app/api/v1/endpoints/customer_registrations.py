"""
Customer registration API endpoints.

The public event registration form posts here; staff read submissions and
admins remove them.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.customer_registration import (
    CustomerRegistrationCreate,
    CustomerRegistrationResponse,
)
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_admin_privileges
from backend.app.core.rate_limit import throttle
from backend.app.services.customer_registration_service import CustomerRegistrationService

router = APIRouter(prefix="/customer-registrations", tags=["Customer Registrations"])


def _registration_payload(registration) -> dict:
    return CustomerRegistrationResponse.model_validate(registration).model_dump(mode="json")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle("customer-registrations.store", 10))],
)
async def create_registration(
    data: CustomerRegistrationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Store a submission from the public registration form."""
    registration = await CustomerRegistrationService.create_registration(db, data)
    return success_response(
        _registration_payload(registration),
        message="Registration submitted successfully.",
    )


@router.get("")
async def list_registrations(
    limit: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    registrations = await CustomerRegistrationService.list_registrations(db, limit)
    return success_response(
        [_registration_payload(registration) for registration in registrations],
        meta={"count": len(registrations), "limit": limit},
    )


@router.get("/{registration_id}")
async def get_registration(
    registration_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    registration = await CustomerRegistrationService.get_registration(db, registration_id)
    return success_response(_registration_payload(registration))


@router.delete("/{registration_id}")
async def delete_registration(
    registration_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    registration = await CustomerRegistrationService.get_registration(db, registration_id)
    await CustomerRegistrationService.delete_registration(db, registration)
    return success_response(message="Registration deleted successfully.")
