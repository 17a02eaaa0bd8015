"""
Customer Registration Service.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import NotFoundError
from backend.app.models.customer_registration import CustomerRegistration
from backend.app.schemas.customer_registration import CustomerRegistrationCreate

logger = logging.getLogger(__name__)


class CustomerRegistrationService:

    @staticmethod
    async def create_registration(db: AsyncSession, data: CustomerRegistrationCreate) -> CustomerRegistration:
        registration = CustomerRegistration(**data.model_dump())
        db.add(registration)
        await db.commit()
        await db.refresh(registration)
        logger.info(f"Customer registration stored: id={registration.id}, entry={registration.entry_number}")
        return registration

    @staticmethod
    async def list_registrations(db: AsyncSession, limit: Optional[int] = None) -> List[CustomerRegistration]:
        query = select(CustomerRegistration).order_by(
            CustomerRegistration.created_at.desc(), CustomerRegistration.id.desc()
        )
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_registration(db: AsyncSession, registration_id: int) -> CustomerRegistration:
        registration = await db.get(CustomerRegistration, registration_id)
        if not registration:
            raise NotFoundError("Registration", registration_id)
        return registration

    @staticmethod
    async def delete_registration(db: AsyncSession, registration: CustomerRegistration) -> None:
        await db.delete(registration)
        await db.commit()
