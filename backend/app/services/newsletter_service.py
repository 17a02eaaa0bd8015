"""
Newsletter Service.

Subscriptions are created once per email address and deactivated through the
capability token carried in every newsletter mail.
"""

import enum
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ValidationError
from backend.app.models.mixins import utcnow
from backend.app.models.newsletter_subscription import NewsletterSubscription, generate_unsubscribe_token
from backend.app.schemas.newsletter import NewsletterSubscribeRequest

logger = logging.getLogger(__name__)


class UnsubscribeOutcome(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    ALREADY_UNSUBSCRIBED = "already_unsubscribed"
    INVALID = "invalid"


UNSUBSCRIBE_MESSAGES = {
    UnsubscribeOutcome.UNSUBSCRIBED: "You have been unsubscribed from our newsletter. You can subscribe again anytime.",
    UnsubscribeOutcome.ALREADY_UNSUBSCRIBED: "You are already unsubscribed from our newsletter.",
    UnsubscribeOutcome.INVALID: "This unsubscribe link is invalid or has already been used.",
}


class NewsletterService:

    @staticmethod
    async def find_by_email(db: AsyncSession, email: str) -> Optional[NewsletterSubscription]:
        result = await db.execute(select(NewsletterSubscription).where(NewsletterSubscription.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def subscribe(db: AsyncSession, data: NewsletterSubscribeRequest) -> NewsletterSubscription:
        """
        Create a subscription, or reactivate one that was cancelled earlier.

        Raises:
            ValidationError: the email already has an active subscription
        """
        subscription = await NewsletterService.find_by_email(db, data.email)
        if subscription and subscription.is_subscribed:
            raise ValidationError.for_field("email", "The email has already been taken.")

        if subscription:
            subscription.first_name = data.first_name
            subscription.last_name = data.last_name
            subscription.unsubscribed_at = None
            subscription.unsubscribe_token = generate_unsubscribe_token()
        else:
            subscription = NewsletterSubscription(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
            )
            db.add(subscription)
        await db.commit()
        await db.refresh(subscription)
        logger.info(f"Newsletter subscription created: id={subscription.id}")
        return subscription

    @staticmethod
    async def unsubscribe(db: AsyncSession, token: Optional[str]) -> UnsubscribeOutcome:
        """Deactivate the subscription owning ``token``; repeated calls are harmless."""
        if not token:
            return UnsubscribeOutcome.INVALID

        result = await db.execute(
            select(NewsletterSubscription).where(NewsletterSubscription.unsubscribe_token == token)
        )
        subscription = result.scalar_one_or_none()
        if not subscription:
            return UnsubscribeOutcome.INVALID
        if not subscription.is_subscribed:
            return UnsubscribeOutcome.ALREADY_UNSUBSCRIBED

        subscription.unsubscribed_at = utcnow()
        await db.commit()
        logger.info(f"Newsletter subscription cancelled: id={subscription.id}")
        return UnsubscribeOutcome.UNSUBSCRIBED

    @staticmethod
    async def list_subscriptions(
        db: AsyncSession, limit: Optional[int] = None, active_only: bool = False
    ) -> List[NewsletterSubscription]:
        query = select(NewsletterSubscription).order_by(
            NewsletterSubscription.created_at.desc(), NewsletterSubscription.id.desc()
        )
        if active_only:
            query = query.where(NewsletterSubscription.unsubscribed_at.is_(None))
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())
