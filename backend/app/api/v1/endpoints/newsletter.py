"""
Newsletter API endpoints.

Subscribing sends a confirmation mail carrying the unsubscribe link; the
unsubscribe endpoint is what that link points at.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.newsletter import NewsletterSubscribeRequest, NewsletterSubscriptionResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.rate_limit import throttle
from backend.app.services.email_client import EmailClient, get_mailer
from backend.app.services.newsletter_service import (
    UNSUBSCRIBE_MESSAGES,
    NewsletterService,
    UnsubscribeOutcome,
)
from backend.app.services.notification_service import NotificationService

router = APIRouter(prefix="/newsletter", tags=["Newsletter"])


@router.post(
    "/subscribe",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle("newsletter.subscribe", 10))],
)
async def subscribe(
    data: NewsletterSubscribeRequest,
    db: AsyncSession = Depends(get_db),
    mailer: EmailClient = Depends(get_mailer),
):
    """
    Subscribe to the newsletter.

    A previously cancelled subscription for the same email is reactivated.
    """
    subscription = await NewsletterService.subscribe(db, data)
    await NotificationService.send_subscription_confirmation(mailer, subscription)
    return success_response(
        NewsletterSubscriptionResponse.model_validate(subscription).model_dump(mode="json"),
        message="Thank you for subscribing! A confirmation email has been sent.",
    )


@router.get("/unsubscribe")
async def unsubscribe(
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel a subscription by its unsubscribe token.

    Repeating the request reports the subscription as already cancelled.
    """
    outcome = await NewsletterService.unsubscribe(db, token)
    return {
        "success": outcome != UnsubscribeOutcome.INVALID,
        "status": outcome.value,
        "message": UNSUBSCRIBE_MESSAGES[outcome],
    }


@router.get("/subscriptions")
async def list_subscriptions(
    limit: Optional[int] = Query(None, ge=1),
    active: bool = Query(False),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    subscriptions = await NewsletterService.list_subscriptions(db, limit, active_only=active)
    return success_response(
        [NewsletterSubscriptionResponse.model_validate(s).model_dump(mode="json") for s in subscriptions],
        meta={"count": len(subscriptions), "limit": limit},
    )
