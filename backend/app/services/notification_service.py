"""
Notification Service.

Composes plain-text mails for newsletter subscribers and invited users and
hands them to the SMTP client. Delivery problems are logged; they never fail
the request that triggered the mail.
"""

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.models.announcement import Announcement
from backend.app.models.invitation import Invitation
from backend.app.models.newsletter_subscription import NewsletterSubscription
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.services.email_client import EmailClient
from backend.app.services.transformers import format_image_urls, generate_excerpt

logger = logging.getLogger(__name__)

SUBSCRIBER_CHUNK_SIZE = 200


def unsubscribe_url(subscription: NewsletterSubscription) -> str:
    return (
        f"{settings.app_url.rstrip('/')}/{settings.api_version}/newsletter/unsubscribe"
        f"?token={subscription.unsubscribe_token}"
    )


def _footer(subscription: NewsletterSubscription) -> str:
    return (
        "\n\n---\n"
        f"You are receiving this email because you subscribed to {settings.app_name} updates.\n"
        f"Unsubscribe: {unsubscribe_url(subscription)}"
    )


class NotificationService:

    @staticmethod
    async def _deliver(mailer: EmailClient, to_email: str, subject: str, body: str) -> bool:
        if not mailer.is_configured:
            logger.info(f"SMTP not configured, skipping mail to {to_email}: {subject}")
            return False
        try:
            await run_in_threadpool(mailer.send_email, to_email, subject, body)
            return True
        except Exception as e:
            logger.error(f"Mail delivery to {to_email} failed: {e}")
            return False

    @staticmethod
    async def send_subscription_confirmation(mailer: EmailClient, subscription: NewsletterSubscription) -> bool:
        name = f"{subscription.first_name} {subscription.last_name}".strip()
        body = (
            f"Hello {name},\n\n"
            f"Thank you for subscribing to {settings.app_name} updates. "
            "You will be the first to hear about new products, principals and announcements."
            f"{_footer(subscription)}"
        )
        return await NotificationService._deliver(
            mailer, subscription.email, f"You are subscribed to {settings.app_name} updates", body
        )

    @staticmethod
    async def send_invitation(
        mailer: EmailClient,
        invitation: Invitation,
        inviter_name: Optional[str] = None,
    ) -> bool:
        register_url = f"{settings.app_url.rstrip('/')}/register?token={invitation.token}"
        inviter = inviter_name or settings.app_name
        body = (
            "Hello there!\n\n"
            f"{inviter} has invited you to join {settings.app_name}.\n\n"
            f"Your Email: {invitation.email}\n"
            f"Assigned Role: {invitation.role.display_name}\n\n"
            f"Complete your registration here:\n{register_url}\n\n"
            f"This invitation expires on {invitation.expires_at:%Y-%m-%d %H:%M} UTC "
            "and can only be used once."
        )
        return await NotificationService._deliver(
            mailer, invitation.email, f"You're invited to join {settings.app_name}", body
        )

    @staticmethod
    async def broadcast(db: AsyncSession, mailer: EmailClient, subject: str, body: str) -> int:
        """
        Mail every active subscriber, paging through them in chunks.

        Returns:
            Number of mails handed to the SMTP relay
        """
        if not mailer.is_configured:
            logger.info(f"SMTP not configured, skipping newsletter broadcast: {subject}")
            return 0

        sent = 0
        last_id = 0
        while True:
            result = await db.execute(
                select(NewsletterSubscription)
                .where(
                    NewsletterSubscription.unsubscribed_at.is_(None),
                    NewsletterSubscription.id > last_id,
                )
                .order_by(NewsletterSubscription.id)
                .limit(SUBSCRIBER_CHUNK_SIZE)
            )
            chunk = result.scalars().all()
            if not chunk:
                break
            for subscription in chunk:
                if await NotificationService._deliver(mailer, subscription.email, subject, body + _footer(subscription)):
                    sent += 1
            last_id = chunk[-1].id

        logger.info(f"Newsletter '{subject}' sent to {sent} subscribers")
        return sent

    @staticmethod
    async def notify_product_created(db: AsyncSession, mailer: EmailClient, product: Product) -> int:
        lines = [
            f"A new product is now available: {product.name}",
            f"Category: {product.product_type.display_name}",
        ]
        excerpt = generate_excerpt(product.description)
        if excerpt:
            lines.append("")
            lines.append(excerpt)
        if product.features:
            lines.append("")
            lines.extend(f"- {feature}" for feature in product.features)
        images = format_image_urls(product.images)
        if images:
            lines.append("")
            lines.append(f"Photo: {images[0]}")
        return await NotificationService.broadcast(db, mailer, f"New Product: {product.name}", "\n".join(lines))

    @staticmethod
    async def notify_principal_created(db: AsyncSession, mailer: EmailClient, principal: Principal) -> int:
        body = f"We are proud to welcome a new principal: {principal.name}"
        excerpt = generate_excerpt(principal.description)
        if excerpt:
            body += f"\n\n{excerpt}"
        return await NotificationService.broadcast(db, mailer, f"New Principal Added: {principal.name}", body)

    @staticmethod
    async def notify_announcement_created(db: AsyncSession, mailer: EmailClient, announcement: Announcement) -> int:
        body = announcement.title
        if announcement.description:
            body += f"\n\n{announcement.description}"
        return await NotificationService.broadcast(db, mailer, f"New Announcement: {announcement.title}", body)
