"""
Newsletter subscription database model.

The unsubscribe_token is generated at creation and acts as the capability
token embedded in unsubscribe links.
"""

import uuid
from sqlalchemy import Column, Integer, String, DateTime
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


def generate_unsubscribe_token() -> str:
    return str(uuid.uuid4())


class NewsletterSubscription(TimestampMixin, Base):
    __tablename__ = "newsletter_subscriptions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    unsubscribe_token = Column(String(64), unique=True, index=True, nullable=False, default=generate_unsubscribe_token)
    unsubscribed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_subscribed(self) -> bool:
        return self.unsubscribed_at is None

    def __repr__(self):
        return f"<NewsletterSubscription(id={self.id}, email='{self.email}')>"
