"""SMTP email client."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from backend.app.core.config import settings

logger = logging.getLogger(__name__)


class EmailClient:
    """Plain SMTP delivery using the configured relay."""

    def __init__(self, config=settings):
        self.settings = config

    @property
    def is_configured(self) -> bool:
        return all([
            self.settings.smtp_host,
            self.settings.smtp_from_email,
        ])

    def _create_smtp_connection(self) -> smtplib.SMTP:
        smtp = smtplib.SMTP(
            self.settings.smtp_host,
            self.settings.smtp_port,
            timeout=30,
        )

        if self.settings.smtp_use_tls:
            smtp.starttls()

        if self.settings.smtp_user and self.settings.smtp_password:
            smtp.login(
                self.settings.smtp_user,
                self.settings.smtp_password,
            )

        return smtp

    def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """
        Send one message.

        Args:
            to_email: Recipient address
            subject: Subject line
            body: Plain-text body
            html_body: Optional HTML alternative

        Returns:
            True on success; SMTP errors propagate to the caller.
        """
        if not self.is_configured:
            raise ValueError("SMTP settings are incomplete.")

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = formataddr((self.settings.smtp_from_name, self.settings.smtp_from_email))
            msg["To"] = to_email

            msg.attach(MIMEText(body, "plain", "utf-8"))
            if html_body:
                msg.attach(MIMEText(html_body, "html", "utf-8"))

            with self._create_smtp_connection() as smtp:
                smtp.sendmail(
                    self.settings.smtp_from_email,
                    [to_email],
                    msg.as_string(),
                )

            logger.info(f"Email sent: to={to_email}, subject={subject}")
            return True

        except Exception as e:
            logger.error(f"Email delivery failed: {e}")
            raise


email_client = EmailClient()


def get_mailer() -> EmailClient:
    """FastAPI dependency returning the shared mail client."""
    return email_client
