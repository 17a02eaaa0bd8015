"""
Reusable field validators.
"""

import re
from email_validator import EmailNotValidError, validate_email

from backend.app.core.config import settings

DISPOSABLE_EMAIL_RE = re.compile(
    r"@(example\.com|test\.com|sample\.com|mailinator\.com|10minutemail\.com|tempmail\.[a-z.]+|yopmail\.com)$",
    re.IGNORECASE,
)


def normalize_email(value: str) -> str:
    """
    RFC syntax check plus a DNS deliverability lookup (unless disabled).

    Returns the address trimmed and lowercased.
    """
    value = value.strip()
    try:
        validate_email(value, check_deliverability=settings.email_dns_check)
    except EmailNotValidError as e:
        raise ValueError(f"The email must be a valid email address. {e}")
    return value.lower()


def reject_disposable_email(value: str) -> str:
    if DISPOSABLE_EMAIL_RE.search(value):
        raise ValueError("Please use a valid, non-disposable email address.")
    return value
