"""
Response transformers for the public API.

Pure functions that turn ORM rows into the JSON dictionaries stored in the
cache and returned to clients.
"""

import hashlib
import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, urlparse

from backend.app.core.config import settings

EXCERPT_LENGTH = 150

_TAG_RE = re.compile(r"<[^>]*>")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; stored values are always UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def strip_tags(content: str) -> str:
    return _TAG_RE.sub("", content)


def generate_excerpt(content: Optional[str], length: int = EXCERPT_LENGTH) -> Optional[str]:
    """
    Plain-text preview of rich content.

    Tags are stripped; text up to ``length`` characters is returned unchanged,
    longer text is cut to ``length`` characters and suffixed with "...".
    Empty content yields None.
    """
    if not content:
        return None
    text = strip_tags(content)
    if len(text) <= length:
        return text
    return text[:length] + "..."


def is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def storage_url(path: str) -> str:
    """Public URL of a file on the public storage disk."""
    if is_url(path):
        return path
    return f"{settings.app_url.rstrip('/')}/storage/{path.lstrip('/')}"


def format_image_urls(images: Optional[List[str]]) -> List[str]:
    if not images:
        return []
    return [storage_url(image) for image in images if image]


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?d=mp&s=40"


_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("week", 7 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def humanize_since(value: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    """Relative time such as "3 hours ago" or "1 second from now"."""
    value = as_utc(value)
    if value is None:
        return None
    now = now or datetime.now(timezone.utc)
    delta = (now - value).total_seconds()
    seconds = abs(delta)
    for unit, size in _UNITS:
        if seconds >= size or unit == "second":
            count = max(1, math.floor(seconds / size))
            label = unit if count == 1 else f"{unit}s"
            suffix = "ago" if delta >= 0 else "from now"
            return f"{count} {label} {suffix}"
    return None


# Entity transformers

def blog_summary(blog) -> Dict[str, Any]:
    return {
        "id": blog.id,
        "title": blog.title,
        "content": blog.content,
        "excerpt": generate_excerpt(blog.content),
        "images": format_image_urls(blog.images),
        "created_at": iso(blog.created_at),
        "updated_at": iso(blog.updated_at),
    }


def blog_detail(blog) -> Dict[str, Any]:
    data = blog_summary(blog)
    data["image_count"] = len(blog.images or [])
    data["created_at_human"] = humanize_since(blog.created_at)
    data["updated_at_human"] = humanize_since(blog.updated_at)
    return data


def blog_related(blog) -> Dict[str, Any]:
    return {
        "id": blog.id,
        "title": blog.title,
        "excerpt": generate_excerpt(blog.content),
        "images": format_image_urls(blog.images),
        "created_at": iso(blog.created_at),
        "created_at_human": humanize_since(blog.created_at),
    }


def product_summary(product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "product_type": product.product_type.value,
        "product_type_label": product.product_type.display_name,
        "description": product.description,
        "excerpt": generate_excerpt(product.description),
        "images": format_image_urls(product.images),
        "features": product.features or [],
        "is_featured": bool(product.is_featured),
        "principal_id": product.principal_id,
        "created_at": iso(product.created_at),
        "updated_at": iso(product.updated_at),
    }


def product_detail(product, principal=None) -> Dict[str, Any]:
    data = product_summary(product)
    data["image_count"] = len(product.images or [])
    data["principal"] = principal_summary(principal) if principal is not None else None
    return data


def principal_summary(principal) -> Dict[str, Any]:
    return {
        "id": principal.id,
        "name": principal.name,
        "description": principal.description,
        "logo": storage_url(principal.logo) if principal.logo else None,
        "is_featured": bool(principal.is_featured),
        "created_at": iso(principal.created_at),
        "updated_at": iso(principal.updated_at),
    }


def announcement_summary(announcement) -> Dict[str, Any]:
    return {
        "id": announcement.id,
        "title": announcement.title,
        "description": announcement.description,
        "created_at": iso(announcement.created_at),
        "updated_at": iso(announcement.updated_at),
    }


def hero_background(item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "image_path": item.image_path,
        "url": storage_url(item.image_path),
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }


# Pagination envelope

def pagination_meta(total: int, page: int, per_page: int, count: int) -> Dict[str, Any]:
    last_page = max(1, math.ceil(total / per_page))
    first_item = (page - 1) * per_page + 1 if count else None
    last_item = first_item + count - 1 if count else None
    return {
        "current_page": page,
        "from": first_item,
        "to": last_item,
        "per_page": per_page,
        "total": total,
        "last_page": last_page,
    }


def pagination_links(base_url: str, params: Dict[str, Any], page: int, last_page: int) -> Dict[str, Optional[str]]:
    def url(target: int) -> str:
        query = {key: value for key, value in params.items() if value not in (None, "")}
        query["page"] = target
        return f"{base_url}?{urlencode(query)}"

    return {
        "first": url(1),
        "last": url(last_page),
        "prev": url(page - 1) if page > 1 else None,
        "next": url(page + 1) if page < last_page else None,
    }
