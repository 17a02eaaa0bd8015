"""
Dashboard statistics aggregation.

Counts users, blogs and products over trailing windows and calendar months.
Focused on READ-ONLY operations; results are cached by the dashboard
endpoints for five minutes.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.blog import Blog
from backend.app.models.product import Product
from backend.app.models.user import User
from backend.app.services.transformers import gravatar_url, humanize_since

TRACKED_MODELS = (("users", "Users", User), ("blogs", "Blogs", Blog), ("products", "Products", Product))

RECENT_ACTIVITY_LIMIT = 5


def compute_percentage_change(last_month: int, two_months_ago: int) -> float:
    """
    Month-over-month change in percent, rounded to one decimal.

    With no baseline the change is 100 if anything was created, else 0.
    """
    if two_months_ago > 0:
        return round((last_month - two_months_ago) / two_months_ago * 100, 1)
    return 100 if last_month > 0 else 0


def trend_for(percentage_change: float) -> str:
    return "up" if percentage_change >= 0 else "down"


def month_start(value: datetime, months_back: int = 0) -> datetime:
    """First instant of the calendar month ``months_back`` months before ``value``."""
    index = value.year * 12 + (value.month - 1) - months_back
    year, month = divmod(index, 12)
    return value.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


def last_12_months(now: datetime) -> List[Tuple[str, datetime, datetime]]:
    """(label, start, next month start) for the trailing 12 months, oldest first."""
    months = []
    for months_back in range(11, -1, -1):
        start = month_start(now, months_back)
        end = month_start(now, months_back - 1)
        months.append((start.strftime("%b %Y"), start, end))
    return months


class StatisticsService:

    @staticmethod
    async def _count(db: AsyncSession, model, start: Optional[datetime] = None, end: Optional[datetime] = None) -> int:
        query = select(func.count(model.id))
        if start is not None:
            query = query.where(model.created_at >= start)
        if end is not None:
            query = query.where(model.created_at < end)
        return (await db.execute(query)).scalar() or 0

    @staticmethod
    async def get_entity_stats(db: AsyncSession, model, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Totals and month-over-month growth for one entity."""
        now = now or datetime.now(timezone.utc)
        month_ago = now - timedelta(days=30)

        # 1. Window counts
        total = await StatisticsService._count(db, model)
        last_week = await StatisticsService._count(db, model, now - timedelta(days=7))
        last_month = await StatisticsService._count(db, model, month_ago)
        two_months_ago = await StatisticsService._count(db, model, now - timedelta(days=60), month_ago)

        # 2. Growth
        percentage_change = compute_percentage_change(last_month, two_months_ago)

        return {
            "total": total,
            "last_month": last_month,
            "last_week": last_week,
            "percentage_change": percentage_change,
            "trend": trend_for(percentage_change),
        }

    @staticmethod
    async def get_activity_stats(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Creations in the trailing hour compared with the hour before."""
        now = now or datetime.now(timezone.utc)
        last_hour = now - timedelta(hours=1)
        two_hours_ago = now - timedelta(hours=2)

        activity: Dict[str, Any] = {}
        previous_hour = 0
        for key, _, model in TRACKED_MODELS:
            activity[key] = await StatisticsService._count(db, model, last_hour)
            previous_hour += await StatisticsService._count(db, model, two_hours_ago, last_hour)

        total = sum(activity[key] for key, _, _ in TRACKED_MODELS)
        return {
            "total": total,
            **activity,
            "previous_hour": previous_hour,
            "change": total - previous_hour,
        }

    @staticmethod
    async def get_dashboard_stats(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        stats = {}
        for key, _, model in TRACKED_MODELS:
            stats[key] = await StatisticsService.get_entity_stats(db, model, now)
        stats["activity"] = await StatisticsService.get_activity_stats(db, now)
        return stats

    @staticmethod
    async def get_overview(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Monthly creation counts for the chart on the dashboard."""
        now = now or datetime.now(timezone.utc)
        months = last_12_months(now)

        datasets = []
        for _, name, model in TRACKED_MODELS:
            data = [await StatisticsService._count(db, model, start, end) for _, start, end in months]
            datasets.append({"name": name, "data": data})

        return {
            "labels": [label for label, _, _ in months],
            "datasets": datasets,
        }

    @staticmethod
    async def get_recent_activity(db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
        """Latest users, blogs and products for the activity feed."""
        users = (await db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_ACTIVITY_LIMIT)
        )).scalars().all()
        blogs = (await db.execute(
            select(Blog).order_by(Blog.created_at.desc(), Blog.id.desc()).limit(RECENT_ACTIVITY_LIMIT)
        )).scalars().all()
        products = (await db.execute(
            select(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(RECENT_ACTIVITY_LIMIT)
        )).scalars().all()

        return {
            "users": [
                {
                    "id": user.id,
                    "name": user.name,
                    "email": user.email,
                    "avatar": gravatar_url(user.email),
                    "created_at": humanize_since(user.created_at),
                    "type": "user",
                }
                for user in users
            ],
            "blogs": [
                {"id": blog.id, "title": blog.title, "created_at": humanize_since(blog.created_at), "type": "blog"}
                for blog in blogs
            ],
            "products": [
                {"id": product.id, "name": product.name, "created_at": humanize_since(product.created_at), "type": "product"}
                for product in products
            ],
        }
