"""
Dashboard API endpoints.

Served outside the versioned API at /dashboard and authenticated with the
session cookie set at login. Every payload is cached for five minutes.
"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.dashboard import (
    DashboardOverviewResponse,
    DashboardStatsResponse,
    RecentActivityResponse,
)
from backend.app.core.dependencies import get_session_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.rate_limit import throttle
from backend.app.services.cache import CacheStore, DASHBOARD_TTL, get_cache_store
from backend.app.services.statistics import StatisticsService
from backend.app.services.transformers import iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

STATS_KEY = "dashboard_stats"
OVERVIEW_KEY = "dashboard_overview"
RECENT_ACTIVITY_KEY = "dashboard_recent_activity"
DASHBOARD_KEYS = (STATS_KEY, OVERVIEW_KEY, RECENT_ACTIVITY_KEY)


@router.get(
    "/stats",
    response_model=DashboardStatsResponse,
    dependencies=[Depends(throttle("dashboard.stats", 120))],
)
async def get_stats(
    current_user: User = Depends(get_session_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """
    Totals, month-over-month change and last-hour activity for users,
    blogs and products.
    """
    with unexpected_errors("Failed to fetch dashboard statistics"):
        stats = await cache.remember(
            STATS_KEY, DASHBOARD_TTL, lambda: StatisticsService.get_dashboard_stats(db)
        )
    return {"success": True, "data": stats, "cached_at": iso(datetime.now(timezone.utc))}


@router.get(
    "/overview",
    response_model=DashboardOverviewResponse,
    dependencies=[Depends(throttle("dashboard.overview", 120))],
)
async def get_overview(
    current_user: User = Depends(get_session_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Monthly creation counts for the trailing twelve months."""
    with unexpected_errors("Failed to fetch overview data"):
        overview = await cache.remember(
            OVERVIEW_KEY, DASHBOARD_TTL, lambda: StatisticsService.get_overview(db)
        )
    return {"success": True, "data": overview}


@router.get(
    "/recent-activity",
    response_model=RecentActivityResponse,
    dependencies=[Depends(throttle("dashboard.recent-activity", 120))],
)
async def get_recent_activity(
    current_user: User = Depends(get_session_user),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    with unexpected_errors("Failed to fetch recent activity"):
        activity = await cache.remember(
            RECENT_ACTIVITY_KEY, DASHBOARD_TTL, lambda: StatisticsService.get_recent_activity(db)
        )
    return {"success": True, "data": activity}


@router.post(
    "/clear-cache",
    response_model=MessageResponse,
    dependencies=[Depends(throttle("dashboard.clear-cache", 10))],
)
async def clear_cache(
    current_user: User = Depends(get_session_user),
    cache: CacheStore = Depends(get_cache_store),
):
    """Drop the cached dashboard payloads so the next read recomputes them."""
    with unexpected_errors("Failed to clear dashboard cache"):
        await cache.forget_many(DASHBOARD_KEYS)
    logger.info(f"Dashboard cache cleared by user {current_user.id}")
    return MessageResponse(message="Dashboard cache cleared successfully")
