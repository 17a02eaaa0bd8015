"""
Query helpers shared by list endpoints.
"""

from typing import Any, List, Optional, Tuple

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

DEFAULT_PER_PAGE = 10
ADMIN_PER_PAGE_OPTIONS = (10, 25, 50, 100)


def admin_per_page(value: Optional[int]) -> int:
    """Admin list views accept a fixed set of page sizes; anything else falls back to 10."""
    return value if value in ADMIN_PER_PAGE_OPTIONS else DEFAULT_PER_PAGE


def search_clause(search: Optional[str], *columns):
    """Case-insensitive substring match over any of ``columns``."""
    pattern = f"%{search}%"
    return or_(*[column.ilike(pattern) for column in columns])


async def paginate(db: AsyncSession, query: Select, page: int, per_page: int) -> Tuple[List[Any], int]:
    """
    Run ``query`` for one page.

    Returns:
        (rows on the page, total matching rows)
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * per_page
    result = await db.execute(query.offset(offset).limit(per_page))
    return list(result.scalars().all()), total
