"""
Announcement Service.

Announcements are read directly from the database; no cache entries depend
on them, so writes publish no events.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import NotFoundError
from backend.app.models.announcement import Announcement
from backend.app.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from backend.app.services.pagination import paginate, search_clause

logger = logging.getLogger(__name__)

LATEST_LIMIT = 10


class AnnouncementService:

    @staticmethod
    async def get_announcement(db: AsyncSession, announcement_id: int) -> Announcement:
        announcement = await db.get(Announcement, announcement_id)
        if not announcement:
            raise NotFoundError("Announcement", announcement_id)
        return announcement

    @staticmethod
    async def list_announcements(db: AsyncSession, limit: Optional[int] = None) -> List[Announcement]:
        """Newest first; all rows unless ``limit`` is given."""
        query = select(Announcement).order_by(Announcement.created_at.desc(), Announcement.id.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def admin_list(db: AsyncSession, search: Optional[str], page: int, per_page: int):
        query = select(Announcement)
        if search:
            query = query.where(search_clause(search, Announcement.title, Announcement.description))
        query = query.order_by(Announcement.created_at.desc(), Announcement.id.desc())
        return await paginate(db, query, page, per_page)

    @staticmethod
    async def create_announcement(db: AsyncSession, data: AnnouncementCreate) -> Announcement:
        announcement = Announcement(title=data.title, description=data.description)
        db.add(announcement)
        await db.commit()
        await db.refresh(announcement)
        logger.info(f"Announcement created: id={announcement.id}")
        return announcement

    @staticmethod
    async def update_announcement(
        db: AsyncSession, announcement: Announcement, data: AnnouncementUpdate
    ) -> Announcement:
        announcement.title = data.title
        announcement.description = data.description
        await db.commit()
        await db.refresh(announcement)
        return announcement

    @staticmethod
    async def delete_announcement(db: AsyncSession, announcement: Announcement) -> None:
        announcement_id = announcement.id
        await db.delete(announcement)
        await db.commit()
        logger.info(f"Announcement deleted: id={announcement_id}")
