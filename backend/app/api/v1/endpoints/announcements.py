"""
Announcement API endpoints.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.announcement import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from backend.app.schemas.common import success_response
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.guards import require_admin_privileges
from backend.app.services.announcement_service import LATEST_LIMIT, AnnouncementService
from backend.app.services.email_client import EmailClient, get_mailer
from backend.app.services.notification_service import NotificationService
from backend.app.services.pagination import admin_per_page
from backend.app.services.transformers import announcement_summary, pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["Announcements"])
admin_router = APIRouter(prefix="/admin/announcements", tags=["Admin Announcements"])


def _announcement_payload(announcement) -> dict:
    return AnnouncementResponse.model_validate(announcement).model_dump(mode="json")


@router.get("")
async def list_announcements(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Announcements, newest first."""
    with unexpected_errors("An error occurred while fetching announcements"):
        announcements = await AnnouncementService.list_announcements(db, limit)
    data = [announcement_summary(announcement) for announcement in announcements]
    return success_response(data, meta={"count": len(data), "limit": limit})


@router.get("/latest")
async def latest_announcements(db: AsyncSession = Depends(get_db)):
    with unexpected_errors("An error occurred while fetching latest announcements"):
        announcements = await AnnouncementService.list_announcements(db, LATEST_LIMIT)
    data = [announcement_summary(announcement) for announcement in announcements]
    return success_response(data, meta={"count": len(data), "limit": LATEST_LIMIT})


@router.get("/{announcement_id}")
async def get_announcement(announcement_id: int, db: AsyncSession = Depends(get_db)):
    announcement = await AnnouncementService.get_announcement(db, announcement_id)
    return success_response(announcement_summary(announcement))


# Admin endpoints

@admin_router.get("")
async def admin_list_announcements(
    search: Optional[str] = Query(None, max_length=255),
    per_page: Optional[int] = Query(None, alias="perPage"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    per_page = admin_per_page(per_page)
    announcements, total = await AnnouncementService.admin_list(db, search, page, per_page)
    return success_response(
        [_announcement_payload(announcement) for announcement in announcements],
        meta=pagination_meta(total, page, per_page, len(announcements)),
        filters={"search": search or "", "perPage": per_page},
    )


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    data: AnnouncementCreate,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    mailer: EmailClient = Depends(get_mailer),
):
    """Create an announcement and mail it to subscribers."""
    announcement = await AnnouncementService.create_announcement(db, data)

    try:
        await NotificationService.notify_announcement_created(db, mailer, announcement)
    except Exception as e:
        logger.error(f"Failed to send announcement notification for announcement {announcement.id}: {e}")

    return success_response(_announcement_payload(announcement), message="Announcement created successfully.")


@admin_router.put("/{announcement_id}")
async def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.get_announcement(db, announcement_id)
    announcement = await AnnouncementService.update_announcement(db, announcement, data)
    return success_response(_announcement_payload(announcement), message="Announcement updated successfully.")


@admin_router.delete("/{announcement_id}")
async def delete_announcement(
    announcement_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
):
    announcement = await AnnouncementService.get_announcement(db, announcement_id)
    await AnnouncementService.delete_announcement(db, announcement)
    return success_response(message="Announcement deleted successfully.")
