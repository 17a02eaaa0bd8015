"""
Hero background API endpoints.

The website reads the image URLs from the public list; admins upload and
remove the images themselves.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.guards import require_admin_privileges
from backend.app.core.rate_limit import throttle
from backend.app.services.cache import CacheStore, get_cache_store
from backend.app.services.hero_background_service import HeroBackgroundService, MAX_BACKGROUNDS
from backend.app.services.storage import ImageStorage, get_image_storage

router = APIRouter(prefix="/hero-backgrounds", tags=["Hero Backgrounds"])
admin_router = APIRouter(prefix="/admin/hero-backgrounds", tags=["Admin Hero Backgrounds"])


@router.get("", dependencies=[Depends(throttle("hero_backgrounds.index", 100))])
async def frontend_hero_backgrounds(
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Image URLs for the landing section, oldest first."""
    with unexpected_errors("An error occurred while fetching hero backgrounds"):
        urls = await HeroBackgroundService.frontend_urls(db, cache)
    return success_response(urls, meta={"count": len(urls), "max": MAX_BACKGROUNDS})


# Admin endpoints

@admin_router.get("")
async def admin_list_hero_backgrounds(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with unexpected_errors("An error occurred while fetching hero backgrounds"):
        items = await HeroBackgroundService.list_backgrounds(db)
    return success_response(**HeroBackgroundService.listing(items))


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def upload_hero_backgrounds(
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Upload up to five hero images (Admin / System Admin).

    Returns the full list after the upload.
    """
    prepared = await HeroBackgroundService.prepare_uploads(storage, images)
    with unexpected_errors("An error occurred while uploading images"):
        items = await HeroBackgroundService.upload_backgrounds(db, storage, prepared)
    return success_response(message="Images uploaded successfully", **HeroBackgroundService.listing(items))


@admin_router.delete("/{background_id}")
async def delete_hero_background(
    background_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    with unexpected_errors("An error occurred while deleting the image"):
        items = await HeroBackgroundService.delete_background(db, storage, background_id)
    return success_response(message="Image deleted successfully", **HeroBackgroundService.listing(items))
