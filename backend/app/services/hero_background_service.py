"""
Hero Background Service.

Full-width images rotated on the website's landing section. At most five are
stored at a time; every image must be 1920px wide and 800-810px tall.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.events import Event, EventType, event_bus
from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.hero_background import HeroBackground
from backend.app.services import transformers
from backend.app.services.cache import CacheStore
from backend.app.services.cache_invalidation import HERO_BACKGROUNDS_KEY
from backend.app.services.storage import ImageStorage, PreparedImage, present_files

logger = logging.getLogger(__name__)

MAX_BACKGROUNDS = 5
HERO_TTL = 3600
IMAGE_FOLDER = "hero-bg"
HERO_EXTENSIONS = (".jpeg", ".jpg", ".png", ".webp")
HERO_WIDTH = 1920
HERO_MIN_HEIGHT = 800
HERO_MAX_HEIGHT = 810

LIMIT_EXCEEDED = f"Upload limit exceeded: a maximum of {MAX_BACKGROUNDS} images is allowed"


def _invalid(message: str) -> ValidationError:
    return ValidationError.for_field("images", message)


class HeroBackgroundService:

    @staticmethod
    async def list_backgrounds(db: AsyncSession) -> List[HeroBackground]:
        """Oldest first, the order the website rotates them in."""
        result = await db.execute(
            select(HeroBackground).order_by(HeroBackground.created_at.asc(), HeroBackground.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_backgrounds(db: AsyncSession) -> int:
        return await db.scalar(select(func.count()).select_from(HeroBackground))

    @staticmethod
    async def frontend_urls(db: AsyncSession, cache: CacheStore) -> List[str]:
        async def produce():
            items = await HeroBackgroundService.list_backgrounds(db)
            return [transformers.storage_url(item.image_path) for item in items]

        return await cache.remember(HERO_BACKGROUNDS_KEY, HERO_TTL, produce)

    @staticmethod
    def listing(items: List[HeroBackground]) -> Dict[str, Any]:
        return {
            "data": [transformers.hero_background(item) for item in items],
            "meta": {"count": len(items), "max": MAX_BACKGROUNDS},
        }

    @staticmethod
    async def prepare_uploads(storage: ImageStorage, files: Optional[List[UploadFile]]) -> List[PreparedImage]:
        """
        Validate an upload batch before anything is written.

        Raises:
            ValidationError: keyed by ``images`` with the first failing rule
        """
        files = present_files(files)
        if not files:
            raise _invalid("Please select at least one image to upload.")
        if len(files) > MAX_BACKGROUNDS:
            raise _invalid(f"You can upload up to {MAX_BACKGROUNDS} images at a time.")

        prepared = []
        for file in files:
            if Path(file.filename).suffix.lower() not in HERO_EXTENSIONS:
                raise _invalid("Allowed image types: jpeg, png, jpg, webp.")
            image = await storage.prepare(file, "images", settings.max_hero_image_size_kb)
            if image.width != HERO_WIDTH or not HERO_MIN_HEIGHT <= image.height <= HERO_MAX_HEIGHT:
                raise _invalid(
                    f"Images must be {HERO_WIDTH}px wide and {HERO_MIN_HEIGHT}-{HERO_MAX_HEIGHT}px tall."
                )
            prepared.append(image)
        return prepared

    @staticmethod
    async def upload_backgrounds(
        db: AsyncSession, storage: ImageStorage, images: List[PreparedImage]
    ) -> List[HeroBackground]:
        existing = await HeroBackgroundService.count_backgrounds(db)
        if existing + len(images) > MAX_BACKGROUNDS:
            raise ValidationError({"images": [LIMIT_EXCEEDED]}, message=LIMIT_EXCEEDED)

        # Files written so far are removed again if any row fails
        paths: List[str] = []
        try:
            for image in images:
                path = storage.save(image, IMAGE_FOLDER)
                paths.append(path)
                db.add(HeroBackground(image_path=path))
            await db.commit()
        except Exception:
            await db.rollback()
            storage.delete_many(paths)
            raise

        await event_bus.publish(Event(
            type=EventType.HERO_BACKGROUNDS_UPLOADED,
            entity_type="hero_background",
            payload={"count": len(paths)},
        ))
        logger.info(f"Hero backgrounds uploaded: {len(paths)}")
        return await HeroBackgroundService.list_backgrounds(db)

    @staticmethod
    async def delete_background(db: AsyncSession, storage: ImageStorage, background_id: int) -> List[HeroBackground]:
        item = await db.get(HeroBackground, background_id)
        if not item:
            raise NotFoundError("Image", background_id)

        path = item.image_path
        await db.delete(item)
        await db.commit()
        storage.delete(path)

        await event_bus.publish(Event(
            type=EventType.HERO_BACKGROUND_DELETED,
            entity_type="hero_background",
            entity_id=background_id,
        ))
        logger.info(f"Hero background deleted: id={background_id}")
        return await HeroBackgroundService.list_backgrounds(db)
