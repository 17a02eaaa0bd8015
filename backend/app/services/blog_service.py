"""
Blog Service.

Public reads go through the cache store; admin writes commit first and then
publish a lifecycle event so the cache invalidator can evict stale entries.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.events import Event, EventType, event_bus
from backend.app.core.exceptions import NotFoundError
from backend.app.models.blog import Blog
from backend.app.schemas.blog import BlogData
from backend.app.services import transformers
from backend.app.services.cache import (
    CacheStore, DETAIL_TTL, LATEST_TTL, LIST_TTL, RELATED_TTL, hashed_key,
)
from backend.app.services.pagination import paginate, search_clause
from backend.app.services.storage import ImageStorage, PreparedImage

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "updated_at", "title")
RELATED_LIMIT = 3
IMAGE_FOLDER = "blogs"
CACHE_TAGS = ("blogs",)

STOPWORDS = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to",
    "for", "of", "with", "is", "are", "was", "were",
])


def title_keywords(title: str) -> List[str]:
    """Lowercased title words longer than two characters, minus stopwords."""
    words = re.split(r"\s+", (title or "").lower())
    keywords = []
    for word in words:
        if len(word) > 2 and word not in STOPWORDS and word not in keywords:
            keywords.append(word)
    return keywords


def keyword_score(blog: Blog, keywords: List[str]) -> int:
    haystack = f"{blog.title or ''} {blog.content or ''}".lower()
    return sum(1 for keyword in keywords if keyword in haystack)


def _sort_key_created(blog: Blog) -> float:
    created_at = transformers.as_utc(blog.created_at)
    return created_at.timestamp() if created_at else 0.0


class BlogService:

    @staticmethod
    async def get_blog(db: AsyncSession, blog_id: int) -> Blog:
        blog = await db.get(Blog, blog_id)
        if not blog:
            raise NotFoundError("Blog", blog_id)
        return blog

    @staticmethod
    async def all_ids(db: AsyncSession) -> List[int]:
        result = await db.execute(select(Blog.id))
        return list(result.scalars().all())

    # Public reads

    @staticmethod
    async def list_blogs(
        db: AsyncSession,
        cache: CacheStore,
        search: str = "",
        per_page: int = 10,
        page: int = 1,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """
        One page of blogs, cached under a key derived from the normalized parameters.

        Returns:
            {"data": [transformed blogs], "total": matching rows}
        """
        cache_key = hashed_key("blogs", {
            "search": search or "",
            "perPage": per_page,
            "page": page,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        })

        async def produce():
            query = select(Blog)
            if search:
                query = query.where(search_clause(search, Blog.title, Blog.content))
            column = getattr(Blog, sort_by)
            if sort_order == "asc":
                query = query.order_by(column.asc(), Blog.id.asc())
            else:
                query = query.order_by(column.desc(), Blog.id.desc())
            blogs, total = await paginate(db, query, page, per_page)
            return {"data": [transformers.blog_summary(blog) for blog in blogs], "total": total}

        return await cache.remember(cache_key, LIST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def latest_blogs(db: AsyncSession, cache: CacheStore, limit: int = 3) -> List[Dict[str, Any]]:
        async def produce():
            result = await db.execute(
                select(Blog).order_by(Blog.created_at.desc(), Blog.id.desc()).limit(limit)
            )
            return [transformers.blog_summary(blog) for blog in result.scalars().all()]

        return await cache.remember(f"blogs_latest_{limit}", LATEST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def blog_detail(db: AsyncSession, cache: CacheStore, blog_id: int) -> Dict[str, Any]:
        async def produce():
            # NotFoundError propagates, so misses are never cached
            return transformers.blog_detail(await BlogService.get_blog(db, blog_id))

        return await cache.remember(f"blog_show_api_{blog_id}", DETAIL_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def related_blogs(db: AsyncSession, cache: CacheStore, blog_id: int) -> List[Dict[str, Any]]:
        """
        Up to three blogs sharing title keywords with ``blog_id``.

        Candidates are ranked by the number of keywords found in their title or
        content, newest first on ties. Without any match the latest three other
        blogs are returned.
        """
        current = await BlogService.get_blog(db, blog_id)

        async def produce():
            related: List[Blog] = []
            keywords = title_keywords(current.title)
            if keywords:
                clauses = [search_clause(keyword, Blog.title, Blog.content) for keyword in keywords]
                query = select(Blog).where(Blog.id != blog_id, or_(*clauses))
                candidates = (await db.execute(query)).scalars().all()
                ranked = sorted(
                    candidates,
                    key=lambda blog: (keyword_score(blog, keywords), _sort_key_created(blog), blog.id),
                    reverse=True,
                )
                related = ranked[:RELATED_LIMIT]

            if not related:
                result = await db.execute(
                    select(Blog)
                    .where(Blog.id != blog_id)
                    .order_by(Blog.created_at.desc(), Blog.id.desc())
                    .limit(RELATED_LIMIT)
                )
                related = list(result.scalars().all())

            return [transformers.blog_related(blog) for blog in related]

        return await cache.remember(f"blog_related_{blog_id}", RELATED_TTL, produce, tags=CACHE_TAGS)

    # Admin writes

    @staticmethod
    async def admin_list(db: AsyncSession, search: Optional[str], page: int, per_page: int):
        query = select(Blog)
        if search:
            query = query.where(search_clause(search, Blog.title, Blog.content))
        query = query.order_by(Blog.created_at.desc(), Blog.id.desc())
        return await paginate(db, query, page, per_page)

    @staticmethod
    async def _publish(db: AsyncSession, event_type: EventType, blog_id: int) -> None:
        # The write is already committed; a failed lookup only narrows the key set
        try:
            sibling_ids = await BlogService.all_ids(db)
        except Exception as e:
            logger.warning(f"Could not load blog ids for cache invalidation of blog {blog_id}: {e}")
            sibling_ids = []
        await event_bus.publish(Event(
            type=event_type,
            entity_type="blog",
            entity_id=blog_id,
            payload={"sibling_ids": sibling_ids},
        ))

    @staticmethod
    async def create_blog(
        db: AsyncSession,
        storage: ImageStorage,
        data: BlogData,
        images: List[PreparedImage],
    ) -> Blog:
        # 1. Files first; removed again if the row cannot be written
        paths = storage.save_many(images, IMAGE_FOLDER)
        blog = Blog(title=data.title, content=data.content, images=paths)
        try:
            db.add(blog)
            await db.commit()
            await db.refresh(blog)
        except Exception:
            await db.rollback()
            storage.delete_many(paths)
            raise

        # 2. Invalidate caches
        await BlogService._publish(db, EventType.BLOG_CREATED, blog.id)
        logger.info(f"Blog created: id={blog.id}")
        return blog

    @staticmethod
    async def update_blog(
        db: AsyncSession,
        storage: ImageStorage,
        blog: Blog,
        data: BlogData,
        images: List[PreparedImage],
        keep_existing_images: bool = True,
        max_images: int = 5,
    ) -> Blog:
        existing = list(blog.images or [])
        kept = existing if keep_existing_images else []
        new_paths = storage.save_many(images[:max(0, max_images - len(kept))], IMAGE_FOLDER)
        removed = [path for path in existing if path not in kept]

        blog.title = data.title
        blog.content = data.content
        blog.images = kept + new_paths
        try:
            await db.commit()
            await db.refresh(blog)
        except Exception:
            await db.rollback()
            storage.delete_many(new_paths)
            raise

        storage.delete_many(removed)
        await BlogService._publish(db, EventType.BLOG_UPDATED, blog.id)
        return blog

    @staticmethod
    async def delete_blog(db: AsyncSession, storage: ImageStorage, blog: Blog) -> None:
        blog_id = blog.id
        images = list(blog.images or [])
        await db.delete(blog)
        await db.commit()

        storage.delete_many(images)
        await BlogService._publish(db, EventType.BLOG_DELETED, blog_id)
        logger.info(f"Blog deleted: id={blog_id}")
