"""
Blog API endpoints.

Public read endpoints are cached and throttled; admin endpoints accept
multipart forms with up to five images.
"""

from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.blog import BlogData, BlogResponse
from backend.app.schemas.common import success_response
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.guards import require_admin_privileges
from backend.app.core.rate_limit import throttle
from backend.app.services.blog_service import BlogService
from backend.app.services.cache import CacheStore, MAX_LATEST_LIMIT, get_cache_store
from backend.app.services.pagination import admin_per_page
from backend.app.services.storage import ImageStorage, get_image_storage
from backend.app.services.transformers import pagination_links, pagination_meta

router = APIRouter(prefix="/blogs", tags=["Blogs"])
admin_router = APIRouter(prefix="/admin/blogs", tags=["Admin Blogs"])


def _blog_payload(blog) -> dict:
    return BlogResponse.model_validate(blog).model_dump(mode="json")


@router.get("", dependencies=[Depends(throttle("blogs.index", 60))])
async def list_blogs(
    request: Request,
    search: Optional[str] = Query(None, max_length=255),
    per_page: int = Query(10, alias="perPage", ge=1, le=100),
    page: int = Query(1, ge=1),
    sort_by: Literal["created_at", "updated_at", "title"] = Query("created_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """
    List blogs with search, sorting and pagination.

    Results are cached for five minutes per parameter combination.
    """
    with unexpected_errors("An error occurred while fetching blogs"):
        result = await BlogService.list_blogs(db, cache, search or "", per_page, page, sort_by, sort_order)

    meta = pagination_meta(result["total"], page, per_page, len(result["data"]))
    links = pagination_links(
        f"{str(request.base_url).rstrip('/')}{request.url.path}",
        {"search": search, "perPage": per_page, "sortBy": sort_by, "sortOrder": sort_order},
        page,
        meta["last_page"],
    )
    return success_response(result["data"], meta=meta, links=links)


@router.get("/latest", dependencies=[Depends(throttle("blogs.latest", 100))])
async def latest_blogs(
    limit: int = Query(3, ge=1, le=MAX_LATEST_LIMIT),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Newest blogs first."""
    with unexpected_errors("An error occurred while fetching latest blogs"):
        blogs = await BlogService.latest_blogs(db, cache, limit)
    return success_response(blogs, meta={"count": len(blogs), "limit": limit})


@router.get("/{blog_id}", dependencies=[Depends(throttle("blogs.show", 100))])
async def get_blog(
    blog_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Get a single blog with image count and relative timestamps."""
    with unexpected_errors("An error occurred while fetching the blog"):
        blog = await BlogService.blog_detail(db, cache, blog_id)
    return success_response(blog)


@router.get("/{blog_id}/related", dependencies=[Depends(throttle("blogs.related", 100))])
async def related_blogs(
    blog_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Up to three blogs related by title keywords."""
    with unexpected_errors("An error occurred while fetching related blogs"):
        blogs = await BlogService.related_blogs(db, cache, blog_id)
    return success_response(blogs, meta={"blog_id": blog_id, "count": len(blogs), "limit": 3})


# Admin endpoints

@admin_router.get("")
async def admin_list_blogs(
    search: Optional[str] = Query(None, max_length=255),
    per_page: Optional[int] = Query(None, alias="perPage"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Blog list for the admin panel (uncached)."""
    per_page = admin_per_page(per_page)
    blogs, total = await BlogService.admin_list(db, search, page, per_page)
    return success_response(
        [_blog_payload(blog) for blog in blogs],
        meta=pagination_meta(total, page, per_page, len(blogs)),
        filters={"search": search or "", "perPage": per_page},
    )


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_blog(
    title: str = Form(..., min_length=1, max_length=255),
    content: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Create a blog (Admin / System Admin).

    Images are validated before anything is written.
    """
    prepared = await storage.prepare_many(images)
    blog = await BlogService.create_blog(db, storage, BlogData(title=title, content=content), prepared)
    return success_response(_blog_payload(blog), message="Blog created successfully.")


@admin_router.put("/{blog_id}")
async def update_blog(
    blog_id: int,
    title: str = Form(..., min_length=1, max_length=255),
    content: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    keep_existing_images: bool = Form(True, alias="keepExistingImages"),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Update a blog (Admin / System Admin).

    New images are appended to the kept ones; at most five are stored.
    """
    blog = await BlogService.get_blog(db, blog_id)
    prepared = await storage.prepare_many(images)
    blog = await BlogService.update_blog(
        db, storage, blog, BlogData(title=title, content=content), prepared, keep_existing_images
    )
    return success_response(_blog_payload(blog), message="Blog updated successfully.")


@admin_router.delete("/{blog_id}")
async def delete_blog(
    blog_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Delete a blog and its stored images (Admin / System Admin)."""
    blog = await BlogService.get_blog(db, blog_id)
    await BlogService.delete_blog(db, storage, blog)
    return success_response(message="Blog deleted successfully.")
