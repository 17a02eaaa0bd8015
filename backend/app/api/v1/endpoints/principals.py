"""
Principal API endpoints.

Principals are the brands whose products are distributed. Admin writes take
a multipart form with an optional logo.
"""

import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.principal import PrincipalData, PrincipalResponse
from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.guards import require_admin_privileges
from backend.app.core.rate_limit import throttle
from backend.app.services.cache import CacheStore, get_cache_store
from backend.app.services.email_client import EmailClient, get_mailer
from backend.app.services.notification_service import NotificationService
from backend.app.services.pagination import admin_per_page
from backend.app.services.principal_service import PrincipalService
from backend.app.services.storage import ImageStorage, get_image_storage, present_files
from backend.app.services.transformers import pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/principals", tags=["Principals"])
admin_router = APIRouter(prefix="/admin/principals", tags=["Admin Principals"])


def _principal_payload(principal) -> dict:
    return PrincipalResponse.model_validate(principal).model_dump(mode="json")


async def _prepare_logo(storage: ImageStorage, logo: Optional[UploadFile]):
    files = present_files([logo])
    if not files:
        return None
    return await storage.prepare(files[0], "logo", settings.max_logo_size_kb)


@router.get("", dependencies=[Depends(throttle("principals.index", 60))])
async def list_principals(
    sort_by: Literal["name", "created_at", "updated_at"] = Query("name", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """All principals, alphabetical by default."""
    with unexpected_errors("An error occurred while fetching principals"):
        principals = await PrincipalService.list_principals(db, cache, sort_by, sort_order)
    return success_response(principals, meta={"count": len(principals)})


@router.get("/featured", dependencies=[Depends(throttle("principals.featured", 100))])
async def featured_principals(
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    with unexpected_errors("An error occurred while fetching featured principals"):
        principals = await PrincipalService.featured_principals(db, cache)
    return success_response(principals, meta={"count": len(principals)})


@router.get("/{principal_id}/products", dependencies=[Depends(throttle("principals.products", 100))])
async def principal_products(
    principal_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Products distributed for one principal, ordered by name."""
    with unexpected_errors("An error occurred while fetching principal products"):
        result = await PrincipalService.principal_products(db, cache, principal_id)
    return success_response(
        result["data"],
        principal=result["principal"],
        meta={"count": len(result["data"])},
    )


# Admin endpoints

@admin_router.get("")
async def admin_list_principals(
    search: Optional[str] = Query(None, max_length=255),
    per_page: Optional[int] = Query(None, alias="perPage"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    per_page = admin_per_page(per_page)
    principals, total = await PrincipalService.admin_list(db, search, page, per_page)
    return success_response(
        [_principal_payload(principal) for principal in principals],
        meta=pagination_meta(total, page, per_page, len(principals)),
        filters={"search": search or "", "perPage": per_page},
    )


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_principal(
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    is_featured: bool = Form(False),
    logo: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    mailer: EmailClient = Depends(get_mailer),
):
    """
    Create a principal (Admin / System Admin).

    Subscribers are notified once the principal is stored.
    """
    data = PrincipalData(name=name, description=description, is_featured=is_featured)
    prepared = await _prepare_logo(storage, logo)
    principal = await PrincipalService.create_principal(db, storage, data, prepared)

    try:
        await NotificationService.notify_principal_created(db, mailer, principal)
    except Exception as e:
        logger.error(f"Failed to send new principal notification for principal {principal.id}: {e}")

    return success_response(_principal_payload(principal), message="Principal created successfully.")


@admin_router.put("/{principal_id}")
async def update_principal(
    principal_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(None),
    is_featured: bool = Form(False),
    logo: Optional[UploadFile] = File(None),
    remove_logo: bool = Form(False),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Update a principal (Admin / System Admin).

    A new logo replaces the stored one; ``remove_logo`` clears it.
    """
    principal = await PrincipalService.get_principal(db, principal_id)
    data = PrincipalData(name=name, description=description, is_featured=is_featured)
    prepared = await _prepare_logo(storage, logo)
    principal = await PrincipalService.update_principal(db, storage, principal, data, prepared, remove_logo)
    return success_response(_principal_payload(principal), message="Principal updated successfully.")


@admin_router.delete("/{principal_id}")
async def delete_principal(
    principal_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Delete a principal; its products stay in the catalog without one."""
    principal = await PrincipalService.get_principal(db, principal_id)
    await PrincipalService.delete_principal(db, storage, principal)
    return success_response(message="Principal deleted successfully.")
