"""
Product API endpoints.

Public catalog reads (cached) plus admin CRUD. New products are announced to
newsletter subscribers.
"""

import logging
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.db.session import get_db
from backend.app.models.enums import ProductType
from backend.app.models.user import User
from backend.app.schemas.common import success_response
from backend.app.schemas.product import ProductData, ProductResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import unexpected_errors
from backend.app.core.guards import require_admin_privileges
from backend.app.core.rate_limit import throttle
from backend.app.services.cache import CacheStore, MAX_LATEST_LIMIT, get_cache_store
from backend.app.services.email_client import EmailClient, get_mailer
from backend.app.services.notification_service import NotificationService
from backend.app.services.pagination import admin_per_page
from backend.app.services.product_service import ProductService
from backend.app.services.storage import ImageStorage, get_image_storage
from backend.app.services.transformers import pagination_links, pagination_meta

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])
admin_router = APIRouter(prefix="/admin/products", tags=["Admin Products"])


def _product_payload(product) -> dict:
    return ProductResponse.model_validate(product).model_dump(mode="json")


@router.get("", dependencies=[Depends(throttle("products.index", 60))])
async def list_products(
    request: Request,
    search: Optional[str] = Query(None, max_length=255),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    per_page: int = Query(10, alias="perPage", ge=1, le=100),
    page: int = Query(1, ge=1),
    sort_by: Literal["created_at", "updated_at", "name"] = Query("created_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """
    List products with search, type filter, sorting and pagination.

    Results are cached for five minutes per parameter combination.
    """
    with unexpected_errors("An error occurred while fetching products"):
        result = await ProductService.list_products(
            db, cache, search or "", product_type, per_page, page, sort_by, sort_order
        )

    meta = pagination_meta(result["total"], page, per_page, len(result["data"]))
    links = pagination_links(
        f"{str(request.base_url).rstrip('/')}{request.url.path}",
        {
            "search": search,
            "productType": product_type.value if product_type else None,
            "perPage": per_page,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        },
        page,
        meta["last_page"],
    )
    return success_response(result["data"], meta=meta, links=links)


@router.get("/types")
async def product_types():
    """Selectable product types with display labels."""
    return success_response(ProductService.product_type_options())


@router.get("/latest", dependencies=[Depends(throttle("products.latest", 100))])
async def latest_products(
    limit: int = Query(3, ge=1, le=MAX_LATEST_LIMIT),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    with unexpected_errors("An error occurred while fetching latest products"):
        products = await ProductService.latest_products(db, cache, limit)
    return success_response(products, meta={"count": len(products), "limit": limit})


@router.get("/featured", dependencies=[Depends(throttle("products.featured", 100))])
async def featured_products(
    limit: int = Query(3, ge=1, le=MAX_LATEST_LIMIT),
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Featured products, newest first."""
    with unexpected_errors("An error occurred while fetching featured products"):
        products = await ProductService.featured_products(db, cache, limit)
    return success_response(products, meta={"count": len(products), "limit": limit})


@router.get("/{product_id}", dependencies=[Depends(throttle("products.show", 100))])
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_db),
    cache: CacheStore = Depends(get_cache_store),
):
    """Get a single product with its principal."""
    with unexpected_errors("An error occurred while fetching the product"):
        product = await ProductService.product_detail(db, cache, product_id)
    return success_response(product)


# Admin endpoints

@admin_router.get("")
async def admin_list_products(
    search: Optional[str] = Query(None, max_length=255),
    product_type: Optional[ProductType] = Query(None, alias="productType"),
    per_page: Optional[int] = Query(None, alias="perPage"),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Product list for the admin panel (uncached)."""
    per_page = admin_per_page(per_page)
    products, total = await ProductService.admin_list(db, search, product_type, page, per_page)
    return success_response(
        [_product_payload(product) for product in products],
        meta=pagination_meta(total, page, per_page, len(products)),
        filters={
            "search": search or "",
            "productType": product_type.value if product_type else "",
            "perPage": per_page,
        },
        product_types=ProductService.product_type_options(),
    )


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(..., min_length=1, max_length=255),
    product_type: ProductType = Form(...),
    description: Optional[str] = Form(None),
    features: List[str] = Form([]),
    is_featured: bool = Form(False),
    principal_id: Optional[int] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    mailer: EmailClient = Depends(get_mailer),
):
    """
    Create a product (Admin / System Admin).

    Subscribers are notified once the product is stored.
    """
    data = ProductData(
        name=name,
        product_type=product_type,
        description=description,
        features=features,
        is_featured=is_featured,
        principal_id=principal_id,
    )
    prepared = await storage.prepare_many(images)
    product = await ProductService.create_product(db, storage, data, prepared)

    try:
        await NotificationService.notify_product_created(db, mailer, product)
    except Exception as e:
        logger.error(f"Failed to send new product notification for product {product.id}: {e}")

    return success_response(_product_payload(product), message="Product created successfully.")


@admin_router.put("/{product_id}")
async def update_product(
    product_id: int,
    name: str = Form(..., min_length=1, max_length=255),
    product_type: ProductType = Form(...),
    description: Optional[str] = Form(None),
    features: List[str] = Form([]),
    is_featured: bool = Form(False),
    principal_id: Optional[int] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    keep_existing_images: bool = Form(True, alias="keepExistingImages"),
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Update a product (Admin / System Admin)."""
    product = await ProductService.get_product(db, product_id)
    data = ProductData(
        name=name,
        product_type=product_type,
        description=description,
        features=features,
        is_featured=is_featured,
        principal_id=principal_id,
    )
    prepared = await storage.prepare_many(images)
    product = await ProductService.update_product(db, storage, product, data, prepared, keep_existing_images)
    return success_response(_product_payload(product), message="Product updated successfully.")


@admin_router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    current_user: User = Depends(require_admin_privileges),
    db: AsyncSession = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Delete a product and its stored images (Admin / System Admin)."""
    product = await ProductService.get_product(db, product_id)
    await ProductService.delete_product(db, storage, product)
    return success_response(message="Product deleted successfully.")
