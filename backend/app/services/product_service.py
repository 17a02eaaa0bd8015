"""
Product Service.

Catalog reads (paged list, latest, featured, detail) are served through the
cache store. Writes store images, commit, and then publish a product event.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.events import Event, EventType, event_bus
from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.enums import ProductType
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.schemas.product import ProductData
from backend.app.services import transformers
from backend.app.services.cache import CacheStore, DETAIL_TTL, LATEST_TTL, LIST_TTL, hashed_key
from backend.app.services.pagination import paginate, search_clause
from backend.app.services.storage import ImageStorage, PreparedImage

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "updated_at", "name")
IMAGE_FOLDER = "products"
CACHE_TAGS = ("products",)


class ProductService:

    @staticmethod
    async def get_product(db: AsyncSession, product_id: int) -> Product:
        product = await db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    @staticmethod
    def product_type_options() -> List[Dict[str, str]]:
        return [{"value": product_type.value, "label": product_type.display_name} for product_type in ProductType]

    # Public reads

    @staticmethod
    async def list_products(
        db: AsyncSession,
        cache: CacheStore,
        search: str = "",
        product_type: Optional[ProductType] = None,
        per_page: int = 10,
        page: int = 1,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """
        One page of products filtered by search text and product type.

        Returns:
            {"data": [transformed products], "total": matching rows}
        """
        cache_key = hashed_key("products", {
            "search": search or "",
            "product_type": product_type.value if product_type else "",
            "perPage": per_page,
            "page": page,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        })

        async def produce():
            query = select(Product)
            if search:
                query = query.where(search_clause(search, Product.name, Product.description))
            if product_type:
                query = query.where(Product.product_type == product_type)
            column = getattr(Product, sort_by)
            if sort_order == "asc":
                query = query.order_by(column.asc(), Product.id.asc())
            else:
                query = query.order_by(column.desc(), Product.id.desc())
            products, total = await paginate(db, query, page, per_page)
            return {"data": [transformers.product_summary(product) for product in products], "total": total}

        return await cache.remember(cache_key, LIST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def latest_products(db: AsyncSession, cache: CacheStore, limit: int = 3) -> List[Dict[str, Any]]:
        async def produce():
            result = await db.execute(
                select(Product).order_by(Product.created_at.desc(), Product.id.desc()).limit(limit)
            )
            return [transformers.product_summary(product) for product in result.scalars().all()]

        return await cache.remember(f"products_latest_{limit}", LATEST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def featured_products(db: AsyncSession, cache: CacheStore, limit: int = 3) -> List[Dict[str, Any]]:
        async def produce():
            result = await db.execute(
                select(Product)
                .where(Product.is_featured.is_(True))
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(limit)
            )
            return [transformers.product_summary(product) for product in result.scalars().all()]

        return await cache.remember(
            f"products_featured_{limit}", LATEST_TTL, produce, tags=CACHE_TAGS + ("principals",)
        )

    @staticmethod
    async def product_detail(db: AsyncSession, cache: CacheStore, product_id: int) -> Dict[str, Any]:
        async def produce():
            product = await ProductService.get_product(db, product_id)
            principal = await db.get(Principal, product.principal_id) if product.principal_id else None
            return transformers.product_detail(product, principal)

        return await cache.remember(
            f"product_show_api_{product_id}", DETAIL_TTL, produce, tags=CACHE_TAGS + ("principals",)
        )

    # Admin writes

    @staticmethod
    async def admin_list(
        db: AsyncSession,
        search: Optional[str],
        product_type: Optional[ProductType],
        page: int,
        per_page: int,
    ):
        query = select(Product)
        if search:
            query = query.where(search_clause(search, Product.name, Product.description))
        if product_type:
            query = query.where(Product.product_type == product_type)
        query = query.order_by(Product.created_at.desc(), Product.id.desc())
        return await paginate(db, query, page, per_page)

    @staticmethod
    async def _check_principal(db: AsyncSession, principal_id: Optional[int]) -> None:
        if principal_id is not None and not await db.get(Principal, principal_id):
            raise ValidationError.for_field("principal_id", "The selected principal is invalid.")

    @staticmethod
    async def _publish(event_type: EventType, product_id: int) -> None:
        await event_bus.publish(Event(type=event_type, entity_type="product", entity_id=product_id))

    @staticmethod
    async def create_product(
        db: AsyncSession,
        storage: ImageStorage,
        data: ProductData,
        images: List[PreparedImage],
    ) -> Product:
        await ProductService._check_principal(db, data.principal_id)

        # 1. Files first; removed again if the row cannot be written
        paths = storage.save_many(images, IMAGE_FOLDER)
        product = Product(
            name=data.name,
            product_type=data.product_type,
            description=data.description,
            features=[feature for feature in data.features if feature],
            images=paths,
            is_featured=data.is_featured,
            principal_id=data.principal_id,
        )
        try:
            db.add(product)
            await db.commit()
            await db.refresh(product)
        except Exception:
            await db.rollback()
            storage.delete_many(paths)
            raise

        # 2. Invalidate caches
        await ProductService._publish(EventType.PRODUCT_CREATED, product.id)
        logger.info(f"Product created: id={product.id}, type={product.product_type.value}")
        return product

    @staticmethod
    async def update_product(
        db: AsyncSession,
        storage: ImageStorage,
        product: Product,
        data: ProductData,
        images: List[PreparedImage],
        keep_existing_images: bool = True,
        max_images: int = 5,
    ) -> Product:
        await ProductService._check_principal(db, data.principal_id)

        existing = list(product.images or [])
        kept = existing if keep_existing_images else []
        new_paths = storage.save_many(images[:max(0, max_images - len(kept))], IMAGE_FOLDER)
        removed = [path for path in existing if path not in kept]

        product.name = data.name
        product.product_type = data.product_type
        product.description = data.description
        product.features = [feature for feature in data.features if feature]
        product.images = kept + new_paths
        product.is_featured = data.is_featured
        product.principal_id = data.principal_id
        try:
            await db.commit()
            await db.refresh(product)
        except Exception:
            await db.rollback()
            storage.delete_many(new_paths)
            raise

        storage.delete_many(removed)
        await ProductService._publish(EventType.PRODUCT_UPDATED, product.id)
        return product

    @staticmethod
    async def delete_product(db: AsyncSession, storage: ImageStorage, product: Product) -> None:
        product_id = product.id
        images = list(product.images or [])
        await db.delete(product)
        await db.commit()

        storage.delete_many(images)
        await ProductService._publish(EventType.PRODUCT_DELETED, product_id)
        logger.info(f"Product deleted: id={product_id}")
