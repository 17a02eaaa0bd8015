"""
Principal Service.

Brand partners and the products they own. Deleting a principal keeps its
products and clears their principal reference.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.events import Event, EventType, event_bus
from backend.app.core.exceptions import NotFoundError
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.schemas.principal import PrincipalData
from backend.app.services import transformers
from backend.app.services.cache import CacheStore, LIST_TTL, hashed_key
from backend.app.services.pagination import paginate, search_clause
from backend.app.services.storage import ImageStorage, PreparedImage

logger = logging.getLogger(__name__)

SORT_FIELDS = ("name", "created_at", "updated_at")
LOGO_FOLDER = "principals"
CACHE_TAGS = ("principals",)


class PrincipalService:

    @staticmethod
    async def get_principal(db: AsyncSession, principal_id: int) -> Principal:
        principal = await db.get(Principal, principal_id)
        if not principal:
            raise NotFoundError("Principal", principal_id)
        return principal

    # Public reads

    @staticmethod
    async def list_principals(
        db: AsyncSession,
        cache: CacheStore,
        sort_by: str = "name",
        sort_order: str = "asc",
    ) -> List[Dict[str, Any]]:
        cache_key = hashed_key("principals", {"sortBy": sort_by, "sortOrder": sort_order})

        async def produce():
            column = getattr(Principal, sort_by)
            order = column.asc() if sort_order == "asc" else column.desc()
            result = await db.execute(select(Principal).order_by(order, Principal.id.asc()))
            return [transformers.principal_summary(principal) for principal in result.scalars().all()]

        return await cache.remember(cache_key, LIST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def featured_principals(db: AsyncSession, cache: CacheStore) -> List[Dict[str, Any]]:
        async def produce():
            result = await db.execute(
                select(Principal)
                .where(Principal.is_featured.is_(True))
                .order_by(Principal.name.asc(), Principal.id.asc())
            )
            return [transformers.principal_summary(principal) for principal in result.scalars().all()]

        return await cache.remember("principals_featured_api_v1", LIST_TTL, produce, tags=CACHE_TAGS)

    @staticmethod
    async def principal_products(db: AsyncSession, cache: CacheStore, principal_id: int) -> Dict[str, Any]:
        """
        The principal together with its products ordered by name.

        Returns:
            {"principal": {...}, "data": [transformed products]}
        """
        principal = await PrincipalService.get_principal(db, principal_id)

        async def produce():
            result = await db.execute(
                select(Product)
                .where(Product.principal_id == principal_id)
                .order_by(Product.name.asc(), Product.id.asc())
            )
            return [transformers.product_summary(product) for product in result.scalars().all()]

        products = await cache.remember(
            f"principal_{principal_id}_products", LIST_TTL, produce, tags=CACHE_TAGS + ("products",)
        )
        return {"principal": transformers.principal_summary(principal), "data": products}

    # Admin writes

    @staticmethod
    async def admin_list(db: AsyncSession, search: Optional[str], page: int, per_page: int):
        query = select(Principal)
        if search:
            query = query.where(search_clause(search, Principal.name, Principal.description))
        query = query.order_by(Principal.name.asc(), Principal.id.asc())
        return await paginate(db, query, page, per_page)

    @staticmethod
    async def _publish(event_type: EventType, principal_id: int) -> None:
        await event_bus.publish(Event(type=event_type, entity_type="principal", entity_id=principal_id))

    @staticmethod
    async def create_principal(
        db: AsyncSession,
        storage: ImageStorage,
        data: PrincipalData,
        logo: Optional[PreparedImage] = None,
    ) -> Principal:
        # 1. Logo first; removed again if the row cannot be written
        logo_path = storage.save(logo, LOGO_FOLDER) if logo else None
        principal = Principal(
            name=data.name,
            description=data.description,
            logo=logo_path,
            is_featured=data.is_featured,
        )
        try:
            db.add(principal)
            await db.commit()
            await db.refresh(principal)
        except Exception:
            await db.rollback()
            storage.delete(logo_path)
            raise

        # 2. Invalidate caches
        await PrincipalService._publish(EventType.PRINCIPAL_CREATED, principal.id)
        logger.info(f"Principal created: id={principal.id}")
        return principal

    @staticmethod
    async def update_principal(
        db: AsyncSession,
        storage: ImageStorage,
        principal: Principal,
        data: PrincipalData,
        logo: Optional[PreparedImage] = None,
        remove_logo: bool = False,
    ) -> Principal:
        old_logo = principal.logo
        new_logo = storage.save(logo, LOGO_FOLDER) if logo else None

        principal.name = data.name
        principal.description = data.description
        principal.is_featured = data.is_featured
        if new_logo:
            principal.logo = new_logo
        elif remove_logo:
            principal.logo = None
        try:
            await db.commit()
            await db.refresh(principal)
        except Exception:
            await db.rollback()
            storage.delete(new_logo)
            raise

        if old_logo and old_logo != principal.logo:
            storage.delete(old_logo)
        await PrincipalService._publish(EventType.PRINCIPAL_UPDATED, principal.id)
        return principal

    @staticmethod
    async def delete_principal(db: AsyncSession, storage: ImageStorage, principal: Principal) -> None:
        principal_id = principal.id
        logo = principal.logo

        # Products outlive their principal
        await db.execute(
            update(Product).where(Product.principal_id == principal_id).values(principal_id=None)
        )
        await db.delete(principal)
        await db.commit()

        storage.delete(logo)
        await PrincipalService._publish(EventType.PRINCIPAL_DELETED, principal_id)
        logger.info(f"Principal deleted: id={principal_id}")
