"""
Cache invalidation for catalog entities.

The invalidator listens to entity lifecycle events and evicts every cache
entry whose content may depend on the changed row. Key-scoped entries (latest
lists, detail pages, related lists) are forgotten explicitly; hashed list keys
cannot be enumerated, so the default strategy then flushes the whole store.
A tag-capable deployment selects ``TagInvalidationStrategy`` instead.

Invalidation never fails a write: errors are logged as warnings and staleness
is bounded by the entry TTL.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from backend.app.core.config import settings
from backend.app.core.events import Event, EventBus, EventType
from backend.app.services.cache import CacheStore, MAX_LATEST_LIMIT

logger = logging.getLogger(__name__)

PRODUCT = "product"
BLOG = "blog"
PRINCIPAL = "principal"

HERO_BACKGROUNDS_KEY = "hero_backgrounds_frontend"

# Product payloads embed their principal, and deleting a principal detaches
# its products, so principal changes also reach every product entry.
ENTITY_TAGS = {
    PRODUCT: ("products",),
    BLOG: ("blogs",),
    PRINCIPAL: ("principals", "products"),
}


def latest_keys(prefix: str) -> List[str]:
    return [f"{prefix}_{n}" for n in range(1, MAX_LATEST_LIMIT + 1)]


class InvalidationStrategy(ABC):
    """How a set of known keys plus the unenumerable remainder get evicted."""

    name: str = ""

    @abstractmethod
    async def invalidate(self, store: CacheStore, tags: Iterable[str], keys: Iterable[str]) -> None:
        ...


class ForgetThenFlushStrategy(InvalidationStrategy):
    """Forget the enumerable keys, then flush the store for the hashed ones."""

    name = "flush"

    async def invalidate(self, store: CacheStore, tags: Iterable[str], keys: Iterable[str]) -> None:
        await store.forget_many(keys)
        await store.flush()


class TagInvalidationStrategy(InvalidationStrategy):
    """Forget the enumerable keys, then drop everything carrying one of ``tags``."""

    name = "tags"

    async def invalidate(self, store: CacheStore, tags: Iterable[str], keys: Iterable[str]) -> None:
        await store.forget_many(keys)
        for tag in tags:
            removed = await store.invalidate_tag(tag)
            logger.debug(f"Invalidated {removed} entries tagged {tag}")


STRATEGIES = {
    ForgetThenFlushStrategy.name: ForgetThenFlushStrategy,
    TagInvalidationStrategy.name: TagInvalidationStrategy,
}


def build_strategy(name: Optional[str] = None) -> InvalidationStrategy:
    strategy_name = name or settings.cache_invalidation_strategy
    try:
        return STRATEGIES[strategy_name]()
    except KeyError:
        logger.warning(f"Unknown cache invalidation strategy '{strategy_name}', falling back to flush")
        return ForgetThenFlushStrategy()


class CacheInvalidator:
    """
    Maps entity mutations to cache keys and applies the configured strategy.

    Usage:
        invalidator = CacheInvalidator(cache_store)
        invalidator.register(event_bus)
    """

    def __init__(self, store: CacheStore, strategy: Optional[InvalidationStrategy] = None):
        self.store = store
        self.strategy = strategy or build_strategy()

    @staticmethod
    def product_keys() -> List[str]:
        return latest_keys("products_latest")

    @staticmethod
    def blog_keys(blog_id: Optional[int], sibling_ids: Iterable[int] = ()) -> List[str]:
        keys = []
        if blog_id is not None:
            keys.append(f"blog_show_api_{blog_id}")
            keys.append(f"blog_related_{blog_id}")
        keys.extend(latest_keys("blogs_latest"))
        # Any blog's related list may reference the changed blog
        keys.extend(f"blog_related_{sibling_id}" for sibling_id in sibling_ids if sibling_id != blog_id)
        return keys

    @staticmethod
    def principal_keys() -> List[str]:
        return latest_keys("products_latest") + latest_keys("products_featured")

    async def invalidate_product(self, product_id: Optional[int] = None) -> None:
        await self._apply(PRODUCT, self.product_keys(), product_id)

    async def invalidate_blog(self, blog_id: Optional[int] = None, sibling_ids: Iterable[int] = ()) -> None:
        await self._apply(BLOG, self.blog_keys(blog_id, sibling_ids), blog_id)

    async def invalidate_principal(self, principal_id: Optional[int] = None) -> None:
        await self._apply(PRINCIPAL, self.principal_keys(), principal_id)

    async def _apply(self, entity: str, keys: List[str], entity_id: Optional[int]) -> None:
        try:
            await self.strategy.invalidate(self.store, ENTITY_TAGS[entity], keys)
            logger.info(f"Cache invalidated for {entity} {entity_id} ({self.strategy.name})")
        except Exception as e:
            logger.warning(f"Cache invalidation failed for {entity} {entity_id}: {e}")

    async def invalidate_hero_backgrounds(self) -> None:
        """The frontend hero list lives under one fixed key; no flush needed."""
        try:
            await self.store.forget(HERO_BACKGROUNDS_KEY)
        except Exception as e:
            logger.warning(f"Cache invalidation failed for hero backgrounds: {e}")

    # Event handlers

    async def on_product_event(self, event: Event) -> None:
        await self.invalidate_product(event.entity_id)

    async def on_blog_event(self, event: Event) -> None:
        await self.invalidate_blog(event.entity_id, event.payload.get("sibling_ids", ()))

    async def on_principal_event(self, event: Event) -> None:
        await self.invalidate_principal(event.entity_id)

    async def on_hero_background_event(self, event: Event) -> None:
        await self.invalidate_hero_backgrounds()

    def register(self, bus: EventBus) -> None:
        """Subscribe to every catalog lifecycle event."""
        for event_type in (EventType.PRODUCT_CREATED, EventType.PRODUCT_UPDATED, EventType.PRODUCT_DELETED):
            bus.subscribe(event_type, self.on_product_event)
        for event_type in (EventType.BLOG_CREATED, EventType.BLOG_UPDATED, EventType.BLOG_DELETED):
            bus.subscribe(event_type, self.on_blog_event)
        for event_type in (EventType.PRINCIPAL_CREATED, EventType.PRINCIPAL_UPDATED, EventType.PRINCIPAL_DELETED):
            bus.subscribe(event_type, self.on_principal_event)
        for event_type in (EventType.HERO_BACKGROUNDS_UPLOADED, EventType.HERO_BACKGROUND_DELETED):
            bus.subscribe(event_type, self.on_hero_background_event)
