"""
Read-through cache store.

Two backends share one contract:
    remember(key, ttl, producer, tags=None) -> cached value or producer result
    forget(key)
    flush()
    invalidate_tag(tag)

Values must be JSON-serializable; the read layer stores already-transformed
payloads, never ORM objects. In production the store wraps a dedicated Redis
database so ``flush`` never touches rate-limit counters.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, Tuple

import redis.asyncio as redis

from backend.app.core.config import settings

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any]]

# TTLs by endpoint class (seconds)
LIST_TTL = 300
DETAIL_TTL = 300
LATEST_TTL = 600
RELATED_TTL = 900
DASHBOARD_TTL = 300

# Upper bound of the ``limit`` parameter on latest/featured endpoints
MAX_LATEST_LIMIT = 50


def hashed_key(prefix: str, params: Dict[str, Any]) -> str:
    """
    Derive a deterministic key from normalized query parameters.

    Callers must substitute defaults before hashing so that an omitted
    parameter and its explicit default produce the same key.
    """
    encoded = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    return f"{prefix}_api_{hashlib.md5(encoded.encode('utf-8')).hexdigest()}"


class CacheStore(ABC):
    """Key/value store with TTL and read-through helper."""

    @abstractmethod
    async def get(self, key: str) -> Tuple[bool, Any]:
        """Return ``(hit, value)``; a cached ``None`` is still a hit."""

    @abstractmethod
    async def put(self, key: str, value: Any, ttl: int, tags: Optional[Iterable[str]] = None) -> None:
        ...

    @abstractmethod
    async def forget(self, key: str) -> bool:
        ...

    @abstractmethod
    async def flush(self) -> None:
        ...

    @abstractmethod
    async def invalidate_tag(self, tag: str) -> int:
        """Drop every key stored with ``tag``; returns the number removed."""

    async def remember(
        self,
        key: str,
        ttl: int,
        producer: Producer,
        tags: Optional[Iterable[str]] = None,
    ) -> Any:
        hit, value = await self.get(key)
        if hit:
            return value
        value = await producer()
        await self.put(key, value, ttl, tags)
        return value

    async def forget_many(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in keys:
            if await self.forget(key):
                removed += 1
        return removed


class InMemoryCacheStore(CacheStore):
    """
    Process-local store.

    Used for tests and single-process development; entries expire lazily on read.
    """

    def __init__(self):
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._tags: Dict[str, Set[str]] = {}

    def __contains__(self, key: str) -> bool:
        entry = self._store.get(key)
        return entry is not None and entry[0] > time.monotonic()

    def keys(self) -> Set[str]:
        now = time.monotonic()
        return {key for key, (expires_at, _) in self._store.items() if expires_at > now}

    async def get(self, key: str) -> Tuple[bool, Any]:
        entry = self._store.get(key)
        if entry is None:
            return False, None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._store[key]
            return False, None
        return True, value

    async def put(self, key: str, value: Any, ttl: int, tags: Optional[Iterable[str]] = None) -> None:
        # Round-trip through JSON so cached values behave like the Redis backend
        self._store[key] = (time.monotonic() + ttl, json.loads(json.dumps(value, default=str)))
        for tag in tags or ():
            self._tags.setdefault(tag, set()).add(key)

    async def forget(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def flush(self) -> None:
        self._store.clear()
        self._tags.clear()

    async def invalidate_tag(self, tag: str) -> int:
        keys = self._tags.pop(tag, set())
        return sum(1 for key in keys if self._store.pop(key, None) is not None)


class RedisCacheStore(CacheStore):
    """Redis-backed store; values are JSON documents stored with SETEX."""

    TAG_PREFIX = "cache:tag:"

    def __init__(self, client: "redis.Redis"):
        self.client = client

    async def get(self, key: str) -> Tuple[bool, Any]:
        raw = await self.client.get(key)
        if raw is None:
            return False, None
        return True, json.loads(raw)

    async def put(self, key: str, value: Any, ttl: int, tags: Optional[Iterable[str]] = None) -> None:
        await self.client.setex(key, ttl, json.dumps(value, default=str))
        for tag in tags or ():
            tag_key = f"{self.TAG_PREFIX}{tag}"
            await self.client.sadd(tag_key, key)
            # Tag sets never outlive the longest-lived member
            await self.client.expire(tag_key, max(ttl, RELATED_TTL))

    async def forget(self, key: str) -> bool:
        return bool(await self.client.delete(key))

    async def flush(self) -> None:
        await self.client.flushdb()

    async def invalidate_tag(self, tag: str) -> int:
        tag_key = f"{self.TAG_PREFIX}{tag}"
        keys = await self.client.smembers(tag_key)
        removed = 0
        if keys:
            removed = await self.client.delete(*keys)
        await self.client.delete(tag_key)
        return removed


def build_cache_store() -> CacheStore:
    """Create the configured cache backend."""
    if settings.cache_backend == "memory":
        logger.info("Using in-memory cache store")
        return InMemoryCacheStore()
    client = redis.from_url(settings.cache_redis_url, decode_responses=True)
    return RedisCacheStore(client)


cache_store: CacheStore = build_cache_store()


def get_cache_store() -> CacheStore:
    """FastAPI dependency returning the shared cache store."""
    return cache_store
