"""
In-process event bus for entity lifecycle events.

Services publish an ``Event`` after a successful commit; subscribers (cache
invalidation) run synchronously within the same request. A failing handler is
logged and never propagates back into the write path.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    BLOG_CREATED = "blog_created"
    BLOG_UPDATED = "blog_updated"
    BLOG_DELETED = "blog_deleted"
    PRINCIPAL_CREATED = "principal_created"
    PRINCIPAL_UPDATED = "principal_updated"
    PRINCIPAL_DELETED = "principal_deleted"
    HERO_BACKGROUNDS_UPLOADED = "hero_backgrounds_uploaded"
    HERO_BACKGROUND_DELETED = "hero_background_deleted"


@dataclass
class Event:
    type: EventType
    entity_type: str
    entity_id: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], Union[None, Awaitable[None]]]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[EventType, List[Handler]] = {}

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: EventType, handler: Handler) -> None:
        if event_type in self._subscribers:
            self._subscribers[event_type].remove(handler)

    def clear(self) -> None:
        self._subscribers.clear()

    async def publish(self, event: Event) -> None:
        for handler in self._subscribers.get(event.type, []):
            try:
                result = handler(event)
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                logger.error(f"Event handler error for {event.type.value}: {e}", exc_info=True)


event_bus = EventBus()
