"""
Internal event bus for decoupled communication.

The engine publishes scan results, trade outcomes, and lifecycle changes
here; the dashboard broadcaster and the CLI reporter subscribe without
the engine knowing about either.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from arbsim.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """System event types. Values double as wire message types."""

    # Market events
    MARKET_UPDATE = "market_update"
    OPPORTUNITIES_SCAN = "opportunities_scan"

    # Portfolio events
    TRADE_EXECUTED = "portfolio_trade_executed"
    PORTFOLIO_RESET = "portfolio_reset"

    # Lifecycle events
    BOT_STARTED = "bot_started"
    BOT_STOPPED = "bot_stopped"


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Generic event with typed payload."""

    type: EventType
    payload: T
    timestamp_ms: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp_ms:
            self.timestamp_ms = get_timestamp_ms()


# Type alias for event handlers
EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Publish/subscribe hub for engine events.

    Sync handlers run before async ones; within each group higher
    priority runs first. A failing handler is logged and skipped.
    """

    def __init__(self) -> None:
        """Initialize event bus."""
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_all(self, handler: EventHandler, priority: int = 0) -> None:
        """Subscribe an async handler to every event type."""
        for event_type in EventType:
            self.subscribe(event_type, handler, priority)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for i, (_, ah) in enumerate(self._handlers[event_type]):
            if ah is handler:
                self._handlers[event_type].pop(i)
                return True

        for i, (_, sh) in enumerate(self._sync_handlers[event_type]):
            if sh is handler:
                self._sync_handlers[event_type].pop(i)
                return True

        return False

    async def publish(self, event: Event[Any]) -> None:
        """
        Publish an event to all subscribers.

        Args:
            event: Event to publish.
        """
        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")

        for _, async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    def clear(self, event_type: EventType | None = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: Specific type to clear, or None for all.
        """
        if event_type:
            self._handlers[event_type].clear()
            self._sync_handlers[event_type].clear()
        else:
            self._handlers.clear()
            self._sync_handlers.clear()

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])
