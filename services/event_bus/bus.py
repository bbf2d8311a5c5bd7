"""
Event Bus
=========
In-process message broker for topic-based pub/sub.

Supports:
    - Topic subscriptions with wildcard patterns
    - Async event handlers
    - Event history and dead-letter queue
    - Singleton pattern for global access
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Callable, Any, Optional, Awaitable, Tuple
from uuid import uuid4

from .event import Event
from .topics import Topics

logger = logging.getLogger(__name__)


# Type alias for event handlers
EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """
    In-memory event bus for topic-based pub/sub.

    A failing handler never stops delivery to the other handlers; the
    event and the exception go to the dead-letter queue instead.

    Usage:
        bus = EventBus.get_instance()

        bus.subscribe("render.*", on_render_event)
        await bus.publish(Topics.RENDER_COMPLETED, {"job_id": "abc"})
    """

    _instance: Optional["EventBus"] = None

    def __init__(self, max_log_size: int = 1000):
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._event_log: List[Event] = []
        self._dead_letter_queue: List[Tuple[Event, Exception]] = []
        self._max_log_size = max_log_size
        self._source = "event-bus"

        logger.debug("🚌 EventBus initialized")

    @classmethod
    def get_instance(cls) -> "EventBus":
        """Get or create the singleton EventBus instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    async def publish(
        self,
        topic: str,
        payload: Dict[str, Any],
        correlation_id: Optional[str] = None,
        source: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Publish an event to a topic.

        Args:
            topic: Event topic (e.g., "render.completed")
            payload: Event-specific data
            correlation_id: Optional ID to link related events
            source: Optional source override
            metadata: Optional additional metadata

        Returns:
            Event ID for tracking
        """
        event = Event(
            id=str(uuid4()),
            topic=topic,
            timestamp=datetime.now(timezone.utc),
            source=source or self._source,
            correlation_id=correlation_id or str(uuid4()),
            payload=payload,
            metadata=metadata or {}
        )

        self._log_event(event)
        await self._dispatch(event)

        return event.id

    def subscribe(self, topic_pattern: str, handler: EventHandler) -> str:
        """
        Subscribe a handler to a topic pattern ("render.*", "*.failed", "*").

        Returns:
            Subscription ID for tracking
        """
        self._subscribers[topic_pattern].append(handler)
        logger.debug(f"📫 Subscribed to '{topic_pattern}': {getattr(handler, '__name__', handler)}")
        return f"{topic_pattern}:{id(handler)}"

    def unsubscribe(self, topic_pattern: str, handler: EventHandler) -> bool:
        """
        Remove a handler from a topic pattern.

        Returns:
            True if handler was found and removed
        """
        handlers = self._subscribers.get(topic_pattern)
        if handlers and handler in handlers:
            handlers.remove(handler)
            return True
        return False

    async def _dispatch(self, event: Event) -> None:
        """Dispatch event to all matching subscribers."""
        handlers_called = 0

        for pattern, handlers in list(self._subscribers.items()):
            if not Topics.matches_pattern(pattern, event.topic):
                continue
            for handler in list(handlers):
                try:
                    await handler(event)
                    handlers_called += 1
                except Exception as e:
                    logger.error(
                        f"❌ Handler {getattr(handler, '__name__', handler)} failed for {event.topic}: {e}"
                    )
                    self._dead_letter_queue.append((event, e))

        logger.debug(f"📤 {event.topic} | cid={event.correlation_id[:8]}... → {handlers_called} handler(s)")

    def _log_event(self, event: Event) -> None:
        """Add event to history log with size limit."""
        self._event_log.append(event)
        if len(self._event_log) > self._max_log_size:
            self._event_log = self._event_log[-self._max_log_size:]

    def get_recent_events(
        self,
        topic_pattern: Optional[str] = None,
        limit: int = 50,
        correlation_id: Optional[str] = None
    ) -> List[Event]:
        """
        Get recent events from the log, newest first.

        Args:
            topic_pattern: Optional filter by topic pattern
            limit: Maximum events to return
            correlation_id: Optional filter by correlation ID
        """
        events = self._event_log[::-1]

        if topic_pattern:
            events = [e for e in events if Topics.matches_pattern(topic_pattern, e.topic)]

        if correlation_id:
            events = [e for e in events if e.correlation_id == correlation_id]

        return events[:limit]

    def get_dead_letter_queue(self, limit: int = 50) -> List[Tuple[Event, str]]:
        """Get failed deliveries from the dead-letter queue."""
        return [(e, str(ex)) for e, ex in self._dead_letter_queue[-limit:]]

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics."""
        return {
            "total_events_logged": len(self._event_log),
            "dead_letter_count": len(self._dead_letter_queue),
            "subscriber_patterns": len(self._subscribers),
            "total_subscribers": sum(len(h) for h in self._subscribers.values()),
        }
