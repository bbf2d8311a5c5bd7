"""
Base Worker
===========
Abstract base class for event-driven workers.

Workers subscribe to topics, process events, and emit new events.
Provides standardized logging and error handling.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
from uuid import uuid4

from services.event_bus import EventBus, Event, Topics

logger = logging.getLogger(__name__)


class BaseWorker(ABC):
    """
    Base class for event-driven workers.

    Example:
        class ExportWorker(BaseWorker):
            def get_subscriptions(self) -> List[str]:
                return [Topics.EXPORT_REQUESTED]

            async def handle_event(self, event: Event) -> None:
                ...
                await self.emit(Topics.EXPORT_BATCH_STARTED, {...})
    """

    def __init__(
        self,
        event_bus: Optional[EventBus] = None,
        worker_id: Optional[str] = None
    ):
        """
        Initialize the worker.

        Args:
            event_bus: EventBus instance (uses singleton if not provided)
            worker_id: Unique worker identifier (auto-generated if not provided)
        """
        self.event_bus = event_bus or EventBus.get_instance()
        self.worker_id = worker_id or f"{self.__class__.__name__}-{uuid4().hex[:8]}"
        self.is_running = False
        self._events_processed = 0
        self._events_failed = 0
        self._started_at: Optional[datetime] = None

        for topic_pattern in self.get_subscriptions():
            self.event_bus.subscribe(topic_pattern, self._wrapped_handler)
            logger.debug(f"📫 {self.worker_id} subscribed to: {topic_pattern}")

        logger.info(f"🔧 Worker initialized: {self.worker_id}")

    @abstractmethod
    def get_subscriptions(self) -> List[str]:
        """Return list of topic patterns this worker subscribes to."""
        pass

    @abstractmethod
    async def handle_event(self, event: Event) -> None:
        """
        Process a received event.

        Raises:
            Exception: Any error is counted, logged and re-raised to the bus
        """
        pass

    async def _wrapped_handler(self, event: Event) -> None:
        """Wrap handle_event with logging and counters."""
        start_time = time.time()

        logger.info(
            f"[{self.worker_id}] 📥 Received: {event.topic} | "
            f"cid={event.correlation_id[:8]}..."
        )

        try:
            await self.handle_event(event)

            self._events_processed += 1
            logger.info(
                f"[{self.worker_id}] ✅ Completed: {event.topic} | "
                f"duration={time.time() - start_time:.2f}s"
            )

        except Exception as e:
            self._events_failed += 1
            logger.error(
                f"[{self.worker_id}] ❌ Failed: {event.topic} | "
                f"error={str(e)} | duration={time.time() - start_time:.2f}s"
            )
            # Re-raise to let event bus handle dead-lettering
            raise

    async def emit(
        self,
        topic: str,
        payload: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> str:
        """Publish an event with this worker as its source."""
        return await self.event_bus.publish(
            topic=topic,
            payload=payload,
            correlation_id=correlation_id,
            source=self.worker_id
        )

    async def start(self) -> None:
        """Start the worker (mark as running)."""
        self.is_running = True
        self._started_at = datetime.now(timezone.utc)

        await self.emit(
            Topics.WORKER_STARTED,
            {
                "worker_id": self.worker_id,
                "worker_type": self.__class__.__name__,
                "subscriptions": self.get_subscriptions()
            }
        )

        logger.info(f"🚀 Worker started: {self.worker_id}")

    async def stop(self) -> None:
        """Stop the worker gracefully."""
        self.is_running = False

        await self.emit(
            Topics.WORKER_STOPPED,
            {
                "worker_id": self.worker_id,
                "events_processed": self._events_processed,
                "events_failed": self._events_failed,
                "uptime_seconds": self.get_uptime_seconds()
            }
        )

        logger.info(f"🛑 Worker stopped: {self.worker_id}")

    def get_uptime_seconds(self) -> float:
        if self._started_at:
            return (datetime.now(timezone.utc) - self._started_at).total_seconds()
        return 0.0

    def get_stats(self) -> Dict[str, Any]:
        """Get worker statistics."""
        return {
            "worker_id": self.worker_id,
            "worker_type": self.__class__.__name__,
            "is_running": self.is_running,
            "events_processed": self._events_processed,
            "events_failed": self._events_failed,
            "uptime_seconds": self.get_uptime_seconds(),
            "subscriptions": self.get_subscriptions(),
        }
