"""
Event Model
===========
Standardized event structure for all pub/sub communication.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any
from uuid import uuid4


@dataclass
class Event:
    """
    Represents an event in the pub/sub system.

    Attributes:
        id: Unique identifier for deduplication
        topic: Event topic (e.g., "render.completed")
        timestamp: When the event was created
        source: Component that created the event
        correlation_id: Links the events of one export request
        payload: Event-specific data
        metadata: Tracing info, etc.
    """
    topic: str
    payload: Dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "unknown"
    correlation_id: str = field(default_factory=lambda: str(uuid4()))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"Event(topic={self.topic}, id={self.id[:8]}..., cid={self.correlation_id[:8]}...)"
