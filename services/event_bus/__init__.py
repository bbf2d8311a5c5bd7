"""
Event Bus Module
================
In-process pub/sub used to announce render job transitions and export
notifications to whoever presents them.

Usage:
    from services.event_bus import EventBus, Event, Topics

    bus = EventBus.get_instance()
    bus.subscribe("render.*", handler)
    await bus.publish(Topics.RENDER_COMPLETED, {"job_id": "123"})
"""

from .event import Event
from .topics import Topics
from .bus import EventBus, EventHandler

__all__ = ['Event', 'Topics', 'EventBus', 'EventHandler']
