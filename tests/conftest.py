"""
Pytest fixtures for clip export tests.

Sessions are built with a long poll interval so the background loop never
ticks on its own; tests drive polling with `await session.poller.tick()`.
"""

from typing import List

import pytest

from services.clip_export import ClipRequest, ExportSession
from services.clip_export.engines.mock import MockRenderEngine
from services.event_bus import Event, EventBus


@pytest.fixture
def event_bus() -> EventBus:
    """A private bus per test (the singleton is never touched)."""
    return EventBus()


@pytest.fixture
def recorded_events(event_bus) -> List[Event]:
    """Every event published on the test bus, in order."""
    events: List[Event] = []

    async def record(event: Event) -> None:
        events.append(event)

    event_bus.subscribe("*", record)
    return events


@pytest.fixture
def engine() -> MockRenderEngine:
    return MockRenderEngine()


@pytest.fixture
def make_session(engine, event_bus):
    """Factory for sessions wired to the mock engine and test bus."""
    def _make(**kwargs) -> ExportSession:
        kwargs.setdefault("engine", engine)
        kwargs.setdefault("poll_interval", 3600)
        kwargs.setdefault("max_render_seconds", None)
        return ExportSession(event_bus=event_bus, **kwargs)
    return _make


@pytest.fixture
def make_clip():
    """Factory for valid clip requests."""
    counter = iter(range(1, 1000))

    def _make(**overrides) -> ClipRequest:
        n = next(counter)
        fields = {
            "clip_id": f"clip-{n}",
            "source_video_ref": "dQw4w9WgXcQ",
            "start_offset_seconds": 10.0 * n,
            "end_offset_seconds": 10.0 * n + 30.0,
            "title": f"Highlight {n}",
            "captions_enabled": True,
        }
        fields.update(overrides)
        return ClipRequest(**fields)
    return _make
