"""
Event Topics
============
Standardized topic names for clip export events.

Topic Naming Convention:
    {domain}.{entity}.{action}

Examples:
    - export.requested
    - render.completed
    - render.dispatch.failed
"""


class Topics:
    """
    Centralized topic registry for all events.

    Usage:
        from services.event_bus import Topics

        await bus.publish(Topics.RENDER_COMPLETED, {...})
        bus.subscribe("render.*", handler)
    """

    # =========================================================================
    # EXPORT REQUESTS
    # =========================================================================
    EXPORT_REQUESTED = "export.requested"             # Caller asks for an export
    EXPORT_REJECTED = "export.rejected"               # Input error, nothing dispatched
    EXPORT_BATCH_STARTED = "export.batch.started"     # All submissions for a request attempted
    EXPORT_SESSION_RESET = "export.session.reset"     # Session state discarded

    # =========================================================================
    # RENDER JOB LIFECYCLE
    # =========================================================================
    RENDER_SUBMITTED = "render.submitted"             # Engine accepted the job
    RENDER_DISPATCH_FAILED = "render.dispatch.failed" # Engine refused or was unreachable
    RENDER_PROGRESS = "render.progress"               # Progress update from a poll
    RENDER_COMPLETED = "render.completed"             # Output URL available
    RENDER_FAILED = "render.failed"                   # Engine failure or timeout

    # =========================================================================
    # SYSTEM
    # =========================================================================
    WORKER_STARTED = "system.worker.started"
    WORKER_STOPPED = "system.worker.stopped"

    @classmethod
    def all_topics(cls) -> list:
        """Return every topic string defined on this registry."""
        return [
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]

    @classmethod
    def matches_pattern(cls, pattern: str, topic: str) -> bool:
        """
        Check if topic matches pattern with wildcard support.

        Patterns:
            - "render.*" matches "render.completed", "render.dispatch.failed"
            - "*.failed" matches "render.failed", "render.dispatch.failed"
            - "*" matches everything
        """
        if pattern == "*":
            return True

        if "*" not in pattern:
            return pattern == topic

        # Handle "prefix.*" patterns
        if pattern.endswith('.*'):
            prefix = pattern[:-2]
            return topic.startswith(prefix + '.')

        # Handle "*.suffix" patterns
        if pattern.startswith('*.'):
            suffix = pattern[2:]
            return topic.endswith('.' + suffix)

        # Segment-by-segment match for "a.*.c"
        pattern_parts = pattern.split('.')
        topic_parts = topic.split('.')
        if len(pattern_parts) != len(topic_parts):
            return False
        return all(p == '*' or p == t for p, t in zip(pattern_parts, topic_parts))
