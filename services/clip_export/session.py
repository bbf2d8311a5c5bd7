"""
Export Session
==============
Long-lived owner of one export's render jobs.

Submits (clip, platform) pairs to the render engine one after another,
records every attempt in the registry (accepted or not), and keeps the
status poller running while anything is still rendering.

Usage:
    async with ExportSession() as session:
        session.subscribe("render.*", on_render_event)
        await session.submit_batch(clips, Platform.TIKTOK, captions_enabled=True)
        ...
        print(session.progress().overall_progress)
"""

from typing import List, Optional, Sequence
from uuid import uuid4

from loguru import logger

from config.settings import RENDER_MAX_SECONDS, RENDER_POLL_INTERVAL, RENDER_STATUS_CONCURRENCY
from services.event_bus import EventBus, EventHandler, Topics

from .composition import build_composition
from .engines import get_render_engine
from .engines.base import RenderEngineAdapter
from .errors import DispatchError, ExportInputError
from .models import ClipRequest, OutputSpec, Platform, RenderJob
from .poller import StatusPoller
from .progress import BatchProgress, summarize
from .registry import RenderJobRegistry


class ExportSession:
    """
    Render job orchestration for one export session.

    Job state lives only as long as the session; reset() or close() drops it
    without asking the engine to abort anything.
    """

    def __init__(
        self,
        engine: Optional[RenderEngineAdapter] = None,
        event_bus: Optional[EventBus] = None,
        poll_interval: float = RENDER_POLL_INTERVAL,
        max_concurrency: int = RENDER_STATUS_CONCURRENCY,
        max_render_seconds: Optional[float] = RENDER_MAX_SECONDS
    ):
        self.engine = engine or get_render_engine()
        self.event_bus = event_bus or EventBus.get_instance()
        self.registry = RenderJobRegistry()
        self.poller = StatusPoller(
            self.registry,
            self.engine,
            interval=poll_interval,
            max_concurrency=max_concurrency,
            max_render_seconds=max_render_seconds,
            event_bus=self.event_bus,
        )
        self.session_id = uuid4().hex[:12]

    async def __aenter__(self) -> "ExportSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def submit_batch(
        self,
        clips: Sequence[ClipRequest],
        platform: Platform,
        captions_enabled: bool = True
    ) -> List[RenderJob]:
        """
        Export several clips to one platform.

        Returns:
            One job per clip, in order; failed submissions are failed jobs

        Raises:
            ExportInputError: empty selection or invalid clip, before any dispatch
        """
        if not clips:
            raise ExportInputError("Select at least one clip to export")
        self._validate_clips(clips)

        correlation_id = uuid4().hex
        jobs = []
        for clip in clips:
            clip = clip.model_copy(update={"captions_enabled": captions_enabled})
            jobs.append(await self._dispatch(clip, platform, correlation_id))

        await self._finish_request(jobs, f"Started rendering {len(clips)} clips", correlation_id)
        return jobs

    async def submit_single(
        self,
        clip: ClipRequest,
        platforms: Sequence[Platform],
        captions_enabled: bool = True
    ) -> List[RenderJob]:
        """
        Export one clip to several platforms.

        Returns:
            One job per distinct platform, in the order given

        Raises:
            ExportInputError: no platform selected or invalid clip
        """
        if not platforms:
            raise ExportInputError("Select at least one platform to export to")
        self._validate_clips([clip])

        clip = clip.model_copy(update={"captions_enabled": captions_enabled})
        correlation_id = uuid4().hex
        jobs = []
        for platform in dict.fromkeys(platforms):
            job = await self._dispatch(clip, platform, correlation_id)
            jobs.append(job)

        await self._finish_request(jobs, f"Started rendering for {len(jobs)} platform(s)", correlation_id)
        return jobs

    def _validate_clips(self, clips: Sequence[ClipRequest]) -> None:
        for clip in clips:
            if not isinstance(clip, ClipRequest):
                raise ExportInputError(f"Expected ClipRequest, got {type(clip).__name__}")
            # model_construct() bypasses validation, so check the range again
            if not 0 <= clip.start_offset_seconds < clip.end_offset_seconds:
                raise ExportInputError(
                    f"Invalid time range for clip {clip.clip_id}: "
                    f"{clip.start_offset_seconds}-{clip.end_offset_seconds}"
                )

    async def _dispatch(self, clip: ClipRequest, platform: Platform, correlation_id: str) -> RenderJob:
        """Submit one (clip, platform) pair. Always yields a tracked job."""
        descriptor = build_composition(clip, platform)
        output_spec = OutputSpec.for_platform(platform)

        try:
            result = await self.engine.submit(descriptor, output_spec)
        except DispatchError as e:
            logger.error(
                f"❌ Export failed | clip={clip.clip_id} platform={platform.value} | "
                f"{e.__class__.__name__}: {e.message}"
            )
            return await self._record_dispatch_failure(clip, platform, e, e.message, correlation_id)
        except Exception as e:
            logger.exception(f"❌ Render engine crashed | clip={clip.clip_id} platform={platform.value}")
            return await self._record_dispatch_failure(
                clip, platform, e, f"Unexpected render engine error: {e}", correlation_id
            )

        job = self.registry.create_from_submission(clip.clip_id, platform, result.job_id)
        self.poller.ensure_running()
        logger.info(f"🎬 Render {job.id} started | clip={clip.clip_id} platform={platform.value}")
        await self.event_bus.publish(
            Topics.RENDER_SUBMITTED,
            job.to_dict(),
            correlation_id=correlation_id,
            source=f"export-session-{self.session_id}",
        )
        return job

    async def _record_dispatch_failure(
        self,
        clip: ClipRequest,
        platform: Platform,
        error: Exception,
        error_message: str,
        correlation_id: str
    ) -> RenderJob:
        job = self.registry.create_failed_sentinel(clip.clip_id, platform, error_message=error_message)
        await self.event_bus.publish(
            Topics.RENDER_DISPATCH_FAILED,
            {
                **job.to_dict(),
                "error_type": error.__class__.__name__,
                "message": f"Failed to start export for {platform.display_name}",
            },
            correlation_id=correlation_id,
            source=f"export-session-{self.session_id}",
        )
        return job

    async def _finish_request(self, jobs: List[RenderJob], message: str, correlation_id: str) -> None:
        await self.event_bus.publish(
            Topics.EXPORT_BATCH_STARTED,
            {
                "session_id": self.session_id,
                "job_ids": [str(job.id) for job in jobs],
                "message": message,
            },
            correlation_id=correlation_id,
            source=f"export-session-{self.session_id}",
        )

    # =========================================================================
    # OBSERVATION
    # =========================================================================

    def snapshot(self) -> List[RenderJob]:
        return list(self.registry.snapshot())

    def progress(self) -> BatchProgress:
        return summarize(self.registry.snapshot())

    def subscribe(self, topic_pattern: str, handler: EventHandler) -> str:
        """Subscribe to job events, e.g. "render.*"."""
        return self.event_bus.subscribe(topic_pattern, handler)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def reset(self) -> None:
        """Stop polling and forget every job."""
        await self.poller.stop()
        dropped = self.registry.reset()
        logger.info(f"🧹 Export session {self.session_id} reset ({dropped} jobs dropped)")
        await self.event_bus.publish(
            Topics.EXPORT_SESSION_RESET,
            {"session_id": self.session_id, "jobs_dropped": dropped},
            source=f"export-session-{self.session_id}",
        )

    async def close(self) -> None:
        """Reset and release the engine's connections."""
        await self.reset()
        await self.engine.close()
