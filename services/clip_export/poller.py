"""
Status Poller
=============
Background loop that re-checks every rendering job on a fixed interval.

Each tick:
    1. collect the jobs still rendering
    2. check them all concurrently (bounded by a semaphore)
    3. apply the results to the registry one job at a time

A failed status check leaves its job untouched until the next tick. The loop
exits once nothing is rendering and is restarted by ensure_running().
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Set

from loguru import logger

from config.settings import RENDER_MAX_SECONDS, RENDER_POLL_INTERVAL, RENDER_STATUS_CONCURRENCY
from services.event_bus import EventBus, Topics

from .engines.base import EngineStatus, RenderEngineAdapter, StatusReport
from .errors import StatusError
from .models import JobId, RenderJob, RenderStatus
from .registry import RenderJobRegistry, StatusUpdate


class StatusPoller:
    """
    Polls the render engine for every rendering job in a registry.

    Usage:
        poller = StatusPoller(registry, engine, event_bus=bus)
        poller.ensure_running()   # after adding rendering jobs
        ...
        await poller.stop()
    """

    def __init__(
        self,
        registry: RenderJobRegistry,
        engine: RenderEngineAdapter,
        interval: float = RENDER_POLL_INTERVAL,
        max_concurrency: int = RENDER_STATUS_CONCURRENCY,
        max_render_seconds: Optional[float] = RENDER_MAX_SECONDS,
        event_bus: Optional[EventBus] = None
    ):
        self.registry = registry
        self.engine = engine
        self.interval = interval
        self.max_render_seconds = max_render_seconds or None
        self.event_bus = event_bus
        self.max_concurrency = max(1, max_concurrency)
        # Created on first tick so it binds to the loop that runs the checks
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._in_flight: Set[JobId] = set()
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_running(self) -> bool:
        """
        Start the polling loop if a job is rendering and no loop is alive.

        Must be called from within a running event loop.

        Returns:
            True if a new loop was started
        """
        if self.is_running or not self.registry.has_rendering():
            return False
        self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    async def stop(self) -> None:
        """Stop polling. Renders already running on the engine are left alone."""
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        logger.info(f"🔁 Status polling started (every {self.interval}s)")
        try:
            while self.registry.has_rendering():
                await asyncio.sleep(self.interval)
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Status poll tick failed; retrying next interval")
        finally:
            logger.info("⏹️ Status polling stopped")

    async def tick(self) -> List[RenderJob]:
        """
        Run one polling pass.

        Returns:
            Copies of the jobs whose state changed
        """
        self.ticks += 1
        jobs = [
            job for job in self.registry.rendering_jobs()
            if job.is_remote and job.id not in self._in_flight
        ]
        if not jobs:
            return []

        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)

        self._in_flight.update(job.id for job in jobs)
        try:
            reports = await asyncio.gather(*(self._check(job) for job in jobs))
        finally:
            self._in_flight.difference_update(job.id for job in jobs)

        now = datetime.now(timezone.utc)
        updates = []
        for job, report in zip(jobs, reports):
            update = self._to_update(job, report, now)
            # The session may have been reset while checks were in flight
            if update is not None and update.job_id in self.registry:
                updates.append(update)

        changed = self.registry.apply_status_updates(updates)
        for job in changed:
            await self._announce(job)

        logger.debug(f"Poll tick {self.ticks}: {len(jobs)} checked, {len(changed)} changed")
        return changed

    async def _check(self, job: RenderJob) -> Optional[StatusReport]:
        async with self._semaphore:
            try:
                return await self.engine.check_status(str(job.id))
            except StatusError as e:
                logger.warning(f"⚠️ Status check failed for {job.id}: {e.message}")
                return None

    def _to_update(
        self,
        job: RenderJob,
        report: Optional[StatusReport],
        now: datetime
    ) -> Optional[StatusUpdate]:
        """Map an engine report (None if the check failed) onto a registry update."""
        update = None

        if report is not None:
            if report.status is EngineStatus.SUCCEEDED:
                return StatusUpdate(job.id, RenderStatus.COMPLETED, 100.0, url=report.url)
            if report.status is EngineStatus.FAILED:
                return StatusUpdate(
                    job.id,
                    RenderStatus.FAILED,
                    0.0,
                    error_message=report.error_message or "Render failed",
                )
            update = StatusUpdate(job.id, RenderStatus.RENDERING, report.progress * 100)

        if self.max_render_seconds is not None:
            age = (now - job.created_at).total_seconds()
            if age > self.max_render_seconds:
                return StatusUpdate(
                    job.id,
                    RenderStatus.FAILED,
                    0.0,
                    error_message=f"Render timed out after {self.max_render_seconds:.0f} seconds",
                )

        return update

    async def _announce(self, job: RenderJob) -> None:
        if job.status is RenderStatus.COMPLETED:
            logger.info(f"✅ Render {job.id} completed: {job.result_url}")
            topic = Topics.RENDER_COMPLETED
        elif job.status is RenderStatus.FAILED:
            logger.warning(f"❌ Render {job.id} failed: {job.error_message}")
            topic = Topics.RENDER_FAILED
        else:
            topic = Topics.RENDER_PROGRESS

        if self.event_bus is not None:
            await self.event_bus.publish(topic, job.to_dict(), source="status-poller")
