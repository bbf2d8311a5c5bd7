"""
Render Job Registry
===================
In-memory store of the render jobs of one export session.

The registry owns every RenderJob; readers only ever receive copies.
Jobs are never removed individually, only by reset().
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger

from .models import JobId, LocalJobId, Platform, RemoteJobId, RenderJob, RenderStatus


@dataclass(frozen=True)
class StatusUpdate:
    """A requested transition for one job."""
    job_id: JobId
    status: RenderStatus
    progress: float
    url: Optional[str] = None
    error_message: Optional[str] = None


class RenderJobRegistry:
    """
    Ordered collection of render jobs keyed by job id.

    Updates to a job in a terminal state are ignored, so a stale status
    response can never undo a completion or failure.
    """

    def __init__(self):
        self._jobs: Dict[JobId, RenderJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: JobId) -> bool:
        return job_id in self._jobs

    def _insert(self, job: RenderJob) -> RenderJob:
        if job.id in self._jobs:
            raise ValueError(f"Render job {job.id} is already tracked")
        self._jobs[job.id] = job
        return replace(job)

    def create_from_submission(self, clip_ref: str, platform: Platform, remote_id: str) -> RenderJob:
        """Track a job the engine accepted. It starts rendering at 0%."""
        job = self._insert(RenderJob(
            id=RemoteJobId(remote_id),
            clip_ref=clip_ref,
            platform=platform,
            status=RenderStatus.RENDERING,
            progress=0.0,
        ))
        logger.debug(f"🎞️ Tracking render {job.id} | clip={clip_ref} platform={platform.value}")
        return job

    def create_failed_sentinel(
        self,
        clip_ref: str,
        platform: Platform,
        error_message: Optional[str] = None
    ) -> RenderJob:
        """Track a submission the engine never accepted, as an already failed job."""
        job = self._insert(RenderJob(
            id=LocalJobId(),
            clip_ref=clip_ref,
            platform=platform,
            status=RenderStatus.FAILED,
            progress=0.0,
            error_message=error_message,
        ))
        logger.debug(f"🪦 Failed sentinel {job.id} | clip={clip_ref} platform={platform.value}")
        return job

    def apply_status_update(
        self,
        job_id: JobId,
        status: RenderStatus,
        progress: float,
        url: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> bool:
        """
        Apply a status transition to a job.

        Returns:
            True if the job changed

        Raises:
            KeyError: unknown job id
        """
        job = self._jobs[job_id]

        if job.is_terminal:
            logger.debug(f"Ignoring {status.value} update for terminal job {job_id} ({job.status.value})")
            return False

        progress = min(max(float(progress), 0.0), 100.0)
        before = (job.status, job.progress, job.result_url, job.error_message)

        job.status = status
        job.progress = progress
        if url is not None:
            job.result_url = url
        if error_message is not None:
            job.error_message = error_message

        changed = before != (job.status, job.progress, job.result_url, job.error_message)
        if changed:
            job.updated_at = datetime.now(timezone.utc)
        return changed

    def apply_status_updates(self, updates: Iterable[StatusUpdate]) -> List[RenderJob]:
        """Apply updates in order; return copies of the jobs that changed."""
        changed = []
        for update in updates:
            if self.apply_status_update(
                update.job_id,
                update.status,
                update.progress,
                url=update.url,
                error_message=update.error_message,
            ):
                changed.append(replace(self._jobs[update.job_id]))
        return changed

    def get(self, job_id: JobId) -> Optional[RenderJob]:
        job = self._jobs.get(job_id)
        return replace(job) if job else None

    def find_by_clip(self, clip_ref: str) -> List[RenderJob]:
        return [replace(j) for j in self._jobs.values() if j.clip_ref == clip_ref]

    def find_by_platform(self, platform: Platform) -> List[RenderJob]:
        return [replace(j) for j in self._jobs.values() if j.platform == platform]

    def rendering_jobs(self) -> List[RenderJob]:
        return [replace(j) for j in self._jobs.values() if j.status is RenderStatus.RENDERING]

    def has_rendering(self) -> bool:
        return any(j.status is RenderStatus.RENDERING for j in self._jobs.values())

    def snapshot(self) -> Tuple[RenderJob, ...]:
        """All jobs in submission order, as copies."""
        return tuple(replace(j) for j in self._jobs.values())

    def reset(self) -> int:
        """Forget every job. Returns how many were dropped."""
        count = len(self._jobs)
        self._jobs.clear()
        return count
