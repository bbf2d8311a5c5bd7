"""
Batch Progress
==============
Derived view over a registry snapshot. Nothing here is cached; call
summarize() again whenever the jobs change.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from .models import RenderJob, RenderStatus


@dataclass(frozen=True)
class BatchProgress:
    """Aggregate state of a batch of render jobs."""
    total: int
    overall_progress: float  # mean of job progress, 0-100
    completed: Tuple[RenderJob, ...]  # completed jobs with an output url
    rendering_count: int
    failed_count: int

    @property
    def is_finished(self) -> bool:
        """True once no job is still rendering."""
        return self.rendering_count == 0

    @property
    def ready_urls(self) -> List[str]:
        return [job.result_url for job in self.completed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "overall_progress": round(self.overall_progress, 2),
            "completed": [job.to_dict() for job in self.completed],
            "rendering_count": self.rendering_count,
            "failed_count": self.failed_count,
            "is_finished": self.is_finished,
        }


def summarize(jobs: Iterable[RenderJob]) -> BatchProgress:
    """Summarize jobs into overall progress, ready outputs and counts."""
    jobs = list(jobs)
    overall = sum(job.progress for job in jobs) / len(jobs) if jobs else 0.0

    return BatchProgress(
        total=len(jobs),
        overall_progress=overall,
        completed=tuple(j for j in jobs if j.status is RenderStatus.COMPLETED and j.result_url),
        rendering_count=sum(1 for j in jobs if j.status is RenderStatus.RENDERING),
        failed_count=sum(1 for j in jobs if j.status is RenderStatus.FAILED),
    )
