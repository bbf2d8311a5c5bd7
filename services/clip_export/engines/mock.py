"""
Mock Render Engine
==================
In-process engine for development and tests.

Features:
- Sequential job ids for reproducible tests
- Scripted status outcomes per job (reports or exceptions)
- Injectable submit failures
- Records every submission and status check
"""

import asyncio
import itertools
import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple, Union

from ..errors import DispatchError, StatusError
from ..models import CompositionDescriptor, OutputSpec
from .base import (
    EngineConfig,
    EngineName,
    EngineStatus,
    RenderEngineAdapter,
    StatusReport,
    SubmitResult,
)

logger = logging.getLogger(__name__)

StatusOutcome = Union[StatusReport, Exception]


class MockRenderEngine(RenderEngineAdapter):
    """
    Mock render engine.

    Without a script, each status check advances a job by one step and the
    job succeeds after `processing_steps` checks.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        simulate_delay: float = 0.0,
        processing_steps: int = 3,
        submit_error: Optional[DispatchError] = None
    ):
        super().__init__(config or EngineConfig(engine=EngineName.MOCK, api_key="mock"))
        self.simulate_delay = simulate_delay
        self.processing_steps = processing_steps
        # Raised by every submit while set
        self.submit_error = submit_error

        self.submissions: List[Tuple[CompositionDescriptor, OutputSpec]] = []
        self.status_checks: List[str] = []

        self._ids = itertools.count(1)
        self._progress: Dict[str, int] = {}
        self._scripts: Dict[str, Deque[StatusOutcome]] = {}
        self._next_submit_errors: Deque[DispatchError] = deque()

    @property
    def name(self) -> EngineName:
        return EngineName.MOCK

    def fail_next_submit(self, error: DispatchError) -> None:
        """Make the next submit raise `error` (queued, one-shot)."""
        self._next_submit_errors.append(error)

    def script_status(self, job_id: str, *outcomes: StatusOutcome) -> None:
        """Queue outcomes returned (or raised) by the next status checks of `job_id`."""
        self._scripts.setdefault(job_id, deque()).extend(outcomes)

    async def submit(self, descriptor: CompositionDescriptor, output_spec: OutputSpec) -> SubmitResult:
        await asyncio.sleep(self.simulate_delay)
        self.submissions.append((descriptor, output_spec))

        if self._next_submit_errors:
            raise self._next_submit_errors.popleft()
        if self.submit_error is not None:
            raise self.submit_error

        job_id = f"mock-render-{next(self._ids)}"
        self._progress[job_id] = 0

        logger.info(f"Mock: accepted render {job_id}")
        return SubmitResult(job_id=job_id, status=EngineStatus.PLANNED)

    async def check_status(self, job_id: str) -> StatusReport:
        await asyncio.sleep(self.simulate_delay)
        self.status_checks.append(job_id)

        script = self._scripts.get(job_id)
        if script:
            outcome = script.popleft()
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        if job_id not in self._progress:
            raise StatusError(f"Render {job_id} not found", status_code=404)

        self._progress[job_id] += 1
        step = self._progress[job_id]

        if step < self.processing_steps:
            return StatusReport(
                job_id=job_id,
                status=EngineStatus.RENDERING,
                progress=step / self.processing_steps,
            )

        return StatusReport(
            job_id=job_id,
            status=EngineStatus.SUCCEEDED,
            progress=1.0,
            url=f"https://mock-storage.example.com/renders/{job_id}.mp4",
        )

    def checks_for(self, job_id: str) -> int:
        """Number of status checks issued for `job_id`."""
        return self.status_checks.count(job_id)

    def reset(self) -> None:
        """Reset mock state for testing."""
        self.submissions.clear()
        self.status_checks.clear()
        self._progress.clear()
        self._scripts.clear()
        self._next_submit_errors.clear()
