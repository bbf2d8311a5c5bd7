"""
Render Engine Base Interface
============================
Abstract base class for external render engines.

An engine accepts a composition and hands back a job id; the job is then
observed through status checks until it succeeds or fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
import time

from config.settings import (
    CREATOMATE_API_BASE,
    CREATOMATE_API_KEY,
    RENDER_ENGINE,
    RENDER_REQUEST_TIMEOUT,
)

from ..models import CompositionDescriptor, OutputSpec


class EngineName(str, Enum):
    """Supported render engines."""
    CREATOMATE = "creatomate"
    MOCK = "mock"


class EngineStatus(str, Enum):
    """Status of a render as reported by the engine."""
    PLANNED = "planned"
    WAITING = "waiting"
    TRANSCRIBING = "transcribing"
    RENDERING = "rendering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_complete(self) -> bool:
        return self in (EngineStatus.SUCCEEDED, EngineStatus.FAILED)


def parse_status(status_str: Optional[str]) -> EngineStatus:
    """Parse an engine status string; unknown values count as still rendering."""
    status_map = {
        "planned": EngineStatus.PLANNED,
        "waiting": EngineStatus.WAITING,
        "transcribing": EngineStatus.TRANSCRIBING,
        "rendering": EngineStatus.RENDERING,
        "succeeded": EngineStatus.SUCCEEDED,
        "failed": EngineStatus.FAILED,
    }
    return status_map.get((status_str or "").lower(), EngineStatus.RENDERING)


@dataclass
class EngineConfig:
    """Configuration for a render engine."""
    engine: EngineName = EngineName.CREATOMATE
    api_key: Optional[str] = None
    api_base: str = CREATOMATE_API_BASE
    timeout: float = RENDER_REQUEST_TIMEOUT

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment (via config.settings)."""
        return cls(
            engine=EngineName(RENDER_ENGINE),
            api_key=CREATOMATE_API_KEY or None,
            api_base=CREATOMATE_API_BASE,
            timeout=RENDER_REQUEST_TIMEOUT,
        )


@dataclass
class SubmitResult:
    """Engine acknowledgement of an accepted submission."""
    job_id: str
    status: EngineStatus
    url: Optional[str] = None


@dataclass
class StatusReport:
    """Result of one status check."""
    job_id: str
    status: EngineStatus
    progress: float = 0.0  # 0.0-1.0
    url: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self):
        self.progress = min(max(self.progress, 0.0), 1.0)

    @property
    def is_complete(self) -> bool:
        return self.status.is_complete


class RenderEngineAdapter(ABC):
    """
    Abstract base class for render engine adapters.

    Implement this to add support for a new rendering service.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.from_env()

    @property
    @abstractmethod
    def name(self) -> EngineName:
        """Engine name identifier."""
        pass

    @abstractmethod
    async def submit(self, descriptor: CompositionDescriptor, output_spec: OutputSpec) -> SubmitResult:
        """
        Submit a composition for rendering.

        Returns:
            SubmitResult with the engine's job id

        Raises:
            UnauthorizedError: credentials refused
            RejectedError: engine could not accept the composition
            TransportError: engine unreachable or failing
        """
        pass

    @abstractmethod
    async def check_status(self, job_id: str) -> StatusReport:
        """
        Get the current status of a render.

        Raises:
            StatusError: the check itself failed
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the adapter."""

    async def health_check(self) -> Dict[str, Any]:
        """
        Check if the engine is configured.

        Returns:
            Dict with status and latency info
        """
        start = time.time()
        has_key = bool(self.config.api_key)
        return {
            "engine": self.name.value,
            "status": "available" if has_key else "no_api_key",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
