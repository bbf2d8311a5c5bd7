"""
Clip Export Models
==================
Data models for clip requests, platform formats, compositions and render jobs.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config.settings import RENDER_FRAME_RATE, RENDER_OUTPUT_FORMAT


class Platform(str, Enum):
    """Destination platforms for a short video export."""
    INSTAGRAM_REELS = "instagram_reels"
    YOUTUBE_SHORTS = "youtube_shorts"
    TIKTOK = "tiktok"

    @property
    def display_name(self) -> str:
        return PLATFORM_FORMATS[self].display_name


@dataclass(frozen=True)
class PlatformFormat:
    """Output frame size and label for a platform."""
    width: int
    height: int
    display_name: str


PLATFORM_FORMATS: Dict[Platform, PlatformFormat] = {
    Platform.INSTAGRAM_REELS: PlatformFormat(1080, 1920, "Instagram Reels"),
    Platform.YOUTUBE_SHORTS: PlatformFormat(1080, 1920, "YouTube Shorts"),
    Platform.TIKTOK: PlatformFormat(1080, 1920, "TikTok"),
}


class ClipRequest(BaseModel):
    """
    A time range within a source video, to be exported as a short.

    The source may be a full URL or a bare YouTube video id.
    """
    model_config = ConfigDict(frozen=True)

    clip_id: str = Field(default_factory=lambda: uuid4().hex[:12], description="Caller's clip identifier")
    source_video_ref: str = Field(..., min_length=1, description="Source video URL or YouTube id")
    start_offset_seconds: float = Field(..., ge=0, description="Clip start within the source")
    end_offset_seconds: float = Field(..., description="Clip end within the source")
    title: str = Field(default="", description="Title overlay text; empty for none")
    captions_enabled: bool = Field(default=True, description="Burn in spoken-word captions")

    @model_validator(mode="after")
    def _check_time_range(self) -> "ClipRequest":
        if self.start_offset_seconds >= self.end_offset_seconds:
            raise ValueError(
                f"start_offset_seconds ({self.start_offset_seconds}) must be before "
                f"end_offset_seconds ({self.end_offset_seconds})"
            )
        return self

    @property
    def duration_seconds(self) -> float:
        return self.end_offset_seconds - self.start_offset_seconds


# =============================================================================
# COMPOSITION
# =============================================================================

VIDEO_LAYER_NAME = "video-1"


@dataclass(frozen=True)
class VideoLayer:
    """The trimmed source video. Always the first layer."""
    source_ref: str
    trim_start: float
    trim_end: float
    fit: str = "cover"
    name: str = VIDEO_LAYER_NAME


@dataclass(frozen=True)
class CaptionLayer:
    """Spoken-word captions transcribed by the engine from the video layer's audio."""
    transcript_source: str = VIDEO_LAYER_NAME
    effect: str = "karaoke"
    style: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TitleLayer:
    """Title text shown at the start of the clip, then faded out."""
    text: str
    time: float = 0.0
    duration: float = 3.0
    fade_out_duration: float = 0.5
    style: Dict[str, str] = field(default_factory=dict)


Layer = Union[VideoLayer, CaptionLayer, TitleLayer]


@dataclass(frozen=True)
class CompositionDescriptor:
    """Ordered layers of one rendered output."""
    layers: Tuple[Layer, ...]

    @property
    def video_layer(self) -> VideoLayer:
        return self.layers[0]

    @property
    def caption_layer(self) -> Optional[CaptionLayer]:
        return next((l for l in self.layers if isinstance(l, CaptionLayer)), None)

    @property
    def title_layer(self) -> Optional[TitleLayer]:
        return next((l for l in self.layers if isinstance(l, TitleLayer)), None)


@dataclass(frozen=True)
class OutputSpec:
    """Frame size, rate and container of a render."""
    width: int
    height: int
    frame_rate: int = RENDER_FRAME_RATE
    output_format: str = RENDER_OUTPUT_FORMAT

    @classmethod
    def for_platform(cls, platform: Platform) -> "OutputSpec":
        fmt = PLATFORM_FORMATS[platform]
        return cls(width=fmt.width, height=fmt.height)


# =============================================================================
# RENDER JOBS
# =============================================================================

class RenderStatus(str, Enum):
    """Lifecycle state of a tracked render job."""
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not RenderStatus.RENDERING


@dataclass(frozen=True)
class RemoteJobId:
    """Id assigned by the render engine."""
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LocalJobId:
    """Id synthesized locally for a submission the engine never accepted."""
    value: UUID = field(default_factory=uuid4)

    def __str__(self) -> str:
        return f"local-{self.value}"


JobId = Union[RemoteJobId, LocalJobId]


@dataclass
class RenderJob:
    """One (clip, platform) render and its lifecycle."""
    id: JobId
    clip_ref: str
    platform: Platform
    status: RenderStatus = RenderStatus.RENDERING
    progress: float = 0.0  # 0-100
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_remote(self) -> bool:
        return isinstance(self.id, RemoteJobId)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "clip_ref": self.clip_ref,
            "platform": self.platform.value,
            "status": self.status.value,
            "progress": self.progress,
            "result_url": self.result_url,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
