"""
Clip Export
===========
Render job orchestration for exporting clips as platform-formatted shorts.

Components:
- composition: clip + platform -> layered composition
- engines: external render engine adapters (Creatomate, mock)
- registry: the session's render jobs and their state machine
- poller: background status checks for rendering jobs
- progress: batch-level progress and ready outputs
- session: submission surface tying the above together

Usage:
    from services.clip_export import ExportSession, ClipRequest, Platform

    async with ExportSession() as session:
        clip = ClipRequest(source_video_ref="dQw4w9WgXcQ", start_offset_seconds=12,
                           end_offset_seconds=42, title="Never gonna")
        await session.submit_single(clip, [Platform.TIKTOK, Platform.YOUTUBE_SHORTS])
"""

from .errors import (
    ClipExportError,
    DispatchError,
    EngineError,
    ExportInputError,
    RejectedError,
    StatusError,
    TransportError,
    UnauthorizedError,
)
from .models import (
    PLATFORM_FORMATS,
    CaptionLayer,
    ClipRequest,
    CompositionDescriptor,
    JobId,
    LocalJobId,
    OutputSpec,
    Platform,
    PlatformFormat,
    RemoteJobId,
    RenderJob,
    RenderStatus,
    TitleLayer,
    VideoLayer,
)
from .composition import build_composition
from .registry import RenderJobRegistry, StatusUpdate
from .progress import BatchProgress, summarize
from .poller import StatusPoller
from .session import ExportSession

__all__ = [
    # Errors
    "ClipExportError",
    "DispatchError",
    "EngineError",
    "ExportInputError",
    "RejectedError",
    "StatusError",
    "TransportError",
    "UnauthorizedError",

    # Models
    "PLATFORM_FORMATS",
    "CaptionLayer",
    "ClipRequest",
    "CompositionDescriptor",
    "JobId",
    "LocalJobId",
    "OutputSpec",
    "Platform",
    "PlatformFormat",
    "RemoteJobId",
    "RenderJob",
    "RenderStatus",
    "TitleLayer",
    "VideoLayer",

    # Orchestration
    "build_composition",
    "RenderJobRegistry",
    "StatusUpdate",
    "BatchProgress",
    "summarize",
    "StatusPoller",
    "ExportSession",
]
