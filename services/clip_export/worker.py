"""
Export Worker
=============
Event-driven entry point for export requests.

Subscribes to:
    - export.requested

Emits:
    - export.rejected (payload could not be turned into an export)

Payloads:
    batch:  {"clips": [{...}, ...], "platform": "tiktok", "captions_enabled": true}
    single: {"clip": {...}, "platforms": ["tiktok", "youtube_shorts"], "captions_enabled": true}

Clip dicts use ClipRequest's field names.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, StrictBool, ValidationError

from services.event_bus import Event, EventBus, Topics
from services.workers.base import BaseWorker

from .errors import ExportInputError
from .models import ClipRequest, Platform
from .session import ExportSession

logger = logging.getLogger(__name__)


class BatchExportRequest(BaseModel):
    """Several clips to one platform."""
    clips: List[ClipRequest]
    platform: Platform
    captions_enabled: StrictBool = True


class SingleExportRequest(BaseModel):
    """One clip to several platforms."""
    clip: ClipRequest
    platforms: List[Platform]
    captions_enabled: StrictBool = True


class ExportWorker(BaseWorker):
    """
    Turns export.requested events into session submissions.

    Input errors are reported as export.rejected events instead of being
    raised into the bus.
    """

    def __init__(
        self,
        session: ExportSession,
        event_bus: Optional[EventBus] = None,
        worker_id: Optional[str] = None
    ):
        self.session = session
        super().__init__(event_bus or session.event_bus, worker_id)

    def get_subscriptions(self) -> List[str]:
        return [Topics.EXPORT_REQUESTED]

    async def handle_event(self, event: Event) -> None:
        payload = event.payload

        try:
            if "clips" in payload:
                batch = BatchExportRequest.model_validate(payload)
                await self.session.submit_batch(
                    batch.clips, batch.platform, captions_enabled=batch.captions_enabled
                )
            elif "clip" in payload:
                single = SingleExportRequest.model_validate(payload)
                await self.session.submit_single(
                    single.clip, single.platforms, captions_enabled=single.captions_enabled
                )
            else:
                raise ExportInputError("Export request needs 'clips' or 'clip'")

        except (ExportInputError, ValidationError) as e:
            logger.warning(f"[{self.worker_id}] Export request rejected: {e}")
            await self.emit(
                Topics.EXPORT_REJECTED,
                {"error": str(e), "request": payload},
                event.correlation_id
            )


async def start_export_worker(session: ExportSession, event_bus: Optional[EventBus] = None) -> ExportWorker:
    """Create and start an export worker bound to `session`."""
    worker = ExportWorker(session, event_bus)
    await worker.start()
    return worker
