"""
Creatomate Render Engine
========================
Creatomate v2 API adapter.

Endpoints:
- POST /renders          submit a composition, returns [{id, status, url}]
- GET  /renders/{id}     {id, status, url, progress, error_message}
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import httpx

from ..errors import RejectedError, StatusError, TransportError, UnauthorizedError
from ..models import (
    CaptionLayer,
    CompositionDescriptor,
    OutputSpec,
    TitleLayer,
    VideoLayer,
)
from .base import (
    EngineConfig,
    EngineName,
    RenderEngineAdapter,
    StatusReport,
    SubmitResult,
    parse_status,
)

logger = logging.getLogger(__name__)


def composition_to_elements(descriptor: CompositionDescriptor) -> List[Dict[str, Any]]:
    """Translate a composition into Creatomate element definitions."""
    elements: List[Dict[str, Any]] = []

    for layer in descriptor.layers:
        if isinstance(layer, VideoLayer):
            elements.append({
                "type": "video",
                "name": layer.name,
                "source": layer.source_ref,
                "trim_start": layer.trim_start,
                "trim_end": layer.trim_end,
                "fit": layer.fit,
            })
        elif isinstance(layer, CaptionLayer):
            elements.append({
                "type": "text",
                "transcript_source": layer.transcript_source,
                "transcript_effect": layer.effect,
                **layer.style,
            })
        elif isinstance(layer, TitleLayer):
            elements.append({
                "type": "text",
                "text": layer.text,
                **layer.style,
                "time": layer.time,
                "duration": layer.duration,
                "animations": [
                    {"type": "fade", "fade_out": True, "time": "end", "duration": layer.fade_out_duration},
                ],
            })

    return elements


class CreatomateEngine(RenderEngineAdapter):
    """
    Creatomate render engine.

    Authenticates with a bearer API key. HTTP failures are mapped onto the
    dispatch/status error hierarchy so callers never see httpx exceptions.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(config)
        self.config = replace(self.config, engine=EngineName.CREATOMATE)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> EngineName:
        return EngineName.CREATOMATE

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_base,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=httpx.Timeout(self.config.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def submit(self, descriptor: CompositionDescriptor, output_spec: OutputSpec) -> SubmitResult:
        """Submit a composition to Creatomate."""
        if not self.config.api_key:
            raise UnauthorizedError("CREATOMATE_API_KEY is not configured")

        payload = {
            "output_format": output_spec.output_format,
            "width": output_spec.width,
            "height": output_spec.height,
            "frame_rate": output_spec.frame_rate,
            "elements": composition_to_elements(descriptor),
        }

        try:
            response = await self._get_client().post("/renders", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"[Creatomate] submit transport error: {e}")
            raise TransportError(f"Render engine unreachable: {e}") from e

        status_code = response.status_code
        if status_code in (401, 403):
            logger.error(f"[Creatomate] submit unauthorized: {status_code}")
            raise UnauthorizedError(
                "Invalid API key. Please check your Creatomate credentials.",
                status_code=status_code,
            )
        if status_code == 429 or status_code >= 500:
            logger.error(f"[Creatomate] submit error: {status_code} - {response.text}")
            raise TransportError(f"Creatomate API error: {status_code}", status_code=status_code)
        if status_code >= 400:
            logger.error(f"[Creatomate] submit rejected: {status_code} - {response.text}")
            raise RejectedError(response.text or f"Creatomate API error: {status_code}", status_code=status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise RejectedError("Render engine returned a malformed response", status_code=status_code) from e

        if not isinstance(data, list) or not data or not isinstance(data[0], dict) or not data[0].get("id"):
            logger.error(f"[Creatomate] invalid render response: {data}")
            raise RejectedError(
                "Failed to start render job. The engine may not support this video source.",
                status_code=status_code,
            )

        render = data[0]
        logger.info(f"[Creatomate] render accepted: {render['id']} ({render.get('status')})")
        return SubmitResult(
            job_id=str(render["id"]),
            status=parse_status(render.get("status")),
            url=render.get("url"),
        )

    async def check_status(self, job_id: str) -> StatusReport:
        """Get status of a Creatomate render."""
        if not self.config.api_key:
            raise StatusError("CREATOMATE_API_KEY is not configured")

        try:
            response = await self._get_client().get(f"/renders/{job_id}")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise StatusError(
                f"Failed to check render status: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise StatusError(f"Render engine unreachable: {e}") from e
        except ValueError as e:
            raise StatusError("Render engine returned a malformed status response") from e

        if not isinstance(data, dict):
            raise StatusError("Render engine returned a malformed status response")

        try:
            progress = float(data.get("progress") or 0.0)
        except (TypeError, ValueError):
            progress = 0.0

        return StatusReport(
            job_id=str(data.get("id") or job_id),
            status=parse_status(data.get("status")),
            progress=progress,
            url=data.get("url"),
            error_message=data.get("error_message"),
        )

    async def health_check(self) -> Dict[str, Any]:
        """Check Creatomate API key presence."""
        if not self.config.api_key:
            return {
                "engine": "creatomate",
                "status": "no_api_key",
                "error": "CREATOMATE_API_KEY not configured"
            }
        return await super().health_check()
