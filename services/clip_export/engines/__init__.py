"""
Render Engine Adapters
======================
Unified interface for external render engines.

Usage:
    from services.clip_export.engines import get_render_engine, EngineName

    engine = get_render_engine(EngineName.CREATOMATE)
    result = await engine.submit(descriptor, output_spec)
"""

from typing import Optional

from .base import (
    EngineConfig,
    EngineName,
    EngineStatus,
    RenderEngineAdapter,
    StatusReport,
    SubmitResult,
    parse_status,
)


def get_render_engine(engine_name: Optional[EngineName] = None) -> RenderEngineAdapter:
    """
    Get configured render engine adapter.

    Args:
        engine_name: Override engine (creatomate, mock); defaults to RENDER_ENGINE

    Returns:
        Configured RenderEngineAdapter instance
    """
    from .creatomate import CreatomateEngine
    from .mock import MockRenderEngine

    config = EngineConfig.from_env()
    if engine_name is None:
        engine_name = config.engine

    if engine_name == EngineName.MOCK:
        return MockRenderEngine()
    return CreatomateEngine(config)


__all__ = [
    "get_render_engine",
    "EngineConfig",
    "EngineName",
    "EngineStatus",
    "RenderEngineAdapter",
    "StatusReport",
    "SubmitResult",
    "parse_status",
]
