"""
Workers Module
==============
Event-driven worker base class.

Usage:
    from services.workers import BaseWorker
    from services.clip_export.worker import start_export_worker

    export_worker = await start_export_worker(session)
"""

from .base import BaseWorker

__all__ = [
    'BaseWorker',
]
