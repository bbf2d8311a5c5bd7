"""
Clip Export Errors
==================
Exception hierarchy shared by the engine adapters and the orchestration layer.

    ClipExportError
    ├── ExportInputError          rejected before anything is dispatched
    └── EngineError
        ├── DispatchError         submission refused; becomes a failed job
        │   ├── UnauthorizedError
        │   ├── RejectedError
        │   └── TransportError
        └── StatusError           status check failed; always transient
"""

from typing import Optional


class ClipExportError(Exception):
    """Base class for all clip export errors."""


class ExportInputError(ClipExportError, ValueError):
    """Raised when an export request is invalid (empty selection, bad range)."""


class EngineError(ClipExportError):
    """Raised when the render engine cannot serve a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status_code={self.status_code}, message={self.message!r})"


class DispatchError(EngineError):
    """Submission of a composition failed."""


class UnauthorizedError(DispatchError):
    """The engine rejected our credentials."""


class RejectedError(DispatchError):
    """The engine could not accept the composition (e.g. unsupported source)."""


class TransportError(DispatchError):
    """The engine was unreachable or failed server-side."""


class StatusError(EngineError):
    """A status check failed. Never terminal for the job being checked."""
