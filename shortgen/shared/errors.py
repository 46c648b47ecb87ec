"""
Error hierarchy shared by all pipeline stages.

Errors carry the job_id (when known) and a context dict with the values
needed to reproduce the failure.
"""

from typing import Any, Dict, Optional
from uuid import UUID


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(
        self,
        message: str,
        job_id: Optional[UUID] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.job_id = job_id
        self.context = dict(context or {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigurationError(PipelineError):
    """Invalid configuration value. Raised before any media is probed."""


class ValidationError(PipelineError):
    """Invalid request (e.g. wrong number of narration tracks for a layout)."""


class RetryableError(PipelineError):
    """Transient failure that may succeed on retry."""


class CompositionError(PipelineError):
    """Permanent composition failure."""


class MediaProbeError(CompositionError):
    """Duration probe failed or returned a non-positive/unparseable value."""


class InsufficientBackgroundDurationError(CompositionError):
    """Background asset is shorter than the content plus outro."""


class GraphBuildError(CompositionError):
    """Filter graph invariant violated (planner defect)."""


class RenderInvocationError(CompositionError):
    """External renderer could not be started or exited non-zero."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
        job_id: Optional[UUID] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, job_id=job_id, context=context)
        self.returncode = returncode
        self.stderr = stderr
