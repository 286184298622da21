"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class ReelsmithError(Exception):
    """Base error for all Reelsmith errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class InvalidConfig(ReelsmithError):
    """Request rejected before any pipeline stage runs."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="validation", details=details)


class ProviderError(ReelsmithError):
    """A generation provider call failed (transient or permanent)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="provider", details=details)


class SegmentGenerationFailed(ReelsmithError):
    """Provider exhausted its retries for one segment."""

    def __init__(self, index: int, message: str = "", details: dict | None = None):
        details = {"index": index, **(details or {})}
        super().__init__(
            message or f"Segment {index} failed after all retries",
            component="generation",
            details=details,
        )
        self.index = index


class AssemblyError(ReelsmithError):
    """Segments could not be merged into one video."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="assembly", details=details)


class FormatError(ReelsmithError):
    """A platform output could not be produced."""

    def __init__(self, message: str, platform: str = "", details: dict | None = None):
        details = {"platform": platform, **(details or {})} if platform else details
        super().__init__(message, component="formatting", details=details)
        self.platform = platform


class UnsupportedPlatform(FormatError):
    """Platform identifier has no entry in the platform table."""

    def __init__(self, platform: str):
        super().__init__(f"Unsupported platform '{platform}'", platform=platform)


class NotFound(ReelsmithError):
    """Unknown job id."""

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found", component="registry", details={"job_id": job_id})
        self.job_id = job_id


class InvalidTransition(ReelsmithError):
    """Requested operation is not allowed from the job's current status."""

    def __init__(self, job_id: str, current: str, requested: str):
        super().__init__(
            f"Job {job_id} cannot move from '{current}' to '{requested}'",
            component="registry",
            details={"job_id": job_id, "current": current, "requested": requested},
        )


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    actionable_guidance: str = Field(default="", description="Suggested user action")
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(
        cls, exc: ReelsmithError, guidance: str = "", retry: bool = False
    ) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            actionable_guidance=guidance,
            retry_possible=retry,
        )
