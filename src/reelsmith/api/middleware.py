"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from reelsmith.models.errors import (
    ErrorResponse,
    InvalidConfig,
    InvalidTransition,
    NotFound,
    ProviderError,
    ReelsmithError,
)

logger = logging.getLogger(__name__)


async def reelsmith_error_handler(request: Request, exc: ReelsmithError) -> JSONResponse:
    """Handle ReelsmithError exceptions."""
    response = ErrorResponse.from_exception(
        exc, guidance=_get_guidance(exc), retry=_is_retryable(exc)
    )
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: ReelsmithError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, InvalidConfig):
        return 400
    elif isinstance(exc, NotFound):
        return 404
    elif isinstance(exc, InvalidTransition):
        return 409
    elif isinstance(exc, ProviderError):
        return 503
    return 500


def _get_guidance(exc: ReelsmithError) -> str:
    """Generate actionable guidance based on error type."""
    if isinstance(exc, InvalidConfig):
        return "Check the requested duration and platforms."
    if isinstance(exc, NotFound):
        return "Check the job id; deleted jobs cannot be recovered."
    if isinstance(exc, InvalidTransition):
        return "Poll the job status and retry the operation once it is allowed."
    return "Please try again or contact support."


def _is_retryable(exc: ReelsmithError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, (ProviderError, InvalidTransition))
