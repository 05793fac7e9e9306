"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to appropriate HTTP status codes and formats.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from hybrid_inference.orchestrator.exceptions import TiersExhausted
from hybrid_inference.tiers.exceptions import TierError

logger = structlog.get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def tiers_exhausted_handler(request: Request, exc: TiersExhausted) -> JSONResponse:
    """
    Handle tier exhaustion (terminal failure).

    Maps to 503 Service Unavailable. Callers must not retry automatically:
    the breakers and backoff have already absorbed the transient failures.

    Args:
        request: FastAPI request
        exc: TiersExhausted instance

    Returns:
        JSON error response
    """
    metadata = exc.metadata
    logger.error(
        "Tiers exhausted",
        entity_id=exc.request.context.entity_id,
        last_category=exc.last_category.value if exc.last_category else None,
        total_attempts=metadata.total_attempts,
        tiers_tried=metadata.tiers_tried,
        tiers_skipped=metadata.tiers_skipped,
        failures=metadata.failures,
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "tiers_exhausted",
            "message": exc.last_message,
            "last_category": exc.last_category.value if exc.last_category else None,
            "attempts": metadata.total_attempts,
            "tiers_skipped": metadata.tiers_skipped,
            "timestamp": _timestamp(),
        },
    )


async def tier_error_handler(request: Request, exc: TierError) -> JSONResponse:
    """
    Handle a tier error that escaped the orchestrator.

    Maps to 502 Bad Gateway (upstream backend failure).

    Args:
        request: FastAPI request
        exc: TierError instance

    Returns:
        JSON error response
    """
    logger.error(
        "Tier error",
        error_type=type(exc).__name__,
        error=exc.message,
        details=exc.details,
    )

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={
            "error": "tier_error",
            "message": exc.message,
            "error_code": exc.error_code,
            "timestamp": _timestamp(),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "timestamp": _timestamp(),
        },
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    TiersExhausted: tiers_exhausted_handler,
    TierError: tier_error_handler,
    Exception: generic_error_handler,
}
