"""
API routes for suggestion resolution and resilience monitoring.

- POST /suggestions: resolve one request through cache, local and remote tiers
- GET /health: tier reachability, breaker state and processing strategy
- GET /resilience/metrics: outcome metrics snapshot
- POST /resilience/metrics/reset: operator reset of the outcome counters
"""

import asyncio
import time

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hybrid_inference.api.dependencies import get_orchestrator, get_settings
from hybrid_inference.api.models import HealthResponse, SuggestionResponse
from hybrid_inference.config import Settings
from hybrid_inference.models.enums import BreakerState
from hybrid_inference.models.request_models import InferenceRequest
from hybrid_inference.models.result_models import MetricsSnapshot
from hybrid_inference.orchestrator.engine import TierOrchestrator

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/suggestions",
    response_model=SuggestionResponse,
    status_code=status.HTTP_200_OK,
    summary="Resolve an automation suggestion",
    description="""
    Resolve one inference request.

    Tries the result cache, then the local tier (when enabled and requested),
    then the primary and secondary remote tiers with retry and circuit breaking.
    """,
    responses={
        200: {"description": "Suggestion produced"},
        422: {"description": "Invalid request format"},
        503: {"description": "All tiers exhausted; do not retry automatically"},
    },
)
async def create_suggestion(
    request: InferenceRequest,
    orchestrator: TierOrchestrator = Depends(get_orchestrator),
) -> SuggestionResponse:
    """
    Resolve a suggestion for an event.

    Args:
        request: InferenceRequest with event context and preferences
        orchestrator: Orchestrator singleton (injected)

    Returns:
        SuggestionResponse with the result and resolution summary
    """
    logger.info(
        "Suggestion request received",
        entity_id=request.context.entity_id,
        event_kind=request.context.event_kind,
        local_processing=request.preferences.local_processing,
    )

    result, metadata = await orchestrator.resolve_with_metadata(request)

    return SuggestionResponse(
        status="success",
        result=result,
        cache_hit=metadata.cache_hit,
        final_tier=metadata.final_tier,
        total_attempts=metadata.total_attempts,
        tiers_skipped=metadata.tiers_skipped,
        processing_duration_ms=metadata.total_latency_ms,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="""
    Check the health of the remote tiers and report the processing strategy.

    Returns:
    - Reachability of each remote tier
    - Circuit breaker state of each remote tier
    - Cache, local tier and retry policy configuration
    """,
    responses={
        200: {"description": "At least one remote tier usable"},
        503: {"description": "No remote tier usable"},
    },
)
async def health_check(
    orchestrator: TierOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_settings),
):
    """
    Check health of all remote tiers.

    A tier is usable when it is reachable and its breaker is not OPEN.
    """
    tiers = orchestrator.remote_tiers
    reachable = await asyncio.gather(*(tier.health_check() for tier in tiers))

    services = {}
    breakers = {}
    usable = 0
    for tier, ok in zip(tiers, reachable):
        breaker_status = orchestrator.breakers[tier.name].status()
        breakers[tier.name.value] = breaker_status
        services[tier.name.value] = "ok" if ok else "unreachable"
        if ok and breaker_status.state != BreakerState.OPEN:
            usable += 1

    if tiers and usable == len(tiers):
        health_status = "healthy"
        status_code = status.HTTP_200_OK
    elif usable > 0:
        health_status = "degraded"
        status_code = status.HTTP_200_OK
    else:
        health_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    processing_strategy = {
        "cache_enabled": orchestrator.cache is not None,
        "cache_entries": len(orchestrator.cache) if orchestrator.cache is not None else 0,
        "local_tier_enabled": orchestrator.local_tier is not None,
        "local_confidence_threshold": orchestrator.local_confidence_threshold,
        "remote_tiers": [tier.name.value for tier in tiers],
        "retry_policies": orchestrator.policies.as_dict(),
    }

    logger.info("Health check", status=health_status, services=services)

    response = HealthResponse(
        status=health_status,
        version=settings.APP_VERSION,
        services=services,
        breakers=breakers,
        processing_strategy=processing_strategy,
    )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )


@router.get(
    "/resilience/metrics",
    response_model=MetricsSnapshot,
    summary="Outcome metrics snapshot",
)
async def resilience_metrics(
    orchestrator: TierOrchestrator = Depends(get_orchestrator),
) -> MetricsSnapshot:
    """Return failure counters and breaker status."""
    return orchestrator.metrics.snapshot()


@router.post(
    "/resilience/metrics/reset",
    response_model=MetricsSnapshot,
    summary="Reset outcome counters (operator action)",
)
async def reset_resilience_metrics(
    orchestrator: TierOrchestrator = Depends(get_orchestrator),
) -> MetricsSnapshot:
    """Zero the failure counters. Breaker state is untouched."""
    orchestrator.metrics.reset()
    return orchestrator.metrics.snapshot()
