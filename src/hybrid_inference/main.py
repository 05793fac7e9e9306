"""
FastAPI application entry point for the Hybrid Inference Layer.
"""

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from hybrid_inference.api.dependencies import get_orchestrator
from hybrid_inference.api.error_handlers import EXCEPTION_HANDLERS
from hybrid_inference.api.middleware import RequestTracingMiddleware
from hybrid_inference.api.routes import router
from hybrid_inference.config import settings
from hybrid_inference.logging_config import configure_logging

# Configure structured logging before any other imports
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, settings.APP_VERSION)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Tiered fallback orchestration for automation suggestions with retries and circuit breaking",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

# Register exception handlers
for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router)


@app.on_event("startup")
async def startup():
    """Application startup - build the orchestrator eagerly."""
    orchestrator = get_orchestrator()
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        remote_api_base_url=settings.REMOTE_API_BASE_URL,
        primary_model=settings.PRIMARY_MODEL,
        fallback_model=settings.FALLBACK_MODEL,
        remote_tiers=[tier.name.value for tier in orchestrator.remote_tiers],
        local_tier_enabled=orchestrator.local_tier is not None,
        cache_enabled=orchestrator.cache is not None,
    )


@app.on_event("shutdown")
async def shutdown():
    """Application shutdown - close remote tier connections."""
    logger.info("Application shutdown")
    await get_orchestrator().close()
    logger.info("Application shutdown complete")


# Prometheus metrics instrumentation
if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "resilience_metrics": "/resilience/metrics",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hybrid_inference.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Only for development
    )
