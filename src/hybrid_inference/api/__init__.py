"""
FastAPI API routes and endpoints.

- routes.py: POST /suggestions, GET /health, GET /resilience/metrics
- dependencies.py: Orchestrator wiring and singletons
- models.py: API-specific response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request tracing
"""

from hybrid_inference.api import dependencies, error_handlers, models
from hybrid_inference.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
