"""
Hybrid inference resilience layer for automation suggestions.

Resolves an inference request against a cost-ordered chain of backends:
- Result cache (fingerprinted, TTL-bounded)
- Local tier (cheap, confidence-gated, no retries)
- Primary remote tier (circuit breaker + per-category retry/backoff)
- Secondary remote tier (same discipline, fallback model)

Architecture: FastAPI surface + asyncio orchestrator + httpx remote clients
"""

__version__ = "0.1.0"
