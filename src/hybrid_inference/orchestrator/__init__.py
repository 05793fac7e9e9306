"""
Tiered fallback orchestration.

Main Components:
    - TierOrchestrator: cache -> local -> primary -> secondary resolution
    - ResolutionMetadata: Per-resolve audit record
    - TiersExhausted: Terminal failure

Usage:
    >>> from hybrid_inference.orchestrator import TierOrchestrator
    >>> orchestrator = TierOrchestrator(remote_tiers=[primary, secondary])
    >>> result = await orchestrator.resolve(request)
"""

from hybrid_inference.orchestrator.engine import TierOrchestrator
from hybrid_inference.orchestrator.exceptions import TiersExhausted
from hybrid_inference.orchestrator.metadata import ResolutionMetadata

__all__ = [
    "TierOrchestrator",
    "TiersExhausted",
    "ResolutionMetadata",
]
