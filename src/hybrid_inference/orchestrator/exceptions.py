"""
Orchestrator exceptions.

This module defines the terminal failure raised when no tier could produce
a result for a request.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hybrid_inference.models.enums import ErrorCategory
    from hybrid_inference.models.request_models import InferenceRequest
    from hybrid_inference.orchestrator.metadata import ResolutionMetadata


class TiersExhausted(Exception):
    """
    Raised when every tier failed or was skipped.

    HTTP callers receive 503 and must not retry automatically.

    Attributes:
        request: Original InferenceRequest
        last_category: Category of the last failure (None if every remote tier was skipped)
        last_message: Human-readable description of the last failure
        metadata: Complete resolution history
    """

    def __init__(
        self,
        request: "InferenceRequest",
        last_category: Optional["ErrorCategory"],
        last_message: str,
        metadata: "ResolutionMetadata",
    ) -> None:
        self.request = request
        self.last_category = last_category
        self.last_message = last_message
        self.metadata = metadata

        category = last_category.value if last_category is not None else "circuit_open"
        super().__init__(
            f"All tiers exhausted after {metadata.total_attempts} attempts. "
            f"Last failure ({category}): {last_message}"
        )
