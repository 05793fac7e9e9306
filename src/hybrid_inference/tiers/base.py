"""
Abstract tier interfaces.

Defines the interfaces the orchestrator calls. A local tier is a synchronous
callable; a remote tier is an async client. This abstraction allows swapping
backends without changing the orchestration logic.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from hybrid_inference.models.enums import TierName
from hybrid_inference.models.request_models import InferenceRequest
from hybrid_inference.models.result_models import InferenceResult

logger = structlog.get_logger(__name__)


class LocalTier(ABC):
    """
    Local (cheap, on-device) tier.

    Called at most once per resolve, with no retry and no breaker. Any
    exception it raises is treated as a fallthrough.
    """

    name = TierName.LOCAL

    @abstractmethod
    def infer(self, request: InferenceRequest) -> InferenceResult:
        """
        Produce a suggestion for the request.

        Raises:
            Any exception on failure
        """
        pass


class CallableLocalTier(LocalTier):
    """Adapts a plain function into a LocalTier."""

    def __init__(self, fn: Callable[[InferenceRequest], InferenceResult]):
        self._fn = fn

    def infer(self, request: InferenceRequest) -> InferenceResult:
        return self._fn(request)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(fn={getattr(self._fn, '__name__', self._fn)!r})"


class RemoteTier(ABC):
    """
    Abstract base class for remote tiers.

    Responsibilities:
    - Send one generation request to the backend
    - Map transport and HTTP failures onto TierError subclasses
    - Parse the response into an InferenceResult

    Does NOT handle:
    - Retries and backoff (the orchestrator's job)
    - Circuit breaking (the orchestrator owns one breaker per tier)
    """

    def __init__(self, name: TierName, model: str, timeout: float = 30.0):
        """
        Initialize base tier.

        Args:
            name: Tier name (primary or secondary)
            model: Default model identifier
            timeout: Per-call timeout in seconds, enforced by the orchestrator
        """
        self.name = name
        self.model = model
        self.timeout = timeout

        logger.info(
            "Initialized remote tier",
            tier_class=self.__class__.__name__,
            tier=name.value,
            model=model,
            timeout=timeout,
        )

    @abstractmethod
    async def generate(
        self, request: InferenceRequest, model_override: Optional[str] = None
    ) -> InferenceResult:
        """
        Make exactly one backend call.

        Args:
            request: Inference request
            model_override: Model to use instead of the tier default

        Returns:
            InferenceResult produced by this tier

        Raises:
            TierError subclass (or any transport exception) on failure
        """
        pass

    async def health_check(self) -> bool:
        """
        Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise. Never raises.
        """
        return True

    async def close(self):
        """Close connections and cleanup resources."""
        logger.debug("Closing remote tier", tier=self.name.value)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.name.value}, "
            f"model={self.model}, "
            f"timeout={self.timeout}s)"
        )
