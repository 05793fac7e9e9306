"""Unit test fixtures (fakes and stubs).

Provides deterministic clocks, a recording sleep and scripted tiers so the
resilience logic can be tested without real time or real backends.
"""

from typing import Optional

import pytest

from hybrid_inference.models.enums import TierName
from hybrid_inference.models.request_models import InferenceRequest
from hybrid_inference.models.result_models import InferenceResult
from hybrid_inference.tiers.base import RemoteTier


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        if self._clock is not None:
            self._clock.advance(seconds)


class ScriptedTier(RemoteTier):
    """
    Remote tier that replays a script of outcomes.

    Each script item is either an exception (raised) or an InferenceResult
    (returned). The last item repeats once the script runs out.
    """

    def __init__(self, name: TierName, script: list, model: str = "test-model", timeout: float = 5.0):
        super().__init__(name=name, model=model, timeout=timeout)
        self.script = list(script)
        self.calls: list[Optional[str]] = []

    async def generate(
        self, request: InferenceRequest, model_override: Optional[str] = None
    ) -> InferenceResult:
        index = min(len(self.calls), len(self.script) - 1)
        self.calls.append(model_override)
        outcome = self.script[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def call_count(self) -> int:
        return len(self.calls)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def scripted_tier():
    """Factory for ScriptedTier: scripted_tier(TierName.PRIMARY, [error, result])."""
    return ScriptedTier
