"""
Error classification.

Maps an arbitrary failure to exactly one ErrorCategory. Failures are first
normalised into a FailureDescriptor (kind, status code, error code, message)
and then run through a prioritised list of predicate -> category rules.
The classifier never raises: unmatched failures are UNKNOWN.
"""

import asyncio
import socket
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
import pydantic
import structlog

from hybrid_inference.models.enums import ErrorCategory
from hybrid_inference.tiers.exceptions import TierError, TierRateLimitError

logger = structlog.get_logger(__name__)


# Exception types that mean "the transport failed", independent of library
_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    httpx.TransportError,  # includes httpx.TimeoutException, ConnectError, NetworkError
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    socket.gaierror,
    socket.timeout,
)

_BAD_INPUT_ERRORS: tuple[type[BaseException], ...] = (
    ValueError,
    TypeError,
    pydantic.ValidationError,
)


@dataclass(frozen=True)
class FailureDescriptor:
    """
    Normalised view of a failure.

    Attributes:
        kind: One of 'rate_limit', 'transport', 'bad_input', 'other'
        status_code: HTTP status if the failure came from a response
        error_code: Backend-declared error code, if any
        message: Human-readable message
    """

    kind: str
    status_code: Optional[int] = None
    error_code: Optional[str] = None
    message: str = ""


def describe_failure(failure: BaseException) -> FailureDescriptor:
    """Normalise an exception into a FailureDescriptor."""
    message = str(failure) or type(failure).__name__

    if isinstance(failure, TierRateLimitError):
        return FailureDescriptor("rate_limit", failure.status_code, failure.error_code, message)

    if isinstance(failure, TierError):
        return FailureDescriptor("other", failure.status_code, failure.error_code, message)

    if isinstance(failure, httpx.HTTPStatusError):
        return FailureDescriptor("other", failure.response.status_code, None, message)

    if isinstance(failure, _TRANSPORT_ERRORS):
        return FailureDescriptor("transport", None, None, message)

    if isinstance(failure, _BAD_INPUT_ERRORS):
        return FailureDescriptor("bad_input", None, None, message)

    return FailureDescriptor("other", None, None, message)


Rule = tuple[str, Callable[[FailureDescriptor], Optional[ErrorCategory]]]


def _rate_limit(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.kind == "rate_limit" or d.status_code == 429:
        return ErrorCategory.RATE_LIMIT
    return None


def _declared_code(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.error_code:
        return ErrorCategory.from_code(d.error_code)
    return None


def _transport(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.kind == "transport":
        return ErrorCategory.NETWORK_ERROR
    return None


def _server_status(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.status_code is not None and 500 <= d.status_code <= 599:
        return ErrorCategory.SERVER_ERROR
    return None


def _client_status(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.status_code in (401, 403):
        return ErrorCategory.AUTH_ERROR
    if d.status_code in (400, 422):
        return ErrorCategory.BAD_REQUEST
    return None


def _bad_input(d: FailureDescriptor) -> Optional[ErrorCategory]:
    if d.kind == "bad_input":
        return ErrorCategory.BAD_REQUEST
    return None


# Evaluated in order; first non-None wins
CLASSIFICATION_RULES: list[Rule] = [
    ("rate_limit", _rate_limit),
    ("declared_code", _declared_code),
    ("transport", _transport),
    ("server_status", _server_status),
    ("client_status", _client_status),
    ("bad_input", _bad_input),
]


def classify_descriptor(descriptor: FailureDescriptor) -> ErrorCategory:
    """Run the rule list against a descriptor."""
    for _name, rule in CLASSIFICATION_RULES:
        category = rule(descriptor)
        if category is not None:
            return category
    return ErrorCategory.UNKNOWN


def classify(failure: BaseException) -> ErrorCategory:
    """
    Classify a failure into an ErrorCategory.

    Args:
        failure: Any exception raised while calling a tier

    Returns:
        The matching ErrorCategory (UNKNOWN if no rule matches)
    """
    try:
        return classify_descriptor(describe_failure(failure))
    except Exception as e:  # classification must be total
        logger.error(
            "Failure classification crashed, using unknown",
            failure_type=type(failure).__name__,
            error=str(e),
        )
        return ErrorCategory.UNKNOWN
