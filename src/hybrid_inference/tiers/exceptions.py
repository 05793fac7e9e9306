"""
Custom exceptions for the tier client layer.

These exceptions give the error classifier structured signals (status code,
backend-declared error code) so the orchestrator can pick the right retry
policy without knowing about any particular transport library.
"""

from typing import Optional


class TierError(Exception):
    """
    Base exception for all tier client errors.

    All tier-specific exceptions inherit from this to allow catching
    any backend-related error with a single except clause.

    Attributes:
        message: Human-readable description
        details: Structured context for logging
        status_code: HTTP status when the failure came from a response
        error_code: Backend-declared error code (used verbatim by the classifier)
    """
    error_code: Optional[str] = None

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class TierConnectionError(TierError):
    """
    Raised when unable to reach the tier backend.

    Includes connect failures, DNS failures and broken transports.
    """
    error_code = "network_error"


class TierTimeoutError(TierConnectionError):
    """
    Raised when a tier call exceeds its timeout.

    Kept separate from generic connection errors for logging, but follows
    the same retry path.
    """
    pass


class TierRateLimitError(TierError):
    """
    Raised when the backend (or the local token bucket) rate-limits the call.
    """
    error_code = "rate_limit"


class TierAuthError(TierError):
    """
    Raised when the backend rejects the credentials (HTTP 401/403).

    Never retried; still counts towards the breaker so a misconfigured
    tier trips.
    """
    error_code = "auth_error"


class TierBadRequestError(TierError):
    """
    Raised when the request itself is malformed (HTTP 400 or local input checks).
    """
    error_code = "bad_request"


class TierServerError(TierError):
    """
    Raised when the backend returns a 5xx response.
    """
    error_code = "server_error"


class TierResponseError(TierError):
    """
    Raised when a 2xx response cannot be parsed into a suggestion.

    Examples:
    - Missing choices/message content
    - Content that fails the suggestion schema
    """
    error_code = "unknown"
