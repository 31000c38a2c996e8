"""
Exception hierarchy and transport error categorization.

Error classes map onto the four failure kinds the engine distinguishes:

- local validation  → :class:`InvalidArgumentError` (before any I/O)
- batch capacity    → :class:`CapacityExceededError` (before any I/O)
- physical call     → :class:`BatchExecutionError` (wraps whatever the
  transport raised; the original is kept as ``__cause__``)
- per-command       → not an exception; surfaced as an unsuccessful
  :class:`~src.batch_client.results.CommandResult`

None of these are retried here.
"""

from __future__ import annotations


class BatchError(Exception):
    """Base class for every error raised by the batch client."""


class InvalidArgumentError(BatchError, ValueError):
    """A caller-supplied item or parameter failed local validation."""


class CapacityExceededError(BatchError):
    """More commands were registered than one physical call can carry."""

    def __init__(self, capacity: int, message: str | None = None) -> None:
        self.capacity = capacity
        super().__init__(
            message
            or f"command batch is full: at most {capacity} commands per physical call"
        )


class BatchExecutionError(BatchError):
    """A physical call failed as a whole."""


class TransportError(BatchError):
    """
    Raised by a transport when a physical call cannot be completed.

    Attributes:
        category: One of the :class:`TransportErrorCategory` constants.
        status_code: HTTP status code, if a response was received.
    """

    def __init__(
        self,
        message: str,
        category: str = "other",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class TransportErrorCategory:
    """
    Category constants and classification logic for physical-call failures.

    Categories are informational: the engine never retries, but callers that
    wrap it with their own retry policy can branch on ``RETRIABLE``.
    """

    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    AUTHENTICATION = "authentication"
    INVALID_RESPONSE = "invalid_response"
    API_ERROR = "api_error"
    OTHER = "other"

    # Transient errors a caller may reasonably retry
    RETRIABLE: frozenset[str] = frozenset({TIMEOUT, RATE_LIMIT, SERVICE_UNAVAILABLE})
    # Errors that will fail again with the same request
    PERMANENT: frozenset[str] = frozenset({AUTHENTICATION, INVALID_RESPONSE, API_ERROR})

    @staticmethod
    def categorize(
        error: Exception | str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> str:
        """
        Classify a failure into one of the category constants.

        Checks the HTTP status code first, then the portal's error code
        (``QUERY_LIMIT_EXCEEDED``, ``expired_token``, ...), then falls back
        to keywords in the stringified error.

        Args:
            error: Exception raised during the call, or an error message.
            status_code: HTTP status of the response, if any.
            error_code: ``error`` field of a portal error payload, if any.

        Returns:
            Category string.
        """
        code = (error_code or "").upper()

        if status_code == 429 or code == "QUERY_LIMIT_EXCEEDED":
            return TransportErrorCategory.RATE_LIMIT

        if status_code in (401, 403) or code in (
            "EXPIRED_TOKEN",
            "INVALID_TOKEN",
            "NO_AUTH_FOUND",
            "INSUFFICIENT_SCOPE",
            "WRONG_AUTH_TYPE",
        ):
            return TransportErrorCategory.AUTHENTICATION

        if status_code in (502, 503, 504) or code == "OVERLOAD_LIMIT":
            return TransportErrorCategory.SERVICE_UNAVAILABLE

        err = str(error).lower()

        if "timeout" in err or "timed out" in err:
            return TransportErrorCategory.TIMEOUT

        if "rate limit" in err or "too many requests" in err:
            return TransportErrorCategory.RATE_LIMIT

        if "service unavailable" in err or "connection" in err:
            return TransportErrorCategory.SERVICE_UNAVAILABLE

        if any(tok in err for tok in ("json", "decode", "malformed")):
            return TransportErrorCategory.INVALID_RESPONSE

        if code or (status_code is not None and 400 <= status_code < 500):
            return TransportErrorCategory.API_ERROR

        return TransportErrorCategory.OTHER
