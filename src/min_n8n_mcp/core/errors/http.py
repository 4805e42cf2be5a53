"""HTTP failure taxonomy.

Every failure of a call to the n8n API is classified exactly once, at the
transport boundary, into one of three variants:

- ``TransportFailure``: the exchange never completed (DNS, refused, reset)
- ``TimeoutFailure``: the per-attempt deadline expired before a response
- ``ResponseFailure``: the server answered with status >= 400

Each variant answers ``is_retryable()`` and maps to an
:class:`ExternalErrorKind` used when reporting the error to tool callers.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from min_n8n_mcp.core.observability import log_event


class ExternalErrorKind(str, Enum):
    """Caller-facing error categories."""

    INVALID_ARGUMENT = "InvalidArgument"
    PERMISSION_DENIED = "PermissionDenied"
    NOT_FOUND = "NotFound"
    FAILED_PRECONDITION = "FailedPrecondition"
    RESOURCE_EXHAUSTED = "ResourceExhausted"
    UNAVAILABLE = "Unavailable"
    UNKNOWN = "Unknown"


_STATUS_KINDS: Dict[int, ExternalErrorKind] = {
    400: ExternalErrorKind.INVALID_ARGUMENT,
    401: ExternalErrorKind.PERMISSION_DENIED,
    403: ExternalErrorKind.PERMISSION_DENIED,
    404: ExternalErrorKind.NOT_FOUND,
    409: ExternalErrorKind.FAILED_PRECONDITION,
    429: ExternalErrorKind.RESOURCE_EXHAUSTED,
}

# Client-side statuses that still warrant another attempt
_RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


def error_kind_for_status(status: int) -> ExternalErrorKind:
    """Map an HTTP status code to its external error kind."""
    kind = _STATUS_KINDS.get(status)
    if kind is not None:
        return kind
    if status >= 500:
        return ExternalErrorKind.UNAVAILABLE
    return ExternalErrorKind.UNKNOWN


def is_retryable_status(status: int) -> bool:
    """5xx, 408 and 429 are retryable; every other status is not."""
    return status >= 500 or status in _RETRYABLE_CLIENT_STATUSES


class ApiError(Exception):
    """Base class for classified failures surfaced by the HTTP layer."""

    error_kind: ExternalErrorKind = ExternalErrorKind.UNKNOWN

    def is_retryable(self) -> bool:
        return False

    def log_fields(self) -> Dict[str, Any]:
        """Structured fields describing this failure (no secrets)."""
        return {
            "error_type": type(self).__name__,
            "error_kind": self.error_kind.value,
            "error_message": str(self),
            "retryable": self.is_retryable(),
        }


class TransportFailure(ApiError):
    """The exchange failed below HTTP: DNS, refused or reset connection.

    Attributes:
        cause: The underlying transport exception, if any.
    """

    error_kind = ExternalErrorKind.UNAVAILABLE

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def is_retryable(self) -> bool:
        return True

    def log_fields(self) -> Dict[str, Any]:
        fields = super().log_fields()
        if self.cause is not None:
            fields["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return fields


class TimeoutFailure(ApiError):
    """The per-attempt deadline expired before a response arrived.

    Attributes:
        elapsed: The deadline, in seconds, that was exceeded.
    """

    error_kind = ExternalErrorKind.UNAVAILABLE

    def __init__(self, elapsed: float, message: Optional[str] = None):
        super().__init__(message or f"Request timeout after {int(elapsed * 1000)}ms")
        self.elapsed = elapsed

    def is_retryable(self) -> bool:
        return True

    def log_fields(self) -> Dict[str, Any]:
        fields = super().log_fields()
        fields["elapsed_ms"] = int(self.elapsed * 1000)
        return fields


class ResponseFailure(ApiError):
    """The server answered with an error status.

    Attributes:
        status: HTTP status code (>= 400).
        code: The body's ``code`` field, when present.
        raw_body: The decoded body (JSON value) or its text.
    """

    def __init__(
        self,
        status: int,
        message: str,
        code: Optional[str] = None,
        raw_body: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code
        self.raw_body = raw_body

    @classmethod
    def from_response(cls, status: int, reason: str = "", body: Any = None) -> "ResponseFailure":
        """Build a failure from a status line and a best-effort decoded body."""
        message: Optional[str] = None
        code: Optional[str] = None
        if isinstance(body, dict):
            if body.get("message"):
                message = str(body["message"])
            if body.get("code") is not None:
                code = str(body["code"])
        if not message:
            message = reason or f"HTTP {status}"
        return cls(status, message, code=code, raw_body=body)

    @property
    def error_kind(self) -> ExternalErrorKind:  # type: ignore[override]
        return error_kind_for_status(self.status)

    def is_retryable(self) -> bool:
        return is_retryable_status(self.status)

    def log_fields(self) -> Dict[str, Any]:
        fields = super().log_fields()
        fields["status"] = self.status
        if self.code is not None:
            fields["code"] = self.code
        return fields


def is_retryable_error(error: BaseException) -> bool:
    """Return True only for classified failures that allow another attempt."""
    return isinstance(error, ApiError) and error.is_retryable()


def log_failure(
    logger: logging.Logger,
    error: BaseException,
    context: str,
    *,
    attempt: Optional[int] = None,
    max_retries: Optional[int] = None,
    level: int = logging.ERROR,
    message: Optional[str] = None,
) -> None:
    """Log a failure with its classification and attempt context.

    Never includes request headers or bodies.
    """
    if isinstance(error, ApiError):
        fields = error.log_fields()
        default_message = {
            ResponseFailure: "HTTP error",
            TransportFailure: "Network error",
            TimeoutFailure: "Timeout error",
        }.get(type(error), "Request error")
    else:
        fields = {"error_message": str(error), "error_type": type(error).__name__, "retryable": False}
        default_message = "Unknown error"
    message = message or default_message
    fields["context"] = context
    if attempt is not None:
        fields["attempt"] = attempt
    if max_retries is not None:
        fields["max_retries"] = max_retries
    log_event(logger, level, message, **fields)
