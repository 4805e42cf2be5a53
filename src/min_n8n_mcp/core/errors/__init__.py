"""Centralized error classes for min-n8n-mcp.

Callers can import from here or from the sub-modules:

    from min_n8n_mcp.core.errors import ResponseFailure, ExternalErrorKind
"""

from min_n8n_mcp.core.errors.http import (
    ApiError,
    ExternalErrorKind,
    ResponseFailure,
    TimeoutFailure,
    TransportFailure,
    error_kind_for_status,
    is_retryable_error,
    is_retryable_status,
    log_failure,
)
from min_n8n_mcp.core.errors.resilience import QueueOverflowError

__all__ = [
    "ApiError",
    "ExternalErrorKind",
    "ResponseFailure",
    "TimeoutFailure",
    "TransportFailure",
    "QueueOverflowError",
    "error_kind_for_status",
    "is_retryable_error",
    "is_retryable_status",
    "log_failure",
]
