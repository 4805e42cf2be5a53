"""Resilience error classes raised by the rate limiter."""

from __future__ import annotations

from typing import Any, Dict, Optional

from min_n8n_mcp.core.errors.http import ApiError, ExternalErrorKind


class QueueOverflowError(ApiError):
    """The rate limiter queue was full and this operation was never dispatched.

    Attributes:
        reason: ``"rejected"`` when the new submission was refused,
            ``"evicted"`` when a queued operation was dropped to make room.
        max_queue_depth: The configured queue bound.
    """

    error_kind = ExternalErrorKind.RESOURCE_EXHAUSTED

    def __init__(
        self,
        message: str,
        *,
        reason: str = "rejected",
        max_queue_depth: Optional[int] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.max_queue_depth = max_queue_depth

    def log_fields(self) -> Dict[str, Any]:
        fields = super().log_fields()
        fields["reason"] = self.reason
        fields["max_queue_depth"] = self.max_queue_depth
        return fields
