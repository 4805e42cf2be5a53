"""Resilient HTTP layer for the n8n REST API.

Components, leaves first:
- models      – RetryPolicy, RateLimiterConfig, OverflowPolicy, SleepFunc
- transport   – one exchange with deadline and failure classification
- retry       – exponential backoff with jitter, idempotency aware
- rate_limit  – bounded concurrency, dispatch pacing, bounded queue
- client      – composes the three per call
"""

from min_n8n_mcp.core.http.client import API_KEY_HEADER, HttpClient, encode_params
from min_n8n_mcp.core.http.models import (
    OverflowPolicy,
    RateLimiterConfig,
    RetryPolicy,
    SleepFunc,
)
from min_n8n_mcp.core.http.rate_limit import LimiterStatus, RateLimiter
from min_n8n_mcp.core.http.retry import (
    IDEMPOTENT_METHODS,
    calculate_delay,
    is_idempotent_method,
    should_retry_method,
    with_retry,
)
from min_n8n_mcp.core.http.transport import HttpTransport, Request

__all__ = [
    # Models
    "RetryPolicy",
    "RateLimiterConfig",
    "OverflowPolicy",
    "SleepFunc",
    # Transport
    "HttpTransport",
    "Request",
    # Retry
    "IDEMPOTENT_METHODS",
    "calculate_delay",
    "is_idempotent_method",
    "should_retry_method",
    "with_retry",
    # Rate limiting
    "RateLimiter",
    "LimiterStatus",
    # Client
    "API_KEY_HEADER",
    "HttpClient",
    "encode_params",
]
