"""Async retry with exponential backoff and jitter.

The retry engine is the only component that decides whether a classified
failure gets another attempt. Failures are re-raised unchanged once retries
are exhausted or the failure is not retryable for the request's method.
"""

import asyncio
import logging
import math
import random
from typing import Awaitable, Callable, Optional, TypeVar

from min_n8n_mcp.core.errors import (
    TimeoutFailure,
    TransportFailure,
    is_retryable_error,
    log_failure,
)
from min_n8n_mcp.core.http.models import RetryPolicy, SleepFunc
from min_n8n_mcp.core.observability import log_event

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PUT and DELETE are idempotent by contract of the n8n API
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "PUT", "DELETE"})


def is_idempotent_method(method: str) -> bool:
    return method.upper() in IDEMPOTENT_METHODS


def should_retry_method(method: str, error: BaseException) -> bool:
    """Decide whether *error* may be retried for a request using *method*.

    Idempotent methods retry any retryable failure. POST and PATCH only retry
    failures where the request provably never completed (transport errors and
    timeouts), so a 5xx on a create is never replayed.
    """
    if is_idempotent_method(method):
        return is_retryable_error(error)
    return isinstance(error, (TransportFailure, TimeoutFailure))


def calculate_delay(
    attempt: int,
    policy: RetryPolicy,
    rng: Optional[random.Random] = None,
) -> float:
    """Backoff before retry number ``attempt + 1``, in seconds.

    ``min(base * multiplier**attempt, max_delay)`` plus uniform jitter in
    ``[0, capped * jitter_factor]``, floored to whole milliseconds.
    """
    _rng = rng or random
    exponential_ms = policy.base_delay * 1000.0 * policy.backoff_multiplier**attempt
    capped_ms = min(exponential_ms, policy.max_delay * 1000.0)
    jitter_ms = capped_ms * policy.jitter_factor * _rng.random()
    return math.floor(capped_ms + jitter_ms) / 1000.0


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    method: str = "GET",
    context: str = "",
    rng: Optional[random.Random] = None,
    sleep_func: Optional[SleepFunc] = None,
) -> T:
    """Run *operation* up to ``policy.max_retries + 1`` times.

    Args:
        operation: Async callable performing one attempt (no arguments).
        policy: Retry policy for this call.
        method: HTTP method of the request, for idempotency decisions.
        context: Short description used in log records (e.g. ``"GET /workflows"``).
        rng: Injectable Random instance for deterministic jitter.
        sleep_func: Injectable sleep function for time control in tests.

    Returns:
        Result of the first successful attempt.

    Raises:
        Exception: The failure of the last attempt, unchanged.
    """
    _sleep = sleep_func or asyncio.sleep
    attempts = policy.max_retries + 1

    for attempt in range(attempts):
        if attempt > 0:
            delay = calculate_delay(attempt - 1, policy, rng)
            log_event(
                logger,
                logging.DEBUG,
                "Retrying request after delay",
                context=context,
                attempt=attempt,
                delay_ms=int(delay * 1000),
                max_retries=policy.max_retries,
            )
            await _sleep(delay)

        try:
            return await operation()
        except Exception as error:
            if not should_retry_method(method, error) or attempt == attempts - 1:
                log_failure(
                    logger,
                    error,
                    context,
                    attempt=attempt,
                    max_retries=policy.max_retries,
                    message="Request failed, not retrying",
                )
                raise

            log_failure(
                logger,
                error,
                context,
                attempt=attempt,
                max_retries=policy.max_retries,
                level=logging.WARNING,
                message="Request failed, will retry",
            )

    raise RuntimeError("with_retry: unexpected state")
