"""Shared fixtures for HTTP layer tests."""

from typing import Callable, List

import httpx
import pytest

from min_n8n_mcp.core.http import HttpClient, RateLimiterConfig, RetryPolicy

BASE_URL = "http://n8n.test/api/v1"
API_TOKEN = "test-api-token"


class FakeSleep:
    """Async sleep double that records requested delays without waiting."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeClock:
    """Manually advanced monotonic clock, paired with a sleep that advances it."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FixedRandom:
    """Stand-in for random.Random returning a fixed value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_client(fake_sleep) -> Callable[..., HttpClient]:
    """Build an HttpClient whose exchanges go through an httpx.MockTransport.

    Pacing is disabled so tests never wait on the limiter; retry backoff goes
    to ``fake_sleep``.
    """
    created: List[httpx.AsyncClient] = []

    def _make(handler, *, retry_policy=None, rate_limit=None, timeout=30.0) -> HttpClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        created.append(http_client)
        return HttpClient(
            BASE_URL,
            API_TOKEN,
            timeout=timeout,
            retry_policy=retry_policy or RetryPolicy(max_retries=2),
            rate_limit=rate_limit or RateLimiterConfig(min_interval=0),
            http_client=http_client,
            rng=FixedRandom(0.0),
            sleep_func=fake_sleep,
        )

    return _make


@pytest.fixture
def fixed_random():
    """Factory for deterministic jitter sources: ``fixed_random(0.5)``."""
    return FixedRandom
