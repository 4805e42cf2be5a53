"""HTTP client composing admission control, retry and transport.

Every logical call runs as::

    limiter.schedule(lambda: with_retry(lambda: transport.execute(request), policy))

so retries of one call hold a single limiter slot, while unrelated calls
share the limiter's concurrency and pacing.

Example:
    async with HttpClient.from_config(get_config()) as client:
        workflows = await client.get("/workflows", {"active": True})
        await client.post("/workflows", {"name": "nightly"})
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

import httpx

from min_n8n_mcp.core.http.models import RateLimiterConfig, RetryPolicy, SleepFunc
from min_n8n_mcp.core.http.rate_limit import RateLimiter
from min_n8n_mcp.core.http.retry import with_retry
from min_n8n_mcp.core.http.transport import HttpTransport, Request
from min_n8n_mcp.version import __version__

if TYPE_CHECKING:
    from min_n8n_mcp.config import ServerConfig

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"
USER_AGENT = f"min-n8n-mcp/{__version__}"

QueryParams = Mapping[str, Any]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_params(params: Optional[QueryParams]) -> Tuple[Tuple[str, str], ...]:
    """Drop ``None`` values and stringify the rest, preserving order."""
    if not params:
        return ()
    return tuple((key, _stringify(value)) for key, value in params.items() if value is not None)


class HttpClient:
    """Resilient client for the n8n REST API.

    Args:
        base_url: API root, e.g. ``https://n8n.example.com/api/v1``.
        api_token: Credential sent in the ``X-N8N-API-KEY`` header.
        timeout: Default per-attempt deadline in seconds.
        retry_policy: Default retry policy for every call.
        rate_limit: Limiter settings shared by all calls on this client.
        http_client: Optional ``httpx.AsyncClient`` (not closed by this client).
        rng: Injectable Random for deterministic retry jitter.
        sleep_func: Injectable sleep for retry backoff.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        rate_limit: Optional[RateLimiterConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        rng: Optional[random.Random] = None,
        sleep_func: Optional[SleepFunc] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = RateLimiter(rate_limit)
        self.transport = HttpTransport(
            {
                API_KEY_HEADER: api_token,
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
            client=http_client,
        )
        self._rng = rng
        self._sleep = sleep_func

    @classmethod
    def from_config(cls, config: "ServerConfig", **kwargs: Any) -> "HttpClient":
        """Build a client from server configuration."""
        return cls(
            config.n8n_api_url,
            config.n8n_api_token,
            timeout=config.http_timeout,
            retry_policy=config.retry_policy(),
            rate_limit=config.rate_limiter_config(),
            **kwargs,
        )

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    def build_url(self, path: str) -> str:
        return f"{self.base_url}{path if path.startswith('/') else '/' + path}"

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        body: Any = None,
        params: Optional[QueryParams] = None,
        timeout: Optional[float] = None,
        retry_config: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform one logical call and return the decoded JSON body or ``None``.

        Args:
            path: Path relative to the base URL.
            method: HTTP verb.
            headers: Per-call header overrides.
            body: JSON value, or a pre-encoded ``str``/``bytes`` body.
            params: Query parameters; ``None`` values are skipped.
            timeout: Per-attempt deadline override, in seconds.
            retry_config: Partial retry policy merged over the client default.

        Raises:
            ApiError: The classified failure of the last attempt, or a
                QueueOverflowError if the call was never dispatched.
        """
        method = method.upper()
        url = self.build_url(path)
        encoded_params = encode_params(params)
        policy = self.retry_policy.merged(retry_config)
        effective_timeout = timeout if timeout is not None else self.timeout
        call_headers: Dict[str, str] = dict(headers or {})

        async def attempt() -> Any:
            request = Request(
                method=method,
                url=url,
                params=encoded_params,
                headers=call_headers,
                body=body,
                timeout=effective_timeout,
            )
            return await self.transport.execute(request)

        async def run_with_retry() -> Any:
            return await with_retry(
                attempt,
                policy,
                method=method,
                context=f"{method} {path}",
                rng=self._rng,
                sleep_func=self._sleep,
            )

        return await self.rate_limiter.schedule(run_with_retry)

    async def get(self, path: str, params: Optional[QueryParams] = None, **options: Any) -> Any:
        return await self.request(path, method="GET", params=params, **options)

    async def post(self, path: str, body: Any = None, **options: Any) -> Any:
        return await self.request(path, method="POST", body=body, **options)

    async def put(self, path: str, body: Any = None, **options: Any) -> Any:
        return await self.request(path, method="PUT", body=body, **options)

    async def patch(self, path: str, body: Any = None, **options: Any) -> Any:
        return await self.request(path, method="PATCH", body=body, **options)

    async def delete(self, path: str, **options: Any) -> Any:
        return await self.request(path, method="DELETE", **options)
