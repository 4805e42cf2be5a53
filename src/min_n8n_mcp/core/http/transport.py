"""Single HTTP exchange against the n8n API.

The transport performs exactly one request per call: no retries, no
admission control. It applies the per-attempt deadline, turns network
errors, deadline expiry and error statuses into the failure taxonomy, and
decodes response bodies.

SECURITY: log records name the method, the path (never the query string)
and whether a body is present. Header values and bodies are never logged.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from min_n8n_mcp.core.errors import (
    ResponseFailure,
    TimeoutFailure,
    TransportFailure,
    log_failure,
)
from min_n8n_mcp.core.observability import log_event

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class Request:
    """One immutable HTTP attempt.

    Attributes:
        method: Upper-case HTTP verb.
        url: Absolute URL without query string.
        params: Ordered query parameters, already stringified.
        headers: Per-call header overrides (merged over the defaults).
        body: ``None``, a pre-encoded ``str``/``bytes`` body, or a JSON value.
        timeout: Deadline for this attempt, in seconds.
    """

    method: str
    url: str
    params: Tuple[Tuple[str, str], ...] = ()
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    timeout: float = 30.0

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    def encoded_body(self) -> Optional[bytes]:
        """Serialize the body: pre-encoded strings and bytes pass through."""
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")


def _decode_error_body(response: httpx.Response) -> Any:
    """Best-effort decode of an error body: JSON if declared, else text."""
    content_type = response.headers.get("content-type", "")
    try:
        if JSON_CONTENT_TYPE in content_type:
            return response.json()
        return response.text or None
    except ValueError:
        return response.text or None


class HttpTransport:
    """Executes one request with default headers and a deadline.

    Args:
        default_headers: Headers sent with every request (auth, content type,
            user agent). Per-call headers win on conflict, case-insensitively.
        client: Optional ``httpx.AsyncClient`` to send through. When omitted
            the transport creates and owns one.
    """

    def __init__(
        self,
        default_headers: Optional[Mapping[str, str]] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.default_headers = httpx.Headers(default_headers or {})
        self._owns_client = client is None
        # Deadlines are enforced per attempt by execute(), not by httpx
        self._client = client or httpx.AsyncClient(timeout=None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def build_headers(self, overrides: Optional[Mapping[str, str]] = None) -> httpx.Headers:
        headers = httpx.Headers(self.default_headers)
        if overrides:
            headers.update(overrides)
        return headers

    async def execute(self, request: Request) -> Any:
        """Send *request* and return its decoded body (or ``None``).

        Raises:
            TimeoutFailure: The deadline expired before a response arrived.
            TransportFailure: The exchange failed for any other reason.
            ResponseFailure: The server answered with status >= 400.
        """
        content = request.encoded_body()
        context = f"{request.method} {request.path}"
        log_event(
            logger,
            logging.DEBUG,
            "Making HTTP request",
            method=request.method,
            path=request.path,
            has_body=content is not None,
        )

        try:
            response = await asyncio.wait_for(
                self._client.request(
                    request.method,
                    request.url,
                    params=list(request.params) or None,
                    headers=self.build_headers(request.headers),
                    content=content,
                ),
                timeout=request.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            failure = TimeoutFailure(request.timeout)
            log_failure(logger, failure, context, level=logging.DEBUG)
            raise failure from exc
        except httpx.HTTPError as exc:
            failure = TransportFailure(f"Network request failed: {exc}", cause=exc)
            log_failure(logger, failure, context, level=logging.DEBUG)
            raise failure from exc

        log_event(
            logger,
            logging.DEBUG,
            "HTTP response received",
            method=request.method,
            path=request.path,
            status=response.status_code,
            reason=response.reason_phrase,
        )
        return self.parse_response(response, context)

    def parse_response(self, response: httpx.Response, context: str = "") -> Any:
        """Decode a completed exchange or raise its ResponseFailure."""
        if response.status_code >= 400:
            failure = ResponseFailure.from_response(
                response.status_code,
                response.reason_phrase,
                _decode_error_body(response),
            )
            log_failure(logger, failure, context, level=logging.DEBUG)
            raise failure

        content_type = response.headers.get("content-type", "")
        if response.status_code == 204 or JSON_CONTENT_TYPE not in content_type:
            return None

        try:
            return response.json()
        except ValueError as exc:
            log_event(
                logger,
                logging.WARNING,
                "Failed to parse JSON response",
                context=context,
                status=response.status_code,
                content_type=content_type,
                error=str(exc),
            )
            return None
