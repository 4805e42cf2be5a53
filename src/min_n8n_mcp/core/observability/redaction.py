"""Sensitive data redaction utilities.

Provides key- and pattern-based redaction for API keys, bearer tokens and
passwords. Every structured log field emitted by the HTTP layer passes
through :func:`redact_sensitive_data` before it reaches a handler.
"""

import re
from typing import Any, Dict, Final, FrozenSet, List, Mapping, Optional, Tuple

SENSITIVE_PATTERNS: Final[List[Tuple[str, str]]] = [
    (r"(?i)(api[_-]?key|apikey)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-\.]{8,})['\"]?", "API_KEY"),
    (r"(?i)(x-n8n-api-key)\s*[:=]\s*['\"]?([^\s'\"]{4,})['\"]?", "API_KEY"),
    (
        r"(?i)(access[_-]?token|refresh[_-]?token)\s*[:=]\s*['\"]?([a-zA-Z0-9_\-\.]{8,})['\"]?",
        "ACCESS_TOKEN",
    ),
    (r"(?i)bearer\s+([a-zA-Z0-9_\-\.=]+)", "BEARER_TOKEN"),
    (r"(?i)(password|passwd|pwd)\s*[:=]\s*['\"]?([^\s'\"]{4,})['\"]?", "PASSWORD"),
    (r"(?i)(secret)\s*[:=]\s*['\"]?([^\s'\"]{4,})['\"]?", "SECRET"),
    (r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----", "PRIVATE_KEY"),
]
"""Patterns for detecting secrets inside free-form strings.

Each tuple holds the regex and the label used in the redaction marker.
"""

# Exact key names (normalised to lower_snake) whose values are always dropped
SENSITIVE_KEYS: Final[FrozenSet[str]] = frozenset(
    {
        "password",
        "passwd",
        "pwd",
        "secret",
        "token",
        "api_key",
        "apikey",
        "api_token",
        "access_token",
        "refresh_token",
        "private_key",
        "secret_key",
        "auth",
        "authorization",
        "proxy_authorization",
        "cookie",
        "set_cookie",
        "x_n8n_api_key",
        "credential",
        "credentials",
    }
)

# Any key containing one of these fragments is treated as secret-bearing
_SENSITIVE_KEY_FRAGMENTS: Final[Tuple[str, ...]] = ("password", "secret", "token")

_SENSITIVE_HEADERS: Final[FrozenSet[str]] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "x-n8n-api-key",
        "x-api-key",
        "api-key",
        "apikey",
        "cookie",
        "set-cookie",
    }
)


def _normalise_key(key: Any) -> str:
    return str(key).lower().replace("-", "_")


def is_sensitive_key(key: Any) -> bool:
    """Return True when a mapping key names a secret-bearing field."""
    normalised = _normalise_key(key)
    if normalised in SENSITIVE_KEYS:
        return True
    return any(fragment in normalised for fragment in _SENSITIVE_KEY_FRAGMENTS)


def redact_sensitive_data(
    data: Any,
    *,
    patterns: Optional[List[Tuple[str, str]]] = None,
    redaction_format: str = "[REDACTED:{label}]",
    max_depth: int = 10,
) -> Any:
    """Recursively redact sensitive data from strings, dicts, and lists.

    Args:
        data: The data to redact (string, mapping, list, or nested structure)
        patterns: Custom patterns to use (default: SENSITIVE_PATTERNS)
        redaction_format: Format string for redaction markers (uses {label})
        max_depth: Maximum recursion depth

    Returns:
        A copy of the data with sensitive values redacted

    Example:
        >>> redact_sensitive_data({"api_token": "abc", "path": "/workflows"})
        {'api_token': '[REDACTED:API_TOKEN]', 'path': '/workflows'}
    """
    if max_depth <= 0:
        return "[MAX_DEPTH_EXCEEDED]"

    check_patterns = patterns if patterns is not None else SENSITIVE_PATTERNS

    if isinstance(data, str):
        result = data
        for pattern, label in check_patterns:
            result = re.sub(pattern, redaction_format.format(label=label), result)
        return result

    if isinstance(data, Mapping):
        redacted: Dict[Any, Any] = {}
        for key, value in data.items():
            if is_sensitive_key(key):
                redacted[key] = redaction_format.format(label=_normalise_key(key).upper())
            else:
                redacted[key] = redact_sensitive_data(
                    value,
                    patterns=check_patterns,
                    redaction_format=redaction_format,
                    max_depth=max_depth - 1,
                )
        return redacted

    if isinstance(data, (list, tuple)):
        items = [
            redact_sensitive_data(
                item,
                patterns=check_patterns,
                redaction_format=redaction_format,
                max_depth=max_depth - 1,
            )
            for item in data
        ]
        return tuple(items) if isinstance(data, tuple) else items

    return data


def redact_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Return a copy of *headers* with sensitive values replaced by ``"****"``.

    Args:
        headers: HTTP header mapping (case-insensitive keys).
    """
    result: Dict[str, str] = {}
    for key, value in headers.items():
        result[key] = "****" if key.lower() in _SENSITIVE_HEADERS else value
    return result
