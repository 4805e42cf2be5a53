"""Parsing and normalization helpers for configuration values.

Provides boolean, integer and millisecond parsing, log level and URL
normalization used by the loader.
"""

from typing import Any, Optional

API_PATH = "/api/v1"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}
_LOG_LEVEL_ALIASES = {"WARN": "WARNING"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _try_parse_int(value: Any) -> Optional[int]:
    """Parse an integer from env/TOML input; ``None`` if malformed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip(), 10)
    except ValueError:
        return None


def _ms_to_seconds(value: int) -> float:
    return value / 1000.0


def _normalize_log_level(value: str) -> str:
    level = value.strip().upper()
    return _LOG_LEVEL_ALIASES.get(level, level)


def _normalize_api_url(url: str) -> str:
    """Append ``/api/v1`` to a bare server root.

    - "http://localhost:5678"          -> "http://localhost:5678/api/v1"
    - "http://localhost:5678/"         -> "http://localhost:5678/api/v1"
    - "https://n8n.example.com/api/v1" -> unchanged
    """
    url = url.strip()
    if not url or API_PATH in url:
        return url
    return f"{url.rstrip('/')}{API_PATH}"
