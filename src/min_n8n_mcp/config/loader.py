"""ServerConfig loading and validation logic.

Provides ``_ServerConfigLoader``, a mixin class whose methods are inherited by
``ServerConfig`` (defined in ``server.py``), and ``ConfigError``.

Problems found while loading (malformed numbers, unreadable files, unknown
override keys) are collected rather than dropped, and reported together with
the validation failures when loading finishes.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, cast
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from min_n8n_mcp.config.server import ServerConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from min_n8n_mcp.config.parsing import (
    _VALID_LOG_LEVELS,
    _ms_to_seconds,
    _normalize_api_url,
    _normalize_log_level,
    _try_parse_bool,
    _try_parse_int,
)
from min_n8n_mcp.core.http.models import OverflowPolicy

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "MIN_N8N_MCP_CONFIG_FILE"
CONFIG_DIR_NAME = "min-n8n-mcp"
PROJECT_CONFIG_NAME = "min-n8n-mcp.toml"
USER_CONFIG_NAME = ".min-n8n-mcp.toml"

# Where each setting comes from, shown next to a validation failure
_HINTS: Dict[str, str] = {
    "n8n_api_url": (
        "Set via: N8N_API_URL environment variable or [n8n].api_url\n"
        '   Example: export N8N_API_URL="http://localhost:5678"'
    ),
    "n8n_api_token": (
        "Set via: N8N_API_TOKEN environment variable or [n8n].api_token\n"
        '   Example: export N8N_API_TOKEN="your-api-token-here"\n'
        "   Get your token from: n8n Settings > API"
    ),
    "log_level": "Set via: LOG_LEVEL environment variable or [logging].level",
    "structured_logging": "Set via: MIN_N8N_MCP_STRUCTURED_LOGGING environment variable or [logging].structured",
    "http_timeout": "Set via: HTTP_TIMEOUT_MS environment variable or [http].timeout_ms",
    "http_retries": "Set via: HTTP_RETRIES environment variable or [http].retries",
    "concurrency": "Set via: CONCURRENCY environment variable or [http].concurrency",
    "rate_limit_min_interval": "Set via: RATE_LIMIT_MIN_INTERVAL_MS environment variable or [rate_limit].min_interval_ms",
    "rate_limit_max_queue": "Set via: RATE_LIMIT_MAX_QUEUE environment variable or [rate_limit].max_queue",
    "rate_limit_overflow": "Set via: RATE_LIMIT_OVERFLOW environment variable or [rate_limit].overflow",
}


class ConfigError(ValueError):
    """Configuration could not be loaded; ``problems`` lists every issue."""

    def __init__(self, problems: List[str]) -> None:
        self.problems = list(problems)
        rule = "-" * 60
        body = "\n\n".join(self.problems)
        super().__init__(f"\n{rule}\nConfiguration validation failed:\n\n{body}\n{rule}\n")


def _problem(name: str, message: str) -> str:
    hint = _HINTS.get(name)
    text = f"{name}: {message}"
    return f"{text}\n   {hint}" if hint else text


class _ServerConfigLoader:
    """Mixin providing config-loading methods for ``ServerConfig``.

    These methods are inherited by the ``ServerConfig`` dataclass defined in
    ``server.py``.  At runtime ``self`` is always a ``ServerConfig`` instance.
    """

    if TYPE_CHECKING:
        n8n_api_url: str
        n8n_api_token: str
        log_level: str
        structured_logging: bool
        http_timeout: float
        http_retries: int
        concurrency: int
        rate_limit_min_interval: float
        rate_limit_max_queue: int
        rate_limit_overflow: str
        server_name: str
        server_version: str
        load_problems: List[str]

    @classmethod
    def from_env(
        cls,
        config_file: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "ServerConfig":
        """
        Create configuration from TOML files, environment variables and overrides.

        Priority (highest to lowest):
        1. Explicit overrides (what a command line would pass)
        2. Environment variables
        3. Project TOML config (./min-n8n-mcp.toml) or the explicit config file
        4. User TOML config (~/.min-n8n-mcp.toml)
        5. XDG config (~/.config/min-n8n-mcp/config.toml)
        6. Default values

        Raises:
            ConfigError: One or more settings are missing or invalid.
        """
        config = cls()

        toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / CONFIG_DIR_NAME / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug(f"Loaded XDG config from {xdg_config}")

            home_config = Path.home() / USER_CONFIG_NAME
            if home_config.exists():
                config._load_toml(home_config)
                logger.debug(f"Loaded user config from {home_config}")

            project_config = Path(PROJECT_CONFIG_NAME)
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug(f"Loaded project config from {project_config}")

        config._load_env()
        if overrides:
            config._apply_overrides(overrides)

        config.n8n_api_url = _normalize_api_url(config.n8n_api_url)
        config.validate()

        return cast("ServerConfig", config)

    def _record_problem(self, name: str, message: str) -> None:
        problem = _problem(name, message)
        if problem not in self.load_problems:
            self.load_problems.append(problem)

    def _set_int(self, name: str, raw: Any, source: str, convert: Callable[[int], Any] = int) -> None:
        parsed = _try_parse_int(raw)
        if parsed is None:
            self._record_problem(name, f"expected an integer from {source}, got {raw!r}")
            return
        setattr(self, name, convert(parsed))

    def _set_bool(self, name: str, raw: Any, source: str) -> None:
        parsed = _try_parse_bool(raw)
        if parsed is None:
            self._record_problem(name, f"expected true/false from {source}, got {raw!r}")
            return
        setattr(self, name, parsed)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error(f"Error loading config file {path}: {e}")
            self.load_problems.append(f"config file {path}: {e}")
            return

        if "n8n" in data:
            n8n = data["n8n"]
            if "api_url" in n8n:
                self.n8n_api_url = str(n8n["api_url"])
            if "api_token" in n8n:
                self.n8n_api_token = str(n8n["api_token"])

        if "http" in data:
            http = data["http"]
            if "timeout_ms" in http:
                self._set_int("http_timeout", http["timeout_ms"], f"{path}: [http].timeout_ms", _ms_to_seconds)
            if "retries" in http:
                self._set_int("http_retries", http["retries"], f"{path}: [http].retries")
            if "concurrency" in http:
                self._set_int("concurrency", http["concurrency"], f"{path}: [http].concurrency")

        if "rate_limit" in data:
            rate = data["rate_limit"]
            if "min_interval_ms" in rate:
                self._set_int(
                    "rate_limit_min_interval",
                    rate["min_interval_ms"],
                    f"{path}: [rate_limit].min_interval_ms",
                    _ms_to_seconds,
                )
            if "max_queue" in rate:
                self._set_int("rate_limit_max_queue", rate["max_queue"], f"{path}: [rate_limit].max_queue")
            if "overflow" in rate:
                self.rate_limit_overflow = str(rate["overflow"]).strip().lower()

        if "logging" in data:
            log = data["logging"]
            if "level" in log:
                self.log_level = _normalize_log_level(str(log["level"]))
            if "structured" in log:
                self._set_bool("structured_logging", log["structured"], f"{path}: [logging].structured")

        if "server" in data:
            srv = data["server"]
            if "name" in srv:
                self.server_name = srv["name"]
            if "version" in srv:
                self.server_version = srv["version"]

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if url := os.environ.get("N8N_API_URL"):
            self.n8n_api_url = url

        if token := os.environ.get("N8N_API_TOKEN"):
            self.n8n_api_token = token

        if level := os.environ.get("LOG_LEVEL"):
            self.log_level = _normalize_log_level(level)

        if structured := os.environ.get("MIN_N8N_MCP_STRUCTURED_LOGGING"):
            self._set_bool("structured_logging", structured, "MIN_N8N_MCP_STRUCTURED_LOGGING")

        if timeout := os.environ.get("HTTP_TIMEOUT_MS"):
            self._set_int("http_timeout", timeout, "HTTP_TIMEOUT_MS", _ms_to_seconds)

        if retries := os.environ.get("HTTP_RETRIES"):
            self._set_int("http_retries", retries, "HTTP_RETRIES")

        if concurrency := os.environ.get("CONCURRENCY"):
            self._set_int("concurrency", concurrency, "CONCURRENCY")

        if interval := os.environ.get("RATE_LIMIT_MIN_INTERVAL_MS"):
            self._set_int("rate_limit_min_interval", interval, "RATE_LIMIT_MIN_INTERVAL_MS", _ms_to_seconds)

        if max_queue := os.environ.get("RATE_LIMIT_MAX_QUEUE"):
            self._set_int("rate_limit_max_queue", max_queue, "RATE_LIMIT_MAX_QUEUE")

        if overflow := os.environ.get("RATE_LIMIT_OVERFLOW"):
            self.rate_limit_overflow = overflow.strip().lower()

    def _apply_overrides(self, overrides: Mapping[str, Any]) -> None:
        """Apply explicit field overrides; ``None`` values leave a field unchanged."""
        for name, value in overrides.items():
            if value is None:
                continue
            if name not in _OVERRIDE_KINDS:
                self.load_problems.append(f"{name}: unknown configuration key")
                continue
            kind = _OVERRIDE_KINDS[name]
            if kind is bool:
                self._set_bool(name, value, "overrides")
            elif kind is int:
                self._set_int(name, value, "overrides")
            elif kind is float:
                try:
                    setattr(self, name, float(value))
                except (TypeError, ValueError):
                    self._record_problem(name, f"expected a number from overrides, got {value!r}")
            elif name == "log_level":
                self.log_level = _normalize_log_level(str(value))
            else:
                setattr(self, name, str(value))

    def validate(self) -> None:
        """Check every setting; raise one ConfigError listing all problems."""
        problems = list(self.load_problems)

        parts = urlsplit(self.n8n_api_url or "")
        if not self.n8n_api_url:
            problems.append(_problem("n8n_api_url", "n8n API URL is required"))
        elif parts.scheme not in ("http", "https") or not parts.netloc:
            problems.append(_problem("n8n_api_url", f"Invalid n8n API URL: {self.n8n_api_url!r}"))

        if not self.n8n_api_token:
            problems.append(_problem("n8n_api_token", "n8n API token is required"))

        if self.log_level not in _VALID_LOG_LEVELS:
            valid = ", ".join(sorted(_VALID_LOG_LEVELS))
            problems.append(_problem("log_level", f"must be one of {valid}, got {self.log_level!r}"))

        if self.http_timeout <= 0:
            problems.append(_problem("http_timeout", f"must be greater than 0, got {self.http_timeout}"))

        if self.http_retries < 0:
            problems.append(_problem("http_retries", f"must be 0 or more, got {self.http_retries}"))

        if self.concurrency < 1:
            problems.append(_problem("concurrency", f"must be at least 1, got {self.concurrency}"))

        if self.rate_limit_min_interval < 0:
            problems.append(
                _problem("rate_limit_min_interval", f"must be 0 or more, got {self.rate_limit_min_interval}")
            )

        if self.rate_limit_max_queue < 0:
            problems.append(_problem("rate_limit_max_queue", f"must be 0 or more, got {self.rate_limit_max_queue}"))

        valid_overflow = [policy.value for policy in OverflowPolicy]
        if self.rate_limit_overflow not in valid_overflow:
            problems.append(
                _problem(
                    "rate_limit_overflow",
                    f"must be one of {', '.join(valid_overflow)}, got {self.rate_limit_overflow!r}",
                )
            )

        if problems:
            raise ConfigError(problems)


_OVERRIDE_KINDS: Dict[str, type] = {
    "n8n_api_url": str,
    "n8n_api_token": str,
    "log_level": str,
    "structured_logging": bool,
    "http_timeout": float,
    "http_retries": int,
    "concurrency": int,
    "rate_limit_min_interval": float,
    "rate_limit_max_queue": int,
    "rate_limit_overflow": str,
    "server_name": str,
    "server_version": str,
}
