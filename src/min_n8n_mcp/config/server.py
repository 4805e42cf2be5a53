"""ServerConfig dataclass and global configuration state.

This module defines the ``ServerConfig`` class (field declarations and simple
accessor methods) and the global ``get_config`` / ``set_config`` helpers.
Loading and validation logic lives in the ``_ServerConfigLoader`` mixin
(``loader.py``) which ``ServerConfig`` inherits from.
"""

import logging
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from min_n8n_mcp.config.loader import _ServerConfigLoader
from min_n8n_mcp.core.http.models import OverflowPolicy, RateLimiterConfig, RetryPolicy
from min_n8n_mcp.core.observability import PlainFormatter, StructuredFormatter
from min_n8n_mcp.version import __version__

LOGGER_NAME = "min_n8n_mcp"


@dataclass
class ServerConfig(_ServerConfigLoader):
    """Server configuration with support for env vars and TOML overrides."""

    # n8n connection
    n8n_api_url: str = ""
    n8n_api_token: str = field(default="", repr=False)

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = True

    # HTTP behaviour (durations in seconds)
    http_timeout: float = 30.0
    http_retries: int = 2
    concurrency: int = 4

    # Rate limiting
    rate_limit_min_interval: float = 0.25
    rate_limit_max_queue: int = 50
    rate_limit_overflow: str = OverflowPolicy.REJECT_NEWEST.value

    # Server configuration
    server_name: str = "min-n8n-mcp"
    server_version: str = field(default_factory=lambda: __version__)

    load_problems: List[str] = field(default_factory=list, repr=False, compare=False)

    def retry_policy(self) -> RetryPolicy:
        """Default retry policy for clients built from this config."""
        return RetryPolicy(max_retries=self.http_retries)

    def rate_limiter_config(self) -> RateLimiterConfig:
        return RateLimiterConfig(
            max_concurrent=self.concurrency,
            min_interval=self.rate_limit_min_interval,
            max_queue_depth=self.rate_limit_max_queue,
            overflow_policy=OverflowPolicy(self.rate_limit_overflow),
        )

    def setup_logging(self) -> None:
        """Configure logging based on settings.

        Records go to stderr; stdout is reserved for the stdio transport.
        """
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            formatter: logging.Formatter = StructuredFormatter()
        else:
            formatter = PlainFormatter()

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)

        root_logger = logging.getLogger(LOGGER_NAME)
        root_logger.setLevel(level)
        root_logger.addHandler(handler)


# Global configuration instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: ServerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
