"""Configuration package for min-n8n-mcp.

Sub-modules:
    parsing    – Boolean/integer/URL parsing helpers
    loader     – ServerConfig loading/validation mixin, ConfigError
    server     – ServerConfig dataclass, get_config/set_config globals
"""

from min_n8n_mcp.config.loader import ConfigError  # noqa: F401
from min_n8n_mcp.config.parsing import (  # noqa: F401
    _normalize_api_url,
    _try_parse_bool,
    _try_parse_int,
)
from min_n8n_mcp.config.server import (  # noqa: F401
    ServerConfig,
    get_config,
    set_config,
)
