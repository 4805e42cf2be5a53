"""
Observability utilities for min-n8n-mcp.

Provides structured logging and secret redaction for the HTTP layer. Every
structured field goes through redaction before it is attached to a record,
so credentials and password/secret/token-named fields never reach a handler.

    import logging
    from min_n8n_mcp.core.observability import log_event

    logger = logging.getLogger(__name__)
    log_event(logger, logging.DEBUG, "Making HTTP request", method="GET", path="/workflows")
"""

from min_n8n_mcp.core.observability.structured import (
    PlainFormatter,
    StructuredFormatter,
    event_fields,
    log_event,
)
from min_n8n_mcp.core.observability.redaction import (
    SENSITIVE_KEYS,
    SENSITIVE_PATTERNS,
    is_sensitive_key,
    redact_headers,
    redact_sensitive_data,
)

__all__ = [
    # Logging
    "log_event",
    "event_fields",
    "StructuredFormatter",
    "PlainFormatter",
    # Redaction
    "SENSITIVE_KEYS",
    "SENSITIVE_PATTERNS",
    "is_sensitive_key",
    "redact_headers",
    "redact_sensitive_data",
]
