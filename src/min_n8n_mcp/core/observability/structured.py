"""Structured logging helpers.

Log records carry their structured fields under the ``event`` attribute
(``extra={"event": {...}}``), the same way audit records carry theirs.
:class:`StructuredFormatter` renders them as one JSON object per line.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from min_n8n_mcp.core.observability.redaction import redact_sensitive_data

EVENT_ATTR = "event"


def log_event(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """Emit *message* with redacted structured *fields* attached."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={EVENT_ATTR: redact_sensitive_data(fields)})


def event_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the structured fields attached to *record* (empty if none)."""
    fields = getattr(record, EVENT_ATTR, None)
    return dict(fields) if isinstance(fields, dict) else {}


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": redact_sensitive_data(record.getMessage()),
        }
        for key, value in event_fields(record).items():
            payload.setdefault(key, value)
        if record.exc_info:
            payload["exc_info"] = redact_sensitive_data(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable formatter that appends structured fields as key=value."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = redact_sensitive_data(super().format(record))
        fields = event_fields(record)
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line
