"""Tests for structured logging and secret redaction."""

import json
import logging

from min_n8n_mcp.core.errors import ResponseFailure, log_failure
from min_n8n_mcp.core.observability import (
    PlainFormatter,
    StructuredFormatter,
    event_fields,
    is_sensitive_key,
    log_event,
    redact_headers,
    redact_sensitive_data,
)


def _record(message="Making HTTP request", **fields):
    record = logging.LogRecord("min_n8n_mcp.core.http", logging.DEBUG, __file__, 1, message, None, None)
    record.event = fields
    return record


class TestRedaction:
    """Tests for redact_sensitive_data / redact_headers."""

    def test_sensitive_keys(self):
        for key in ("password", "api_token", "X-N8N-API-KEY", "Authorization", "credentials", "refreshToken"):
            assert is_sensitive_key(key), key
        for key in ("path", "method", "status", "cursor"):
            assert not is_sensitive_key(key), key

    def test_mapping_values_redacted_by_key(self):
        redacted = redact_sensitive_data({"api_token": "abc", "path": "/workflows"})
        assert redacted == {"api_token": "[REDACTED:API_TOKEN]", "path": "/workflows"}

    def test_nested_structures(self):
        data = {"outer": [{"password": "hunter22"}, ("keep", {"x-n8n-api-key": "k"})]}
        redacted = redact_sensitive_data(data)
        assert redacted["outer"][0] == {"password": "[REDACTED:PASSWORD]"}
        assert redacted["outer"][1][0] == "keep"
        assert redacted["outer"][1][1] == {"x-n8n-api-key": "[REDACTED:X_N8N_API_KEY]"}

    def test_strings_scanned_for_patterns(self):
        text = "Authorization: Bearer abc.def.ghi and password=supersecret"
        redacted = redact_sensitive_data(text)
        assert "abc.def.ghi" not in redacted
        assert "supersecret" not in redacted
        assert "[REDACTED:BEARER_TOKEN]" in redacted

    def test_non_string_scalars_untouched(self):
        assert redact_sensitive_data(42) == 42
        assert redact_sensitive_data(None) is None

    def test_max_depth(self):
        assert redact_sensitive_data({"a": 1}, max_depth=0) == "[MAX_DEPTH_EXCEEDED]"

    def test_redact_headers(self):
        headers = {"X-N8N-API-KEY": "k", "Content-Type": "application/json", "authorization": "Bearer x"}
        assert redact_headers(headers) == {
            "X-N8N-API-KEY": "****",
            "Content-Type": "application/json",
            "authorization": "****",
        }


class TestLogEvent:
    def test_fields_attached_and_redacted(self, caplog):
        logger = logging.getLogger("min_n8n_mcp.tests.observability")

        with caplog.at_level(logging.DEBUG, logger="min_n8n_mcp.tests.observability"):
            log_event(logger, logging.INFO, "Fetched page", pages_fetched=2, api_token="tok")

        record = caplog.records[-1]
        assert record.getMessage() == "Fetched page"
        assert event_fields(record) == {"pages_fetched": 2, "api_token": "[REDACTED:API_TOKEN]"}

    def test_disabled_level_emits_nothing(self, caplog):
        logger = logging.getLogger("min_n8n_mcp.tests.observability")

        with caplog.at_level(logging.WARNING, logger="min_n8n_mcp.tests.observability"):
            log_event(logger, logging.DEBUG, "Rate limiter idle")

        assert caplog.records == []

    def test_event_fields_without_event(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert event_fields(record) == {}


class TestFormatters:
    def test_structured_formatter_renders_json(self):
        line = StructuredFormatter().format(_record(method="GET", path="/api/v1/workflows"))
        payload = json.loads(line)

        assert payload["level"] == "debug"
        assert payload["logger"] == "min_n8n_mcp.core.http"
        assert payload["message"] == "Making HTTP request"
        assert payload["method"] == "GET"
        assert payload["path"] == "/api/v1/workflows"
        assert "timestamp" in payload

    def test_structured_formatter_redacts_message(self):
        line = StructuredFormatter().format(_record("sent Bearer abcdefgh"))
        assert "abcdefgh" not in json.loads(line)["message"]

    def test_plain_formatter_appends_fields(self):
        line = PlainFormatter().format(_record(status=200))
        assert "Making HTTP request" in line
        assert line.endswith("status=200")

    def test_plain_formatter_redacts_message(self):
        line = PlainFormatter().format(_record("sent Bearer abcdefgh"))
        assert "abcdefgh" not in line
        assert "[REDACTED:BEARER_TOKEN]" in line

    def test_structured_formatter_keeps_failure_fields(self, caplog):
        logger = logging.getLogger("min_n8n_mcp.tests.observability")

        with caplog.at_level(logging.ERROR, logger="min_n8n_mcp.tests.observability"):
            log_failure(logger, ResponseFailure(503, "Service Unavailable"), "GET /workflows", attempt=1)

        payload = json.loads(StructuredFormatter().format(caplog.records[-1]))
        assert payload["message"] == "HTTP error"
        assert payload["error_message"] == "Service Unavailable"
        assert payload["error_type"] == "ResponseFailure"
        assert payload["error_kind"] == "Unavailable"
        assert payload["status"] == 503
        assert payload["retryable"] is True
        assert payload["context"] == "GET /workflows"
        assert payload["attempt"] == 1
