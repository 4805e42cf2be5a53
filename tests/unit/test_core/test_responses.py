"""Tests for tool response envelopes."""

from min_n8n_mcp.core.errors import (
    QueueOverflowError,
    ResponseFailure,
    TimeoutFailure,
)
from min_n8n_mcp.core.pagination import PaginatedResult
from min_n8n_mcp.core.responses import (
    ToolResponse,
    error_response,
    pagination_response,
    sanitize_user_data,
    success_response,
)


class TestSuccessResponse:
    def test_wraps_data(self):
        response = success_response({"id": "wf1"})
        assert response == ToolResponse(success=True, data={"id": "wf1"})
        assert response.to_dict() == {"success": True, "data": {"id": "wf1"}}


class TestErrorResponse:
    """Tests for error_response classification passthrough."""

    def test_response_failure_carries_status_code_and_body(self):
        failure = ResponseFailure.from_response(
            404, "Not Found", {"message": "Workflow not found", "code": "WF_404", "hint": "check id"}
        )

        response = error_response(failure)

        assert response.success is False
        assert response.error == {
            "type": "NotFound",
            "message": "Workflow not found",
            "code": "WF_404",
            "details": {"status": 404, "message": "Workflow not found", "code": "WF_404", "hint": "check id"},
        }

    def test_response_failure_without_code(self):
        response = error_response(ResponseFailure(503, "Service Unavailable", raw_body="down"))
        assert response.error["type"] == "Unavailable"
        assert "code" not in response.error
        assert response.error["details"] == {"status": 503}

    def test_other_api_errors_use_their_kind(self):
        assert error_response(TimeoutFailure(1.0)).error == {
            "type": "Unavailable",
            "message": "Request timeout after 1000ms",
        }
        overflow = QueueOverflowError("queue full", reason="rejected", max_queue_depth=1)
        assert error_response(overflow).error["type"] == "ResourceExhausted"

    def test_unexpected_exception_is_unknown(self):
        response = error_response(RuntimeError("kaboom"))
        assert response.to_dict() == {
            "success": False,
            "error": {"type": "Unknown", "message": "kaboom"},
        }


class TestPaginationResponse:
    def test_exposes_truncation(self):
        result = PaginatedResult(items=[1, 2, 3], next_cursor="c2", items_fetched=3, pages_fetched=2)

        assert pagination_response(result) == {
            "data": [1, 2, 3],
            "pagination": {"itemsFetched": 3, "pagesFetched": 2, "hasMore": True, "nextCursor": "c2"},
        }

    def test_exhausted(self):
        result = PaginatedResult(items=[], next_cursor=None, items_fetched=0, pages_fetched=0)
        assert pagination_response(result)["pagination"]["hasMore"] is False


class TestSanitizeUserData:
    def test_drops_secret_fields(self):
        user = {"id": "u1", "email": "a@example.com", "password": "p", "apiKey": "k", "token": "t", "secret": "s"}
        assert sanitize_user_data(user) == {"id": "u1", "email": "a@example.com"}

    def test_non_dict_passes_through(self):
        assert sanitize_user_data(None) is None
        assert sanitize_user_data(["a"]) == ["a"]
