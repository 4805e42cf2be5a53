"""
Response envelopes for tool handlers built on the HTTP layer.

Tool handlers return ``success_response(...)`` / ``error_response(...)``
so callers receive one consistent shape. Classification is never re-derived
here: the failure already carries its status, code and external error kind.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from min_n8n_mcp.core.errors import ApiError, ExternalErrorKind, ResponseFailure
from min_n8n_mcp.core.pagination import PaginatedResult

# Keys stripped from user records before they are returned to a caller
_USER_SECRET_FIELDS = frozenset({"password", "apiKey", "token", "secret"})


@dataclass
class ToolResponse:
    """
    Standard response structure for tool operations.

    Attributes:
        success: Whether the operation completed successfully
        data: The payload on success
        error: ``{type, message, code?, details?}`` on failure
    """

    success: bool
    data: Any = None
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        if result["data"] is None:
            result.pop("data")
        if result["error"] is None:
            result.pop("error")
        return result


def success_response(data: Any) -> ToolResponse:
    return ToolResponse(success=True, data=data)


def error_response(exc: BaseException) -> ToolResponse:
    """Convert an exception into a failed ToolResponse."""
    if isinstance(exc, ResponseFailure):
        details: Dict[str, Any] = {"status": exc.status}
        if isinstance(exc.raw_body, dict):
            details.update(exc.raw_body)
        error: Dict[str, Any] = {
            "type": exc.error_kind.value,
            "message": exc.message,
            "details": details,
        }
        if exc.code is not None:
            error["code"] = exc.code
        return ToolResponse(success=False, error=error)

    if isinstance(exc, ApiError):
        return ToolResponse(
            success=False,
            error={"type": exc.error_kind.value, "message": str(exc)},
        )

    return ToolResponse(
        success=False,
        error={"type": ExternalErrorKind.UNKNOWN.value, "message": str(exc)},
    )


def pagination_response(result: PaginatedResult) -> Dict[str, Any]:
    """Render a PaginatedResult for a caller, exposing truncation via ``hasMore``."""
    return {
        "data": result.items,
        "pagination": {
            "itemsFetched": result.items_fetched,
            "pagesFetched": result.pages_fetched,
            "hasMore": result.has_more,
            "nextCursor": result.next_cursor,
        },
    }


def sanitize_user_data(user: Any) -> Any:
    """Drop secret-bearing fields from a user record; non-dicts pass through."""
    if not isinstance(user, dict):
        return user
    return {key: value for key, value in user.items() if key not in _USER_SECRET_FIELDS}
