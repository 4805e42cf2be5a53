"""Cursor-based pagination over n8n collection endpoints.

``PaginationHelper.fetch_all`` either returns a single page (the default,
leaving the caller to follow ``next_cursor``) or keeps requesting pages and
merges them in server order until the collection is exhausted or a page/item
ceiling is reached.

Pages are fetched strictly one after another: the cursor for page N+1 is only
known once page N has resolved. Each ``fetch_all`` call owns its own state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from min_n8n_mcp.core.observability import log_event

if TYPE_CHECKING:
    from min_n8n_mcp.core.http.client import HttpClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_MAX_PAGES = 10
DEFAULT_MAX_ITEMS = 1000


@dataclass
class PaginationOptions:
    """Options for one ``fetch_all`` call.

    Attributes:
        limit: Page size requested from the server.
        cursor: Cursor to start from (``None`` = first page).
        auto_paginate: Follow cursors until exhausted or capped.
        max_pages: Stop after this many non-empty pages.
        max_items: Stop once this many items are merged (result truncated).
        query_params: Extra query parameters sent with every page.
    """

    limit: int = DEFAULT_PAGE_SIZE
    cursor: Optional[str] = None
    auto_paginate: bool = False
    max_pages: int = DEFAULT_MAX_PAGES
    max_items: int = DEFAULT_MAX_ITEMS
    query_params: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Reject ceilings that would stop iteration before the first page."""
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {self.max_pages}")
        if self.max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {self.max_items}")


@dataclass(frozen=True)
class Page:
    """One normalised page of a collection."""

    items: List[Any]
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


@dataclass(frozen=True)
class PaginatedResult:
    """Terminal value of ``fetch_all``.

    ``next_cursor`` is set whenever more data may exist on the server,
    including when iteration stopped at ``max_pages`` or ``max_items``.
    """

    items: List[Any]
    next_cursor: Optional[str]
    items_fetched: int
    pages_fetched: int

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


@dataclass
class _PaginationState:
    items: List[Any] = field(default_factory=list)
    cursor: Optional[str] = None
    pages_fetched: int = 0
    items_fetched: int = 0


def _cursor_value(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def normalize_page(response: Any, path: str = "") -> Page:
    """Normalise a page response into a :class:`Page`.

    - a bare list is one exhausted page
    - an object with a ``data`` list carries ``nextCursor`` (or ``cursor``)
    - anything else is an empty page, with a warning
    """
    if isinstance(response, list):
        return Page(items=list(response))

    if isinstance(response, dict) and isinstance(response.get("data"), list):
        cursor = _cursor_value(response.get("nextCursor")) or _cursor_value(response.get("cursor"))
        return Page(items=list(response["data"]), next_cursor=cursor)

    log_event(
        logger,
        logging.WARNING,
        "Unexpected pagination response format",
        path=path,
        response_type=type(response).__name__,
        has_data=isinstance(response, dict) and "data" in response,
    )
    return Page(items=[])


class PaginationHelper:
    """Accumulates pages from one collection endpoint through an HttpClient."""

    def __init__(self, http_client: "HttpClient") -> None:
        self.http_client = http_client

    async def fetch_page(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Page:
        """Fetch and normalise one page.

        Raises:
            ApiError: Failures from the client propagate unchanged.
        """
        try:
            response = await self.http_client.get(path, dict(params or {}))
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "Failed to fetch page",
                path=path,
                params=dict(params or {}),
                error=str(exc),
            )
            raise
        return normalize_page(response, path)

    async def fetch_all(
        self,
        path: str,
        options: Optional[PaginationOptions] = None,
        **overrides: Any,
    ) -> PaginatedResult:
        """Fetch one page, or every page up to the configured ceilings.

        Args:
            path: Collection path, e.g. ``"/workflows"``.
            options: Pagination options (defaults apply when omitted).
            **overrides: Individual ``PaginationOptions`` fields.

        Returns:
            A PaginatedResult with items in server order.

        Raises:
            ValueError: If ``max_pages`` or ``max_items`` is less than 1.
        """
        opts = options or PaginationOptions()
        if overrides:
            opts = replace(opts, **overrides)
        opts.validate()

        state = _PaginationState(cursor=_cursor_value(opts.cursor))
        log_event(
            logger,
            logging.DEBUG,
            "Starting pagination fetch",
            path=path,
            auto_paginate=opts.auto_paginate,
            limit=opts.limit,
            max_pages=opts.max_pages,
            max_items=opts.max_items,
        )

        while True:
            params: Dict[str, Any] = {**opts.query_params, "limit": opts.limit}
            if state.cursor:
                params["cursor"] = state.cursor

            page = await self.fetch_page(path, params)
            if not page.items:
                state.cursor = page.next_cursor
                log_event(
                    logger,
                    logging.DEBUG,
                    "No more data to fetch",
                    pages_fetched=state.pages_fetched,
                    items_fetched=state.items_fetched,
                )
                break

            state.items.extend(page.items)
            state.items_fetched += len(page.items)
            state.pages_fetched += 1
            state.cursor = page.next_cursor
            log_event(
                logger,
                logging.DEBUG,
                "Fetched page",
                pages_fetched=state.pages_fetched,
                items_fetched=state.items_fetched,
                page_size=len(page.items),
                has_more=page.has_more,
            )

            if not opts.auto_paginate:
                break

            if state.cursor is None:
                log_event(
                    logger,
                    logging.DEBUG,
                    "Reached end of data",
                    pages_fetched=state.pages_fetched,
                    items_fetched=state.items_fetched,
                )
                break

            if state.items_fetched >= opts.max_items:
                log_event(
                    logger,
                    logging.DEBUG,
                    "Reached maximum items limit",
                    items_fetched=state.items_fetched,
                    max_items=opts.max_items,
                )
                break

            if state.pages_fetched >= opts.max_pages:
                log_event(
                    logger,
                    logging.WARNING,
                    "Reached maximum pages limit, result truncated",
                    path=path,
                    pages_fetched=state.pages_fetched,
                    max_pages=opts.max_pages,
                )
                break

        items = state.items
        if opts.auto_paginate and len(items) > opts.max_items:
            items = items[: opts.max_items]

        return PaginatedResult(
            items=items,
            next_cursor=state.cursor,
            items_fetched=len(items),
            pages_fetched=state.pages_fetched,
        )


def create_pagination_params(options: Optional[PaginationOptions] = None) -> Dict[str, Any]:
    """Query parameters for a single page request (``limit``/``cursor`` only)."""
    params: Dict[str, Any] = {}
    if options is None:
        return params
    if options.limit is not None:
        params["limit"] = options.limit
    if options.cursor is not None:
        params["cursor"] = options.cursor
    return params


def extract_pagination_from_query(query: Optional[Mapping[str, Any]] = None) -> PaginationOptions:
    """Build options from loosely-typed tool arguments (``limit``, ``cursor``, ``autoPaginate``)."""
    query = query or {}
    options = PaginationOptions(auto_paginate=bool(query.get("autoPaginate", False)))
    if query.get("limit") is not None:
        options.limit = int(query["limit"])
    if query.get("cursor") is not None:
        options.cursor = str(query["cursor"])
    return options
