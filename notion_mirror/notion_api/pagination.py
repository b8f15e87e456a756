"""Cursor pagination for Notion list endpoints.

Every Notion list endpoint answers ``{"results": [...], "next_cursor": ...}``.
This module follows ``next_cursor`` until the server stops returning one and
yields the concatenated results lazily, in server order.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from .errors import APIAccessError

if TYPE_CHECKING:
    from .api_wrapper import APIWrapper

logger = logging.getLogger(__name__)

CURSOR_FIELD = "start_cursor"


@dataclass(frozen=True)
class PageRequest:
    """Descriptor of a paginated request.

    For GET requests the cursor travels as the ``start_cursor`` query
    parameter; for POST requests it is added to the JSON body.

    Attributes:
        method: HTTP method ("GET" or "POST")
        path: Path relative to the API base URL
        params: Query parameters sent with every page
        body: JSON body sent with every page (POST only)
    """
    method: str
    path: str
    params: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None

    def for_cursor(self, cursor: Optional[str]) -> Dict[str, Any]:
        """Build the keyword arguments of ``APIWrapper.request_json`` for one page."""
        params = dict(self.params)
        body = dict(self.body) if self.body is not None else None

        if cursor:
            if self.method.upper() == "GET":
                params[CURSOR_FIELD] = cursor
            else:
                body = body or {}
                body[CURSOR_FIELD] = cursor

        return {
            "method": self.method,
            "path": self.path,
            "params": params or None,
            "json_body": body,
        }


def fetch_all(api: "APIWrapper", request: PageRequest) -> Iterator[Dict[str, Any]]:
    """Yield every item of a paginated endpoint, following cursors.

    The sequence is lazy and restartable per call: calling ``fetch_all``
    again starts from the first page. A failing page (after retries) aborts
    the remaining pages of this call.

    Args:
        api: Wrapper used to issue each page request
        request: Descriptor of the paginated request

    Yields:
        Result items in server-returned order

    Raises:
        APIAccessError: If the server repeats a cursor (pagination loop)
        NotionError: Any error raised by ``api.request_json``
    """
    cursor: Optional[str] = None
    seen_cursors = set()
    page_number = 0

    while True:
        page_number += 1
        response = api.request_json(**request.for_cursor(cursor))

        results = response.get("results")
        if not isinstance(results, list):
            logger.debug(f"{request.path}: page {page_number} has no results array")
            results = []

        logger.debug(f"{request.path}: page {page_number} returned {len(results)} item(s)")
        yield from results

        next_cursor = response.get("next_cursor")
        if not next_cursor:
            return

        if next_cursor in seen_cursors:
            raise APIAccessError(
                f"Pagination loop detected on {request.path}: cursor {next_cursor} repeated"
            )
        seen_cursors.add(next_cursor)
        cursor = next_cursor
