"""Pytest configuration and fixtures for integration tests.

Integration tests run the real APIWrapper, pagination, runner, writer and
reconciler against an in-memory HTTP session that answers like the Notion
API. No network access is needed.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

from notion_mirror.notion_api.api_wrapper import APIWrapper
from notion_mirror.notion_api.auth import Credentials
from tests.fixtures.sample_objects import list_response

BASE_URL = "https://api.notion.com/v1"


class FakeNotionSession:
    """requests.Session stand-in serving search results and block children.

    Lists are split into pages of ``page_size`` items so that cursor
    handling is exercised on every endpoint.
    """

    def __init__(self, page_size: int = 2):
        self.objects: List[Dict[str, Any]] = []
        self.children: Dict[str, List[Dict[str, Any]]] = {}
        self.status_overrides: Dict[str, int] = {}
        self.page_size = page_size
        self.requests: List[Dict[str, Any]] = []
        self.headers: Dict[str, str] = {}

    def request(self, method, url, params=None, json=None, timeout=None):
        self.requests.append({"method": method, "url": url, "params": params, "json": json})
        path = url[len(BASE_URL):]

        if path in self.status_overrides:
            return _response(self.status_overrides[path], {"message": "forced failure"}, url)

        if method == "POST" and path == "/search":
            cursor = (json or {}).get("start_cursor")
            return _response(200, self._page(self.objects, cursor), url)

        if method == "GET" and path.startswith("/blocks/") and path.endswith("/children"):
            block_id = path[len("/blocks/"):-len("/children")]
            if block_id not in self.children:
                return _response(404, {"message": "not found"}, url)
            cursor = (params or {}).get("start_cursor")
            return _response(200, self._page(self.children[block_id], cursor), url)

        return _response(400, {"message": f"unsupported {method} {path}"}, url)

    def close(self):
        pass

    def _page(self, items: List[Dict[str, Any]], cursor: Optional[str]) -> Dict[str, Any]:
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        next_cursor = str(end) if end < len(items) else None
        return list_response(items[start:end], next_cursor)


def _response(status_code: int, payload: Dict[str, Any], url: str) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.url = url
    response.headers = {}
    response.json.return_value = payload
    response.text = ""
    return response


@pytest.fixture
def notion_session() -> FakeNotionSession:
    return FakeNotionSession()


@pytest.fixture
def api_wrapper(notion_session) -> APIWrapper:
    """APIWrapper wired to the in-memory session."""
    return APIWrapper(Credentials("default", "secret_integration_token"), session=notion_session)
