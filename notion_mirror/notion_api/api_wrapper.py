"""API wrapper for the Notion REST API.

This module wraps a requests Session configured for the Notion API and provides
error translation from HTTP responses to our typed exception hierarchy.
It integrates with the retry logic for transient failures and with the cursor
paginator for list endpoints.
"""

import logging
import re
import threading
from typing import Any, Dict, Iterator, Optional

import requests
from requests.exceptions import Timeout, ConnectionError, RequestException

from .auth import Credentials
from .errors import (
    InvalidCredentialsError,
    ObjectNotFoundError,
    APIUnreachableError,
    ServerError,
    RateLimitError,
    APIAccessError,
)
from .pagination import PageRequest, fetch_all
from .retry_logic import retry_on_transient_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_TIMEOUT = 30
PAGE_SIZE = 100

SEARCH_SORT = {"direction": "descending", "timestamp": "last_edited_time"}

# Notion ids are UUIDs, with or without dashes
OBJECT_ID_PATTERN = re.compile(r'^[A-Za-z0-9-]+$')


class APIWrapper:
    """Wrapper around a requests Session with Notion headers and error translation.

    This class provides a thin wrapper over the Notion HTTP API that:
    1. Injects the bearer token and Notion-Version headers
    2. Translates HTTP errors to typed exceptions
    3. Retries transient failures (network, 5xx, 429)
    4. Follows cursor pagination for list endpoints

    One wrapper is bound to one workspace token. The underlying session is
    shared read-only by every worker thread of a run.

    Example:
        >>> creds = Authenticator().get_workspace("default")
        >>> api = APIWrapper(creds)
        >>> for obj in api.search():
        ...     print(obj["id"])
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = DEFAULT_BASE_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the API wrapper with workspace credentials.

        Args:
            credentials: Workspace name and integration token
            base_url: API base URL
            notion_version: Value of the Notion-Version header
            timeout: Per-request timeout in seconds
            session: Optional pre-built session (mainly for tests)
        """
        self._credentials = credentials
        self._base_url = base_url.rstrip('/')
        self._notion_version = notion_version
        self._timeout = timeout
        self._session = session
        self._session_lock = threading.Lock()

    @property
    def workspace(self) -> str:
        return self._credentials.workspace

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session.

        The session is created lazily on first use so that constructing a
        wrapper never touches the network.
        """
        with self._session_lock:
            if self._session is None:
                session = requests.Session()
                session.headers.update({
                    "Authorization": f"Bearer {self._credentials.token}",
                    "Notion-Version": self._notion_version,
                    "Content-Type": "application/json",
                })
                self._session = session
        return self._session

    def close(self) -> None:
        """Close the underlying HTTP session, if one was created."""
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def _validate_object_id(self, object_id: str) -> None:
        """Validate that an object ID is safe to put in a URL path.

        Raises:
            ValueError: If object_id is empty or contains path characters
        """
        if not object_id or not str(object_id).strip():
            raise ValueError("object_id cannot be empty")

        if not OBJECT_ID_PATTERN.match(str(object_id).strip()):
            raise ValueError(
                f"Invalid object_id format: '{object_id}'. "
                f"Object IDs must contain only letters, digits and dashes."
            )

    def _sanitize_credentials(self, text: str) -> str:
        """Sanitize error messages to prevent token leakage.

        Example:
            >>> api._sanitize_credentials("Authorization: Bearer secret_abc123")
            'Authorization: ***REDACTED***'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        # Notion internal integration tokens
        sanitized = re.sub(
            r'\b(secret|ntn)_[A-Za-z0-9]{8,}\b',
            '***REDACTED***',
            sanitized
        )
        token = self._credentials.token
        if token:
            sanitized = sanitized.replace(token, '***REDACTED***')
        return sanitized

    def _translate_error(self, response: requests.Response, operation: str) -> Exception:
        """Translate an unsuccessful HTTP response to a typed Notion exception.

        Args:
            response: The non-2xx response
            operation: Description of the operation that failed (for logging)

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        status_code = response.status_code
        endpoint = response.url or operation

        if status_code == 401:
            return InvalidCredentialsError(
                workspace=self._credentials.workspace,
                endpoint=endpoint
            )

        if status_code == 404:
            object_id = "unknown"
            match = re.search(r'/blocks/([^/?]+)', operation)
            if match:
                object_id = match.group(1)
            return ObjectNotFoundError(object_id=object_id)

        if status_code == 429:
            return RateLimitError(
                endpoint=endpoint,
                retry_after=_parse_retry_after(response.headers.get('Retry-After'))
            )

        if status_code >= 500:
            return ServerError(status_code=status_code, endpoint=endpoint)

        # Remaining 4xx: permission denied, validation errors, ...
        detail = ""
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = body.get('message') or body.get('code') or ""
        except ValueError:
            detail = response.text or ""

        safe_detail = self._sanitize_credentials(str(detail))
        logger.error(f"API operation failed: {operation} - {status_code} {safe_detail}")
        return APIAccessError(f"Notion API failure during {operation}: {status_code} {safe_detail}".rstrip())

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue one HTTP request without retries and decode the JSON body."""
        url = f"{self._base_url}{path}"
        operation = f"{method} {path}"
        logger.debug(f"Notion API: {operation} params={params}")

        try:
            response = self._get_session().request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=self._timeout,
            )
        except (Timeout, ConnectionError) as e:
            logger.warning(f"Network failure during {operation}: {self._sanitize_credentials(str(e))}")
            raise APIUnreachableError(endpoint=url) from e
        except RequestException as e:
            raise APIAccessError(
                f"Notion API failure during {operation}: {self._sanitize_credentials(str(e))}"
            ) from e

        if not response.ok:
            raise self._translate_error(response, operation)

        try:
            payload = response.json()
        except ValueError as e:
            raise APIAccessError(f"Invalid JSON returned by {operation}") from e

        if not isinstance(payload, dict):
            raise APIAccessError(
                f"Unexpected response from {operation}: expected an object, got {type(payload).__name__}"
            )

        logger.debug(f"Notion API: {operation} completed")
        return payload

    def request_json(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue an HTTP request with retries on transient failures.

        Args:
            method: HTTP method ("GET", "POST")
            path: Path relative to the base URL, starting with "/"
            params: Optional query parameters
            json_body: Optional JSON request body

        Returns:
            The decoded JSON object

        Raises:
            InvalidCredentialsError: If the token is rejected
            ObjectNotFoundError: If the object does not exist
            APIAccessError: On other client errors or after exhausted retries
        """
        return retry_on_transient_error(self._send, method, path, params, json_body)

    def search(self) -> Iterator[Dict[str, Any]]:
        """Enumerate every page and database shared with the integration.

        Results are sorted by last edited time, most recent first, so that
        repeated runs enumerate in a stable order.

        Yields:
            Raw Notion object records
        """
        logger.debug("Searching all objects from Notion")
        request = PageRequest(
            method="POST",
            path="/search",
            body={"sort": dict(SEARCH_SORT), "page_size": PAGE_SIZE},
        )
        return fetch_all(self, request)

    def get_block_children(self, block_id: str) -> Iterator[Dict[str, Any]]:
        """Enumerate the direct children of a page or block.

        Args:
            block_id: Page or block id (dashes optional)

        Yields:
            Raw block records in server order
        """
        self._validate_object_id(block_id)
        request = PageRequest(
            method="GET",
            path=f"/blocks/{block_id}/children",
            params={"page_size": PAGE_SIZE},
        )
        return fetch_all(self, request)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds; dates are ignored."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None
