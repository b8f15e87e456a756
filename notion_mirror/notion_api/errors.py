"""Typed exception hierarchy for Notion-related errors.

This module defines all custom exceptions used by the Notion client library.
All exceptions inherit from NotionError (itself a MirrorError) so callers can
catch either the API-level family or every application error at once.
"""

from typing import Optional


class MirrorError(Exception):
    """Base exception for all notion-mirror errors.

    Use this to catch any application-level error from the backup tool.
    """
    pass


class NotionError(MirrorError):
    """Base exception for all Notion API errors."""
    pass


class InvalidCredentialsError(NotionError):
    """Raised when the integration token is missing or rejected (401)."""

    def __init__(self, workspace: str, endpoint: str):
        super().__init__(
            f"Integration token is invalid or missing (workspace: {workspace}, endpoint: {endpoint})"
        )
        self.workspace = workspace
        self.endpoint = endpoint


class ObjectNotFoundError(NotionError):
    """Raised when a requested object does not exist or is not shared (404)."""

    def __init__(self, object_id: str):
        super().__init__(f"Object {object_id} not found")
        self.object_id = object_id


class APIUnreachableError(NotionError):
    """Raised when the Notion API cannot be reached (network error, timeout)."""

    def __init__(self, endpoint: str):
        super().__init__(f"API is not available at {endpoint}")
        self.endpoint = endpoint


class ServerError(NotionError):
    """Raised when the Notion API answers with a 5xx status."""

    def __init__(self, status_code: int, endpoint: str):
        super().__init__(f"Server error {status_code} from {endpoint}")
        self.status_code = status_code
        self.endpoint = endpoint


class RateLimitError(NotionError):
    """Raised when the Notion API answers 429 Too Many Requests."""

    def __init__(self, endpoint: str, retry_after: Optional[float] = None):
        message = f"Rate limited by {endpoint}"
        if retry_after is not None:
            message += f" (retry after {retry_after:g}s)"
        super().__init__(message)
        self.endpoint = endpoint
        self.retry_after = retry_after


class APIAccessError(NotionError):
    """Raised when API access fails permanently or after retries."""

    def __init__(self, message: str = "Notion API failure (after 3 attempts)"):
        super().__init__(message)
