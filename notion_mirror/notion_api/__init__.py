"""Notion client library for the workspace mirror.

This package provides Python abstractions over the Notion REST API: credential
loading, request retries, error translation and cursor pagination.
"""

from .errors import (
    MirrorError,
    NotionError,
    InvalidCredentialsError,
    ObjectNotFoundError,
    APIUnreachableError,
    ServerError,
    RateLimitError,
    APIAccessError,
)
from .auth import Authenticator, Credentials, mask
from .api_wrapper import APIWrapper
from .pagination import PageRequest, fetch_all

__all__ = [
    "MirrorError",
    "NotionError",
    "InvalidCredentialsError",
    "ObjectNotFoundError",
    "APIUnreachableError",
    "ServerError",
    "RateLimitError",
    "APIAccessError",
    "Authenticator",
    "Credentials",
    "mask",
    "APIWrapper",
    "PageRequest",
    "fetch_all",
]
