"""Retry logic with exponential backoff for transient Notion API failures.

This module provides retry functionality for network errors, 5xx responses and
429 rate limits. It makes up to 3 attempts with exponential backoff (1s, 2s)
and fails fast for every other error.
"""

import time
import logging
from typing import Callable, TypeVar

from .errors import APIAccessError, APIUnreachableError, RateLimitError, ServerError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_ATTEMPTS = 3
BACKOFF_BASE = 1

TRANSIENT_ERRORS = (APIUnreachableError, ServerError, RateLimitError)


def retry_on_transient_error(func: Callable[..., T], *args, **kwargs) -> T:
    """Retry function on transient API errors with exponential backoff.

    Executes the given function with the provided arguments, making up to
    MAX_ATTEMPTS attempts and sleeping 1s, 2s, ... between them when a
    transient error (network failure, 5xx, 429) is raised. A 429 carrying a
    longer Retry-After than the backoff waits for Retry-After instead.
    Fails fast for all other errors.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        APIAccessError: If the failure persists after MAX_ATTEMPTS attempts
        Other exceptions: Passed through immediately without retry

    Example:
        >>> result = retry_on_transient_error(api.request_json, "GET", "/users/me")
    """
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as e:
            if attempt >= MAX_ATTEMPTS:
                logger.error(
                    f"Transient failure persisted after {MAX_ATTEMPTS} attempts, giving up: {e}"
                )
                raise APIAccessError(
                    f"Notion API failure (after {MAX_ATTEMPTS} attempts): {e}"
                ) from e

            wait_time = _backoff_seconds(attempt, e)
            logger.info(
                f"{e} - retrying in {wait_time:g}s "
                f"(attempt {attempt + 1}/{MAX_ATTEMPTS})"
            )
            time.sleep(wait_time)

    # Should never reach here, but make type checker happy
    raise APIAccessError(f"Notion API failure (after {MAX_ATTEMPTS} attempts)")


def _backoff_seconds(attempt: int, error: Exception) -> float:
    """Backoff before the next attempt: 1s after the first failure, then 2s, 4s."""
    wait_time = float(BACKOFF_BASE * 2 ** (attempt - 1))
    if isinstance(error, RateLimitError) and error.retry_after:
        wait_time = max(wait_time, error.retry_after)
    return wait_time
