"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError so the command layer can map them to
the general error exit code in one place.
"""

from typing import List

from notion_mirror.notion_api.errors import MirrorError


class CLIError(MirrorError):
    """Base exception for all CLI-related errors."""
    pass


class UnknownWorkspaceError(CLIError):
    """Raised when --workspace names a workspace that has no token."""

    def __init__(self, requested: List[str], available: List[str]):
        available_text = ', '.join(available) if available else 'none'
        super().__init__(
            f"Unknown workspace(s): {', '.join(requested)} (available: {available_text})"
        )
        self.requested = requested
        self.available = available
