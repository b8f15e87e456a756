"""Typed exception hierarchy for mirror errors.

This module defines all custom exceptions used by the mirror library.
All exceptions inherit from MirrorStorageError and include descriptive
messages with context to help with debugging.
"""

from typing import Optional

from notion_mirror.notion_api.errors import MirrorError


class MirrorStorageError(MirrorError):
    """Base exception for all local mirror errors."""
    pass


class FilesystemError(MirrorStorageError):
    """Raised when filesystem operations fail (read, write, delete, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(MirrorStorageError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class TreeDepthExceededError(MirrorStorageError):
    """Raised when a block tree is nested deeper than the configured limit."""

    def __init__(self, block_id: str, max_depth: int):
        super().__init__(
            f"Block tree under {block_id} exceeds maximum depth of {max_depth}. "
            f"This may indicate a circular reference or excessively deep nesting."
        )
        self.block_id = block_id
        self.max_depth = max_depth
