"""Local mirror library for Notion workspaces.

This package turns remote objects into a directory tree on disk: display name
resolution, recursive block tree fetching, atomic entry writes, orphan
reconciliation and the per-workspace backup run that ties them together.
"""

from .errors import (
    MirrorStorageError,
    FilesystemError,
    ConfigError,
    TreeDepthExceededError,
)
from .models import (
    TitleSource,
    TitleResult,
    WorkspaceConfig,
    MirrorConfig,
    ReconcileResult,
    BackupSummary,
)
from .title_resolver import resolve_title, sanitize_name, safe_id
from .tree_fetcher import TreeFetcher
from .mirror_writer import MirrorWriter
from .reconciler import Reconciler, prune_workspaces
from .backup_runner import BackupRunner
from .config_loader import ConfigLoader

__all__ = [
    "MirrorStorageError",
    "FilesystemError",
    "ConfigError",
    "TreeDepthExceededError",
    "TitleSource",
    "TitleResult",
    "WorkspaceConfig",
    "MirrorConfig",
    "ReconcileResult",
    "BackupSummary",
    "resolve_title",
    "sanitize_name",
    "safe_id",
    "TreeFetcher",
    "MirrorWriter",
    "Reconciler",
    "prune_workspaces",
    "BackupRunner",
    "ConfigLoader",
]
