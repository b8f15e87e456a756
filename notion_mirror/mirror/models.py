"""Data models for the mirror.

This module defines the data models used by the mirror library. Remote
objects themselves stay raw JSON dicts so they can be written back out
unchanged; the dataclasses here describe names, results and configuration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TitleSource(str, Enum):
    """Where a resolved display name came from."""
    PROPERTIES_TITLE = "properties.title"
    TOP_LEVEL_TITLE = "title"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class TitleResult:
    """Resolved display name of a remote object.

    Attributes:
        title: Raw (unsanitized) display name
        source: Which metadata field produced the name
    """
    title: str
    source: TitleSource


@dataclass
class WorkspaceConfig:
    """A workspace to mirror and the environment variable holding its token.

    Attributes:
        name: Workspace name, also the mirror sub-directory
        token_env: Environment variable containing the integration token
    """
    name: str
    token_env: str


@dataclass
class MirrorConfig:
    """Overall mirror configuration.

    Built once at process start (YAML file + CLI overrides) and passed
    explicitly into the backup components.

    Attributes:
        storage_root: Directory holding one sub-directory per workspace
        concurrency: Top-level objects backed up concurrently
        tree_concurrency: Child subtrees fetched concurrently per level
        max_depth: Maximum block nesting depth before aborting a tree
        base_url: Notion API base URL
        notion_version: Value of the Notion-Version header
        timeout: Per-request timeout in seconds
        cleanup: Run orphan reconciliation after the backup phase
        workspaces: Explicit workspaces; empty means discover from environment
    """
    storage_root: str = "storage"
    concurrency: int = 4
    tree_concurrency: int = 4
    max_depth: int = 50
    base_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    timeout: float = 30
    cleanup: bool = True
    workspaces: List[WorkspaceConfig] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass over a mirror root.

    Attributes:
        deleted: Entry names deleted (or, in dry run, that would be deleted)
        kept: Entry names whose identifier is still active
        skipped: Entry names without readable metadata (left alone)
        failed: Entry names whose deletion failed
        dry_run: True if nothing was actually deleted
    """
    deleted: List[str] = field(default_factory=list)
    kept: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    dry_run: bool = False


@dataclass
class BackupSummary:
    """Summary of one workspace backup run.

    Attributes:
        workspace: Workspace name
        found: Objects returned by the search endpoint
        succeeded: Objects fully written to the mirror
        failed: Objects whose fetch or write failed
        failed_ids: Identifiers of the failed objects
        reconcile: Reconciliation outcome (None if cleanup was skipped)
    """
    workspace: str = ""
    found: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_ids: List[str] = field(default_factory=list)
    reconcile: Optional[ReconcileResult] = None

    @property
    def deleted(self) -> int:
        return len(self.reconcile.deleted) if self.reconcile else 0
