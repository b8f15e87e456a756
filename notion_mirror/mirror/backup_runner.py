"""Backup orchestration for one Notion workspace.

This module provides the BackupRunner class which drives a full mirror run:
enumerate every object shared with the integration, back each one up (block
tree fetch + durable write) on a bounded thread pool, then reconcile the
mirror root against the identifiers that were backed up successfully.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from notion_mirror.notion_api.api_wrapper import APIWrapper
from notion_mirror.notion_api.errors import InvalidCredentialsError
from .errors import FilesystemError
from .mirror_writer import MirrorWriter
from .models import BackupSummary
from .reconciler import Reconciler
from .title_resolver import resolve_title, safe_id, sanitize_name
from .tree_fetcher import TreeFetcher

logger = logging.getLogger(__name__)

# Top-level objects backed up concurrently
DEFAULT_CONCURRENCY = 4


class BackupRunner:
    """Mirrors one workspace into a local directory.

    The run has two phases separated by a hard barrier: every backup task
    settles (success or failure) before reconciliation starts, because
    deletion decisions depend on the complete set of active identifiers.

    A failing object is logged and counted but never stops its siblings.
    A rejected token aborts the run without reconciliation, as does a
    failure of the enumeration itself: a partial identifier set must never
    drive deletions.

    Example:
        >>> api = APIWrapper(credentials)
        >>> runner = BackupRunner(api, "storage/default")
        >>> summary = runner.run()
        >>> print(f"{summary.succeeded}/{summary.found} objects backed up")
    """

    def __init__(
        self,
        api: APIWrapper,
        root: Union[str, Path],
        concurrency: int = DEFAULT_CONCURRENCY,
        tree_fetcher: Optional[TreeFetcher] = None,
        writer: Optional[MirrorWriter] = None,
        reconciler: Optional[Reconciler] = None,
        cleanup: bool = True,
        dry_run: bool = False,
    ):
        """Initialize the backup runner.

        Args:
            api: APIWrapper bound to the workspace token
            root: Mirror root directory of this workspace
            concurrency: Maximum objects backed up in parallel
            tree_fetcher: TreeFetcher (optional, built from api by default)
            writer: MirrorWriter (optional, built from root by default)
            reconciler: Reconciler (optional, built from root by default)
            cleanup: Run reconciliation after the backup phase
            dry_run: Reconcile in dry-run mode (report, don't delete)
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._api = api
        self._root = Path(root)
        self._concurrency = concurrency
        self._tree_fetcher = tree_fetcher or TreeFetcher(api)
        self._writer = writer or MirrorWriter(self._root)
        self._reconciler = reconciler or Reconciler(self._root)
        self._cleanup = cleanup
        self._dry_run = dry_run
        self._target_locks: Dict[Path, threading.Lock] = {}
        self._target_locks_guard = threading.Lock()

    def run(self) -> BackupSummary:
        """Run the full backup and reconciliation pipeline.

        Returns:
            BackupSummary with found/succeeded/failed counts and the
            reconciliation result

        Raises:
            FilesystemError: If the mirror root cannot be created
            InvalidCredentialsError: If the token is rejected
            NotionError: If enumerating objects fails
        """
        summary = BackupSummary(workspace=self._api.workspace)
        logger.info(f"Starting backup for workspace [{summary.workspace}] into {self._root}")

        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(str(self._root), 'create_directory', str(e))

        futures: List[Tuple[Future, str]] = []
        executor = ThreadPoolExecutor(max_workers=self._concurrency)
        try:
            for obj in self._api.search():
                summary.found += 1
                futures.append((executor.submit(self._backup_object, obj), _describe(obj)))
        except InvalidCredentialsError:
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        except Exception:
            logger.error(
                f"Enumeration failed for [{summary.workspace}] after {summary.found} object(s); "
                f"waiting for in-flight backups, cleanup skipped"
            )
            executor.shutdown(wait=True)
            raise

        logger.info(f"Found {summary.found} object(s) in [{summary.workspace}]")

        # Barrier: every task settles before the identifier set is built
        try:
            for future in as_completed([f for f, _ in futures]):
                error = future.exception()
                if isinstance(error, InvalidCredentialsError):
                    logger.error(f"Token rejected for [{summary.workspace}], aborting run")
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise error
        finally:
            executor.shutdown(wait=True)

        active_ids = set()
        for future, object_id in futures:
            error = future.exception()
            if error is None:
                active_ids.add(future.result())
                summary.succeeded += 1
                continue
            summary.failed += 1
            summary.failed_ids.append(object_id)

        if self._cleanup:
            summary.reconcile = self._reconciler.reconcile(frozenset(active_ids), dry_run=self._dry_run)
        else:
            logger.info("Cleanup disabled, skipping reconciliation")

        logger.info(
            f"Backup completed for [{summary.workspace}]: {summary.found} found, "
            f"{summary.succeeded} backed up, {summary.failed} failed, {summary.deleted} deleted"
        )
        return summary

    def _backup_object(self, obj: Dict[str, Any]) -> str:
        """Back up one object and return its identifier.

        Exceptions are logged here and re-raised so the coordinating thread
        can count the failure.
        """
        object_id = _describe(obj)
        try:
            object_id = safe_id(obj)
            title_result = resolve_title(obj)
            target = self._root / sanitize_name(title_result.title)
            logger.debug(f"Backing up object [{object_id}] - {title_result.title}")

            children = self._tree_fetcher.fetch_tree(object_id)
            # Objects whose names collide share a directory; one writes at a time
            with self._lock_for(target):
                self._writer.write(target, obj, children, title_result)
        except Exception as e:
            logger.error(f"Failed to back up object [{object_id}]: {e}")
            raise

        logger.info(f"Wrote object [{object_id}] to {target}")
        return object_id

    def _lock_for(self, target: Path) -> threading.Lock:
        with self._target_locks_guard:
            return self._target_locks.setdefault(target, threading.Lock())


def _describe(obj: Any) -> str:
    """Best-effort identifier of a record for logs and failure lists."""
    if isinstance(obj, dict) and obj.get("id"):
        return str(obj["id"]).replace("-", "")
    return "unknown"
