"""Orphan cleanup for the local mirror.

After a backup pass, the reconciler walks the entries of a mirror root and
deletes every entry whose remote counterpart is gone. An entry's identity is
read from its ``page.json``; entries without readable metadata are never
deleted, since they may be the remains of an interrupted write rather than
stale data.

An entry is an orphan when ANY of:
- its identifier is not in the set of objects backed up in this run
- its record is flagged ``archived``
- it declares a ``parent_id`` that matches no surviving local entry

Parent orphaning cascades within a single pass, so reconciling again with the
same identifiers deletes nothing more.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Set, Union

from .errors import FilesystemError
from .mirror_writer import METADATA_FILE
from .models import ReconcileResult

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    name: str
    path: Path
    object_id: str
    record: Dict[str, Any]


def delete_recursively(path: Union[str, Path]) -> None:
    """Delete a directory tree, leaves first.

    Files are removed before the directories that contain them and the
    deepest directories go first, so a failure never leaves a parent
    removed while its children still exist. Symlinks are unlinked, never
    followed.

    Raises:
        FilesystemError: On the first failing removal
    """
    path = str(path)
    current = path
    try:
        if os.path.islink(path):
            os.unlink(path)
            return
        for dirpath, dirnames, filenames in os.walk(path, topdown=False):
            for filename in filenames:
                current = os.path.join(dirpath, filename)
                os.unlink(current)
                logger.debug(f"Deleted {current}")
            for dirname in dirnames:
                current = os.path.join(dirpath, dirname)
                if os.path.islink(current):
                    os.unlink(current)
                else:
                    os.rmdir(current)
                logger.debug(f"Deleted {current}")
        current = path
        os.rmdir(path)
    except OSError as e:
        raise FilesystemError(current, 'delete', str(e))


class Reconciler:
    """Deletes orphaned entries from one mirror root.

    Per-entry failures (unreadable metadata, failed deletes) are logged and
    recorded in the result; they never abort the pass.

    Example:
        >>> reconciler = Reconciler("storage/default")
        >>> result = reconciler.reconcile({"0a1b2c..."})
        >>> print(f"Deleted {len(result.deleted)} orphaned entries")
    """

    def __init__(self, root: Union[str, Path]):
        """Initialize the reconciler.

        Args:
            root: Mirror root whose immediate sub-directories are entries
        """
        self._root = Path(root)

    def reconcile(self, active_ids: Iterable[str], dry_run: bool = False) -> ReconcileResult:
        """Delete every orphaned entry under the mirror root.

        Args:
            active_ids: Identifiers backed up in this run (dashes optional)
            dry_run: If True, log deletions without executing

        Returns:
            ReconcileResult listing deleted, kept, skipped and failed entries
        """
        active = frozenset(str(object_id).replace("-", "") for object_id in active_ids)
        result = ReconcileResult(dry_run=dry_run)

        if not self._root.is_dir():
            logger.warning(f"Mirror root {self._root} not found, nothing to reconcile")
            return result

        logger.info(
            f"Reconciling {self._root} against {len(active)} active id(s) (dryrun={dry_run})"
        )

        entries, unreadable = self._scan(result)
        orphans = self._find_orphans(entries, unreadable, active)

        for entry in entries:
            if entry.name not in orphans:
                result.kept.append(entry.name)
                continue

            reason = orphans[entry.name]
            if dry_run:
                logger.info(f"[DRYRUN] Would delete orphaned entry {entry.path} (id={entry.object_id}, {reason})")
                result.deleted.append(entry.name)
                continue

            logger.info(f"Deleting orphaned entry {entry.path} (id={entry.object_id}, {reason})")
            try:
                delete_recursively(entry.path)
                result.deleted.append(entry.name)
            except FilesystemError as e:
                logger.error(f"Failed to delete {entry.path}: {e}")
                result.failed.append(entry.name)

        logger.info(
            f"Reconciliation complete: {len(result.deleted)} deleted, "
            f"{len(result.kept)} kept, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed"
        )
        return result

    def _scan(self, result: ReconcileResult):
        """Read the metadata of every entry directory.

        Returns:
            Tuple of (readable entries, names of directories without
            readable metadata)
        """
        entries: List[_Entry] = []
        unreadable: Set[str] = set()

        try:
            children = sorted(self._root.iterdir())
        except OSError as e:
            logger.error(f"Failed to list {self._root}: {e}")
            return entries, unreadable

        for path in children:
            if path.is_symlink() or not path.is_dir():
                continue

            record = self._read_metadata(path)
            object_id = record.get("id") if record is not None else None
            if not object_id:
                unreadable.add(path.name)
                result.skipped.append(path.name)
                continue

            entries.append(_Entry(
                name=path.name,
                path=path,
                object_id=str(object_id).replace("-", ""),
                record=record,
            ))

        return entries, unreadable

    def _read_metadata(self, directory: Path) -> Optional[Dict[str, Any]]:
        """Read an entry's page.json; None when absent, unreadable or malformed."""
        metadata_path = directory / METADATA_FILE
        if not metadata_path.is_file():
            logger.debug(f"{directory} has no {METADATA_FILE}, skipping")
            return None

        try:
            with open(metadata_path, 'r', encoding='utf-8') as f:
                record = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {metadata_path}, leaving entry alone: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"{metadata_path} is not a JSON object, leaving entry alone")
            return None
        return record

    def _find_orphans(
        self,
        entries: List[_Entry],
        unreadable: Set[str],
        active: frozenset,
    ) -> Dict[str, str]:
        """Map orphaned entry names to the reason they are orphaned."""
        orphans: Dict[str, str] = {}

        for entry in entries:
            if entry.object_id not in active:
                orphans[entry.name] = "no longer in workspace"
            elif entry.record.get("archived") is True:
                orphans[entry.name] = "archived"

        # Removing a parent orphans its children, so iterate to a fixed point
        changed = True
        while changed:
            changed = False
            surviving_ids = {e.object_id for e in entries if e.name not in orphans}
            surviving_names = unreadable | {e.name for e in entries if e.name not in orphans}

            for entry in entries:
                if entry.name in orphans:
                    continue
                parent_id = entry.record.get("parent_id")
                if not parent_id:
                    continue
                parent_id = str(parent_id)
                if parent_id.replace("-", "") in surviving_ids or parent_id in surviving_names:
                    continue
                orphans[entry.name] = f"parent {parent_id} missing"
                changed = True

        return orphans


def prune_workspaces(
    storage_root: Union[str, Path],
    workspace_names: Iterable[str],
    dry_run: bool = False,
) -> List[str]:
    """Delete workspace directories that are no longer configured.

    Only immediate sub-directories of the storage root are considered;
    loose files are left alone.

    Args:
        storage_root: Directory holding one sub-directory per workspace
        workspace_names: Names of the workspaces to keep
        dry_run: If True, log deletions without executing

    Returns:
        Names of the deleted (or, in dry run, deletable) workspace directories
    """
    root = Path(storage_root)
    keep = set(workspace_names)
    pruned: List[str] = []

    if not root.is_dir():
        logger.warning(f"Storage folder not found at {root}")
        return pruned

    for path in sorted(root.iterdir()):
        if not path.is_dir() or path.is_symlink() or path.name in keep:
            continue

        if dry_run:
            logger.info(f"[DRYRUN] Would delete unconfigured workspace folder {path}")
            pruned.append(path.name)
            continue

        logger.info(f"Deleting unconfigured workspace folder {path}")
        try:
            delete_recursively(path)
            pruned.append(path.name)
        except FilesystemError as e:
            logger.error(f"Failed to delete workspace folder {path}: {e}")

    return pruned
