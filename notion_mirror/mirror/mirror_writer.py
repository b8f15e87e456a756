"""Durable writing of mirror entries.

Each mirrored object gets its own directory holding:
    page.json    the raw object record (identity of the entry)
    blocks.json  the fetched block tree
    meta.json    a small backup manifest (id, title, title source, time)

Files are staged as temporary siblings and moved into place with
``os.replace``. ``page.json`` is committed last, so the reconciler only ever
recognises an entry whose block tree is already on disk.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import FilesystemError
from .models import TitleResult
from .title_resolver import safe_id

logger = logging.getLogger(__name__)

METADATA_FILE = "page.json"
CHILDREN_FILE = "blocks.json"
MANIFEST_FILE = "meta.json"


def dump_json(data: Any) -> str:
    """Serialize data as pretty-printed UTF-8 JSON."""
    return json.dumps(data, indent=2, ensure_ascii=False)


class MirrorWriter:
    """Writes one object's record and block tree into its mirror directory.

    Example:
        >>> writer = MirrorWriter("storage/default")
        >>> writer.write(Path("storage/default/Alpha"), page, blocks)
    """

    def __init__(self, root: Union[str, Path]):
        """Initialize the writer.

        Args:
            root: Mirror root; every written directory must live inside it
        """
        self._root = Path(root)

    def _validate_path_safety(self, directory: Path) -> None:
        """Ensure the target directory is a strict descendant of the mirror root.

        Raises:
            FilesystemError: If the directory resolves outside the root
        """
        real_root = os.path.realpath(self._root)
        real_path = os.path.realpath(directory)
        if not real_path.startswith(real_root + os.sep):
            raise FilesystemError(
                str(directory),
                'validate',
                f'Path traversal detected: {directory} is outside mirror root {self._root}'
            )

    def write(
        self,
        directory: Union[str, Path],
        obj: Dict[str, Any],
        children: List[Dict[str, Any]],
        title_result: Optional[TitleResult] = None,
    ) -> Path:
        """Write one mirror entry.

        Steps: create the directory (parents included, idempotent), write
        the children file, the manifest, then the metadata file. If a later
        step fails, files from earlier steps are left in place and the whole
        write is reported as failed.

        Args:
            directory: Target entry directory inside the mirror root
            obj: Raw object record
            children: Block tree returned by TreeFetcher
            title_result: Resolved title, recorded in the manifest

        Returns:
            The entry directory

        Raises:
            FilesystemError: If any step fails
        """
        directory = Path(directory)
        self._validate_path_safety(directory)

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(str(directory), 'create_directory', str(e))

        manifest = {
            "id": obj.get("id"),
            "short_id": safe_id(obj),
            "title": title_result.title if title_result else None,
            "title_source": title_result.source.value if title_result else None,
            "backup_time": datetime.now(timezone.utc).isoformat(),
        }

        self._write_atomic(directory / CHILDREN_FILE, dump_json(children))
        self._write_atomic(directory / MANIFEST_FILE, dump_json(manifest))
        self._write_atomic(directory / METADATA_FILE, dump_json(obj))

        logger.debug(f"Wrote {len(children)} block(s) for [{manifest['short_id']}] to {directory}")
        return directory

    def _write_atomic(self, file_path: Path, content: str) -> None:
        """Write content to a temp sibling, then move it over file_path.

        Raises:
            FilesystemError: If writing or moving fails
        """
        temp_path = None
        try:
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{file_path.name}.",
                suffix=".tmp",
                dir=str(file_path.parent)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, file_path)
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
            raise FilesystemError(str(file_path), 'write', str(e))
