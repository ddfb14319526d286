"""DirectoryWriter: persists a file map to a destination directory."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path, PurePosixPath

from ironsmith.governor import ConcurrencyGovernor
from ironsmith.models import FileMap, FileRecord, octal_to_mode

logger = logging.getLogger(__name__)


def _target_path(root: Path, key: str) -> Path:
    """Map a ``/``-separated file map key onto *root*.

    Keys that would escape *root* (absolute paths, ``..`` segments) are
    rejected.
    """
    rel = PurePosixPath(key)
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"refusing to write outside the destination: {key!r}")
    return root.joinpath(*rel.parts)


class DirectoryWriter:
    """Writes records under ``root``, restoring their permission bits.

    Each write creates missing parent directories, writes ``contents``
    verbatim and then applies ``mode`` when the record has one. Nothing is
    rolled back when a later write fails.
    """

    def __init__(self, root: Path, *, governor: ConcurrencyGovernor | None = None) -> None:
        self.root = Path(root)
        self.governor = governor or ConcurrencyGovernor()

    async def write(self, files: FileMap) -> None:
        logger.debug("writing %d file(s) to %s", len(files), self.root)

        async def _write_item(item: tuple[str, FileRecord]) -> Path:
            return await self.write_file(*item)

        await self.governor.map(_write_item, list(files.items()))

    async def write_file(self, key: str, record: FileRecord) -> Path:
        return await asyncio.to_thread(self._write_file_sync, key, record)

    def _write_file_sync(self, key: str, record: FileRecord) -> Path:
        contents = record.get("contents")
        if not isinstance(contents, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"contents of {key!r} must be bytes, got {type(contents).__name__}"
            )

        dest = _target_path(self.root, key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(contents)

        mode = record.get("mode")
        if mode is not None:
            os.chmod(dest, octal_to_mode(mode))

        logger.debug("wrote %s (%d bytes)", dest, len(contents))
        return dest


async def clean_directory(path: Path) -> None:
    """Recursively remove *path*; a missing directory is not an error."""

    def _remove() -> None:
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        logger.debug("removed %s", path)

    await asyncio.to_thread(_remove)
