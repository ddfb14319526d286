"""DirectoryReader: loads a source tree into a file map."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from collections.abc import Sequence
from pathlib import Path

from ironsmith.frontmatter import parse_frontmatter
from ironsmith.governor import ConcurrencyGovernor
from ironsmith.ignore import IgnoreMatcher
from ironsmith.models import (
    PROTECTED_KEYS,
    FileMap,
    FileRecord,
    FileStats,
    IgnoreRule,
    mode_to_octal,
)

logger = logging.getLogger(__name__)


class DirectoryReader:
    """Walks a directory and builds a :data:`FileMap` from it.

    Symlinked directories are followed as if they were real directories,
    so a directory reachable under several names appears under each of
    them. A link back to one of its own ancestors is not followed. Ignored
    directories are pruned before descending.
    """

    def __init__(
        self,
        root: Path,
        *,
        frontmatter: bool = True,
        ignores: Sequence[IgnoreRule] = (),
        governor: ConcurrencyGovernor | None = None,
    ) -> None:
        self.root = Path(root)
        self.frontmatter = frontmatter
        self.matcher = IgnoreMatcher(ignores)
        self.governor = governor or ConcurrencyGovernor()

    async def read(self) -> FileMap:
        """Read every non-ignored regular file under ``root``."""
        keys = await asyncio.to_thread(self.walk)
        logger.debug("found %d file(s) under %s", len(keys), self.root)

        records = await self.governor.map(self.read_file, keys)
        return dict(zip(keys, records))

    async def read_file(self, path: str | Path) -> FileRecord:
        """Read one file; *path* is relative to ``root`` unless absolute."""
        return await asyncio.to_thread(self._read_file_sync, path)

    # -- walking -----------------------------------------------------------

    def walk(self) -> list[str]:
        """Return the file map keys of every file that would be read."""
        keys: list[str] = []
        self._walk_dir(self.root, "", keys, frozenset())
        return keys

    def _walk_dir(
        self, directory: Path, prefix: str, keys: list[str], ancestors: frozenset[str]
    ) -> None:
        real = os.path.realpath(directory)
        # only a link back to one of its own ancestors is a cycle
        if real in ancestors:
            logger.debug("skipping symlink cycle at %s", directory)
            return
        ancestors = ancestors | {real}

        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            rel = prefix + entry.name
            st = os.stat(entry.path)
            stats = FileStats.from_stat(st, is_symlink=entry.is_symlink())
            if self.matcher.matches(entry.path, rel, stats):
                continue
            if stats.is_dir:
                self._walk_dir(Path(entry.path), rel + "/", keys, ancestors)
            elif stat.S_ISREG(st.st_mode):
                keys.append(rel)

    # -- single file -------------------------------------------------------

    def _read_file_sync(self, path: str | Path) -> FileRecord:
        full = Path(path)
        if not full.is_absolute():
            full = self.root / full

        st = os.stat(full)
        raw = full.read_bytes()
        record: FileRecord = {
            "contents": raw,
            "mode": mode_to_octal(st.st_mode),
            "stats": FileStats.from_stat(st, is_symlink=full.is_symlink()),
        }

        if self.frontmatter:
            self._apply_frontmatter(record, raw, full)

        logger.debug("read %s (%d bytes)", full, len(raw))
        return record

    def _apply_frontmatter(self, record: FileRecord, raw: bytes, full: Path) -> None:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            return  # binary file, leave contents untouched

        attributes, body = parse_frontmatter(text, full)
        if attributes is None:
            return

        for key, value in attributes.items():
            if key not in PROTECTED_KEYS:
                record[key] = value
        record["contents"] = body.encode("utf-8")

