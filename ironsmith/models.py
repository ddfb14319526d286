"""In-memory representation of a source tree."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from typing import Any, Callable, Union

# A FileRecord is a plain dict: ``contents`` (bytes) is always present,
# ``mode`` and ``stats`` are set by the reader, anything else comes from
# front matter or plugins.
FileRecord = dict[str, Any]
FileMap = dict[str, FileRecord]

PROTECTED_KEYS = frozenset({"contents", "mode", "stats"})


@dataclass(frozen=True)
class FileStats:
    """Point-in-time snapshot of the stat fields ironsmith exposes.

    Never written back; plugins and ignore predicates may inspect it.
    """

    size: int
    mode: int  # permission bits only
    mtime: float
    is_dir: bool = False
    is_symlink: bool = False

    @classmethod
    def from_stat(cls, st: os.stat_result, *, is_symlink: bool = False) -> FileStats:
        return cls(
            size=st.st_size,
            mode=stat.S_IMODE(st.st_mode),
            mtime=st.st_mtime,
            is_dir=stat.S_ISDIR(st.st_mode),
            is_symlink=is_symlink,
        )

    def is_directory(self) -> bool:
        return self.is_dir

    def is_symbolic_link(self) -> bool:
        return self.is_symlink


IgnorePredicate = Callable[[str, FileStats], bool]
IgnoreRule = Union[str, IgnorePredicate]


def mode_to_octal(st_mode: int) -> str:
    """Four-digit octal permission string, e.g. ``0644``."""
    return f"{stat.S_IMODE(st_mode):04o}"


def octal_to_mode(mode: str | int) -> int:
    """Inverse of :func:`mode_to_octal`. Ints pass through unchanged."""
    if isinstance(mode, int):
        return mode
    return int(mode, 8)

