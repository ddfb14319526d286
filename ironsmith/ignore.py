"""Ignore rules applied while walking a source directory."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Sequence
from pathlib import PurePosixPath

from ironsmith.models import FileStats, IgnoreRule

logger = logging.getLogger(__name__)


def _matches_pattern(rel_path: str, pattern: str) -> bool:
    """Glob-match *pattern* against a ``/``-separated relative path.

    Patterns without a slash match the basename, so ``"nested"`` or
    ``"*.draft.md"`` work at any depth. Patterns with a slash are anchored at
    the root and matched one segment at a time, so ``*`` never crosses a
    ``/``: ``"drafts/*.md"`` matches ``drafts/a.md`` but not
    ``drafts/old/a.md``.
    """
    pattern = pattern.strip("/")
    path = PurePosixPath(rel_path)
    if "/" not in pattern:
        return fnmatch.fnmatchcase(path.name, pattern)

    segments = pattern.split("/")
    if len(segments) != len(path.parts):
        return False
    return all(fnmatch.fnmatchcase(part, seg) for part, seg in zip(path.parts, segments))


class IgnoreMatcher:
    """Decides whether a walked entry is excluded.

    Rules are evaluated in order and the first match wins. String rules are
    glob patterns over the relative path (see :func:`_matches_pattern`);
    callables receive the absolute path and a :class:`FileStats` snapshot.
    """

    def __init__(self, rules: Sequence[IgnoreRule]) -> None:
        self.rules = list(rules)

    def matches(self, abs_path: str, rel_path: str, stats: FileStats) -> bool:
        for rule in self.rules:
            if isinstance(rule, str):
                hit = _matches_pattern(rel_path, rule)
            else:
                hit = bool(rule(abs_path, stats))
            if hit:
                logger.debug("ignoring %s (rule %r)", rel_path, rule)
                return True
        return False
