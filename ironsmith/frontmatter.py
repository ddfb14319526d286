"""YAML front-matter splitting for source files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from ironsmith.errors import FrontMatterError

# Opening fence on the first line, closing fence (--- or ...) on its own line.
_FRONTMATTER_RE = re.compile(
    r"\A(?:\ufeff)?---[ \t]*\r?\n(?P<block>.*?)(?:\r?\n)?^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def parse_frontmatter(text: str, path: str | Path = "<string>") -> tuple[dict[str, Any] | None, str]:
    """Split *text* into (attributes, body).

    Returns ``(None, text)`` when the text does not open with a fenced
    block. An empty block yields ``{}``. Raises FrontMatterError naming
    *path* when the block is not valid YAML or is not a mapping.
    """
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        return None, text

    try:
        attributes = yaml.safe_load(match.group("block"))
    except yaml.YAMLError as e:
        raise FrontMatterError(path, str(e).splitlines()[0]) from e

    if attributes is None:
        attributes = {}
    if not isinstance(attributes, dict):
        raise FrontMatterError(path, f"expected a mapping, got {type(attributes).__name__}")

    return attributes, text[match.end():]
