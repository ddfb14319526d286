"""Exception types raised by the build core."""

from __future__ import annotations

from pathlib import Path

# I/O failures propagate as the original OSError subclass.
FilesystemError = OSError


class IronsmithError(Exception):
    """Base class for errors raised by ironsmith itself."""


class ConfigurationError(IronsmithError, TypeError):
    """An accessor was given a value of the wrong type or range."""


class FrontMatterError(IronsmithError):
    """A file starts with a front-matter block that cannot be parsed."""

    def __init__(self, path: str | Path, reason: str | None = None) -> None:
        self.path = str(path)
        msg = f"invalid frontmatter in file: {self.path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class PluginError(IronsmithError):
    """A plugin signalled failure with a value that is not an exception."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(str(value))
