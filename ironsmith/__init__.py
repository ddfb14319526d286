"""Ironsmith - a pluggable file-tree build pipeline."""

from ironsmith.core import Ironsmith
from ironsmith.errors import (
    ConfigurationError,
    FilesystemError,
    FrontMatterError,
    IronsmithError,
    PluginError,
)
from ironsmith.models import FileMap, FileRecord, FileStats
from ironsmith.pipeline import Plugin, PluginKind

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "FileMap",
    "FileRecord",
    "FileStats",
    "FilesystemError",
    "FrontMatterError",
    "Ironsmith",
    "IronsmithError",
    "Plugin",
    "PluginError",
    "PluginKind",
]
