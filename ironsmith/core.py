"""Ironsmith: build configuration and the read -> run -> write orchestrator."""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, overload

from ironsmith.errors import ConfigurationError
from ironsmith.governor import UNBOUNDED, ConcurrencyGovernor, validate_limit
from ironsmith.models import FileMap, FileRecord, IgnoreRule
from ironsmith.pipeline import Plugin, as_plugin, run_plugins
from ironsmith.reader import DirectoryReader
from ironsmith.writer import DirectoryWriter, clean_directory

logger = logging.getLogger(__name__)

PathArg = str | os.PathLike


def _check_path(name: str, value: object) -> str:
    if not isinstance(value, (str, os.PathLike)):
        raise ConfigurationError(f"{name} must be a string path, got {type(value).__name__}")
    return os.fspath(value)


def _check_bool(name: str, value: object) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a boolean, got {type(value).__name__}")
    return value


class Ironsmith:
    """A build session over one working directory.

    Paths are resolved against ``directory``, which is made absolute when it
    is set. The same instance is handed to every plugin, so plugins can read
    settings and share state through :attr:`metadata`.

    Usage::

        smith = Ironsmith(here).use(my_plugin)
        smith.source = "content"
        files = asyncio.run(smith.build())
    """

    def __init__(self, directory: PathArg | None = None) -> None:
        if directory is None:
            raise ConfigurationError("You must pass a working directory path.")
        self.directory = directory
        self.plugins: list[Plugin] = []
        self._ignores: list[IgnoreRule] = []
        self._source = "src"
        self._destination = "build"
        self._clean = True
        self._frontmatter = True
        self._concurrency: int | float = UNBOUNDED
        self._metadata: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"Ironsmith({str(self._directory)!r})"

    # -- accessors ---------------------------------------------------------

    @property
    def directory(self) -> Path:
        return self._directory

    @directory.setter
    def directory(self, value: PathArg) -> None:
        self._directory = Path(os.path.abspath(_check_path("directory", value)))

    @property
    def source(self) -> Path:
        return self._resolve(self._source)

    @source.setter
    def source(self, value: PathArg) -> None:
        self._source = _check_path("source", value)

    @property
    def destination(self) -> Path:
        return self._resolve(self._destination)

    @destination.setter
    def destination(self, value: PathArg) -> None:
        self._destination = _check_path("destination", value)

    @property
    def clean(self) -> bool:
        return self._clean

    @clean.setter
    def clean(self, value: bool) -> None:
        self._clean = _check_bool("clean", value)

    @property
    def frontmatter(self) -> bool:
        return self._frontmatter

    @frontmatter.setter
    def frontmatter(self, value: bool) -> None:
        self._frontmatter = _check_bool("frontmatter", value)

    @property
    def concurrency(self) -> int | float:
        """Maximum simultaneous file operations; ``math.inf`` when unbounded."""
        return self._concurrency

    @concurrency.setter
    def concurrency(self, value: int | float | None) -> None:
        self._concurrency = validate_limit(value)

    @property
    def metadata(self) -> dict[str, Any]:
        """Global metadata, returned by reference so plugins can share state."""
        return self._metadata

    @metadata.setter
    def metadata(self, value: dict[str, Any]) -> None:
        if not isinstance(value, dict):
            raise ConfigurationError(f"metadata must be a dict, got {type(value).__name__}")
        self._metadata = copy.deepcopy(value)

    def use(self, plugin: Callable[..., Any] | Plugin) -> Ironsmith:
        """Append *plugin* to the pipeline."""
        self.plugins.append(as_plugin(plugin))
        return self

    @overload
    def ignore(self) -> list[IgnoreRule]: ...

    @overload
    def ignore(self, rule: IgnoreRule) -> Ironsmith: ...

    def ignore(self, rule: IgnoreRule | None = None) -> Ironsmith | list[IgnoreRule]:
        """Add an ignore rule, or return the live rule list when called bare."""
        if rule is None:
            return self._ignores
        if not isinstance(rule, str) and not callable(rule):
            raise ConfigurationError(
                f"ignore rule must be a glob string or a callable, got {type(rule).__name__}"
            )
        self._ignores.append(rule)
        return self

    def path(self, *segments: PathArg) -> Path:
        """Join *segments* onto the working directory."""
        return self._directory.joinpath(*segments)

    def _resolve(self, path: PathArg) -> Path:
        return Path(os.path.abspath(os.path.join(self._directory, path)))

    def _governor(self) -> ConcurrencyGovernor:
        return ConcurrencyGovernor(self._concurrency)

    # -- stages ------------------------------------------------------------

    def _reader(self, directory: PathArg | None = None) -> DirectoryReader:
        root = self._resolve(directory) if directory is not None else self.source
        return DirectoryReader(
            root,
            frontmatter=self._frontmatter,
            ignores=self._ignores,
            governor=self._governor(),
        )

    def _writer(self, directory: PathArg | None = None) -> DirectoryWriter:
        root = self._resolve(directory) if directory is not None else self.destination
        return DirectoryWriter(root, governor=self._governor())

    async def read(self, directory: PathArg | None = None) -> FileMap:
        """Read *directory* (default: :attr:`source`) into a file map."""
        reader = self._reader(directory)
        files = await reader.read()
        logger.debug("read %d file(s) from %s", len(files), reader.root)
        return files

    async def read_file(self, path: PathArg) -> FileRecord:
        """Read a single file, relative to :attr:`source` unless absolute."""
        return await self._reader().read_file(path)

    async def run(
        self,
        files: FileMap,
        plugins: Iterable[Callable[..., Any] | Plugin] | None = None,
    ) -> FileMap:
        """Run *plugins* (default: the registered ones) against *files*."""
        stack = self.plugins if plugins is None else [as_plugin(p) for p in plugins]
        return await run_plugins(stack, files, self)

    async def write(self, files: FileMap, directory: PathArg | None = None) -> None:
        """Write *files* to *directory* (default: :attr:`destination`)."""
        await self._writer(directory).write(files)

    async def write_file(
        self, path: str, record: FileRecord, directory: PathArg | None = None
    ) -> Path:
        """Write one record at *path* under the destination."""
        return await self._writer(directory).write_file(path, record)

    async def process(self) -> FileMap:
        """Read and run the plugins without touching the destination."""
        files = await self.read()
        return await self.run(files)

    async def build(self) -> FileMap:
        """Read, run the plugins and write the result to the destination."""
        if self._clean:
            await clean_directory(self.destination)
        files = await self.process()
        await self.write(files)
        logger.info("built %d file(s) to %s", len(files), self.destination)
        return files
