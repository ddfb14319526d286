"""Resolve plugin names from a config file into plugin callables."""

from __future__ import annotations

import importlib
import importlib.metadata
import importlib.util
import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Callable

from ironsmith.config.models import PluginSpec

logger = logging.getLogger(__name__)


class PluginNotFoundError(Exception):
    """Raised when a plugin name cannot be resolved to a factory."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'failed to require plugin "{name}".')


class PluginLoadError(Exception):
    """Raised when a plugin factory fails while being set up."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        super().__init__(f'error using plugin "{name}"... {type(cause).__name__}: {cause}')
        self.__cause__ = cause


def _is_local(name: str) -> bool:
    return name.startswith((".", "/")) or name.split(":", 1)[0].endswith(".py")


class PluginLoader:
    """Turns :class:`PluginSpec` entries into plugin callables.

    Resolution order for a name:

    1. local file (``./x.py``, ``/abs/x.py``, ``x.py``) relative to *base_dir*;
    2. an entry point in the ``ironsmith.plugins`` group;
    3. an importable module, ``module`` or ``module:attribute``.

    The resolved object is a factory; it is called with the entry's options
    and must return the plugin. Modules and files expose it as ``plugin``
    unless an ``:attribute`` suffix names another.
    """

    GROUP = "ironsmith.plugins"
    DEFAULT_ATTRIBUTE = "plugin"

    def __init__(self, base_dir: Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def discover(self) -> list[str]:
        """Names of plugins registered under the entry point group."""
        return [ep.name for ep in importlib.metadata.entry_points(group=self.GROUP)]

    def load(self, spec: PluginSpec) -> Callable[..., Any]:
        factory = self.resolve(spec.name)
        try:
            plugin = factory(spec.options)
        except Exception as e:
            raise PluginLoadError(spec.name, e) from e
        if not callable(plugin):
            raise PluginLoadError(
                spec.name, TypeError(f"factory returned {type(plugin).__name__}, not a callable")
            )
        logger.debug("loaded plugin %s", spec.name)
        return plugin

    def load_all(self, specs: list[PluginSpec]) -> list[Callable[..., Any]]:
        return [self.load(spec) for spec in specs]

    def resolve(self, name: str) -> Callable[..., Any]:
        """Fallback chain: local file > entry point > importable module."""
        if _is_local(name):
            return self._load_from_file(name)

        result = self._load_from_entry_point(name)
        if result is not None:
            return result

        return self._load_from_module(name)

    def _split(self, name: str) -> tuple[str, str]:
        target, _, attribute = name.partition(":")
        return target, attribute or self.DEFAULT_ATTRIBUTE

    def _load_from_entry_point(self, name: str) -> Callable[..., Any] | None:
        for ep in importlib.metadata.entry_points(group=self.GROUP):
            if ep.name == name:
                return ep.load()
        return None

    def _load_from_module(self, name: str) -> Callable[..., Any]:
        module_name, attribute = self._split(name)
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # a missing dependency of the plugin is a load error, not a lookup miss
            if e.name and not module_name.startswith(e.name):
                raise PluginLoadError(name, e) from e
            raise PluginNotFoundError(name) from e
        except Exception as e:
            raise PluginLoadError(name, e) from e
        return self._get_factory(name, module, attribute)

    def _load_from_file(self, name: str) -> Callable[..., Any]:
        file_part, attribute = self._split(name)
        path = Path(file_part)
        if not path.is_absolute():
            path = self._base_dir / path
        if path.suffix != ".py":
            path = path.with_suffix(".py")
        if not path.is_file():
            raise PluginNotFoundError(name)

        module_name = f"ironsmith_local_plugin_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise PluginNotFoundError(name)
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise PluginLoadError(name, e) from e
        return self._get_factory(name, module, attribute)

    def _get_factory(self, name: str, module: ModuleType, attribute: str) -> Callable[..., Any]:
        factory = getattr(module, attribute, None)
        if factory is None or not callable(factory):
            raise PluginNotFoundError(name)
        return factory
