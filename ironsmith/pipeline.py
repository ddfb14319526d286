"""Plugin pipeline: runs plugins in order against a shared file map.

A plugin is any callable taking ``(files, smith)`` or
``(files, smith, done)``. Three calling conventions are accepted and may be
mixed freely:

* callback -- the callable declares (at least) three positional parameters
  and reports completion by calling ``done()`` or ``done(error)``;
* deferred -- a coroutine function, or any callable returning an
  awaitable, which is awaited;
* sync -- anything else; returning means success.

Each callable is probed once and wrapped in a :class:`Plugin`, so the
runner only ever awaits :meth:`Plugin.__call__`.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any

from ironsmith.errors import PluginError
from ironsmith.models import FileMap

if TYPE_CHECKING:
    from ironsmith.core import Ironsmith

logger = logging.getLogger(__name__)

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


class PluginKind(str, Enum):
    sync = "sync"
    callback = "callback"
    deferred = "deferred"


def _positional_count(func: Callable[..., Any]) -> int | None:
    """Number of positional parameters *func* declares; None for ``*args``."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        # builtins and some C callables have no introspectable signature
        return None
    count = 0
    for p in params:
        if p.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if p.kind in _POSITIONAL:
            count += 1
    return count


def detect_kind(func: Callable[..., Any]) -> PluginKind:
    """Classify a plugin callable by its declared parameters."""
    count = _positional_count(func)
    if count is not None and count >= 3:
        return PluginKind.callback
    if inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    ):
        return PluginKind.deferred
    return PluginKind.sync


def _plugin_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or type(func).__name__


class Plugin:
    """A plugin callable together with its resolved calling convention."""

    def __init__(self, func: Callable[..., Any], kind: PluginKind | None = None) -> None:
        if not callable(func):
            raise TypeError(f"plugin must be callable, got {type(func).__name__}")
        self.func = func
        self.kind = kind or detect_kind(func)
        self.name = _plugin_name(func)
        count = _positional_count(func)
        # sync and deferred plugins are not handed a completion signal
        self._argc = 2 if count is None else min(count, 2)

    def __repr__(self) -> str:
        return f"Plugin({self.name!r}, kind={self.kind.value})"

    async def __call__(self, files: FileMap, smith: Ironsmith) -> None:
        if self.kind is PluginKind.callback:
            await self._call_with_callback(files, smith)
            return

        result = self.func(*(files, smith)[: self._argc])
        if inspect.isawaitable(result):
            await result

    async def _call_with_callback(self, files: FileMap, smith: Ironsmith) -> None:
        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()

        def _settle(err: object) -> None:
            if finished.done():
                return  # only the first signal counts
            if err is None:
                finished.set_result(None)
            elif isinstance(err, BaseException):
                finished.set_exception(err)
            else:
                finished.set_exception(PluginError(err))

        def done(err: object = None) -> None:
            # plugins may signal from worker threads
            loop.call_soon_threadsafe(_settle, err)

        result = self.func(files, smith, done)
        if inspect.isawaitable(result):
            await result
        await finished


def as_plugin(func: Callable[..., Any] | Plugin) -> Plugin:
    return func if isinstance(func, Plugin) else Plugin(func)


async def run_plugins(plugins: Iterable[Plugin], files: FileMap, smith: Ironsmith) -> FileMap:
    """Run *plugins* one after another; the first failure propagates as is."""
    for plugin in plugins:
        logger.debug("running plugin %s (%s)", plugin.name, plugin.kind.value)
        await plugin(files, smith)
    return files
