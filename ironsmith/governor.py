"""Bounded-parallelism admission control for filesystem work."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from ironsmith.errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

UNBOUNDED = math.inf


def validate_limit(value: object) -> int | float:
    """Return a usable concurrency limit or raise ConfigurationError.

    Accepts a positive int, ``math.inf`` or ``None`` (both mean unbounded).
    """
    if value is None:
        return UNBOUNDED
    if isinstance(value, bool):
        raise ConfigurationError(f"concurrency must be a positive integer, got {value!r}")
    if isinstance(value, float) and value == UNBOUNDED:
        return UNBOUNDED
    if isinstance(value, int) and value > 0:
        return value
    raise ConfigurationError(f"concurrency must be a positive integer, got {value!r}")


class ConcurrencyGovernor:
    """Runs coroutines with at most ``limit`` of them in flight.

    The first failure fails the whole batch: queued items are cancelled
    before they start and the exception is re-raised unchanged. Work that
    already started in a thread keeps running, but its result is dropped.
    """

    def __init__(self, limit: int | float = UNBOUNDED) -> None:
        self.limit = validate_limit(limit)

    async def map(
        self,
        func: Callable[[T], Awaitable[R]],
        items: Iterable[T],
    ) -> list[R]:
        items = list(items)
        if not items:
            return []

        semaphore = None
        if self.limit != UNBOUNDED and self.limit < len(items):
            semaphore = asyncio.Semaphore(int(self.limit))
        failed = asyncio.Event()

        async def _admit(item: T) -> R:
            if semaphore is None:
                return await func(item)
            async with semaphore:
                # a slot freed by a failing task must not start new work
                if failed.is_set():
                    raise asyncio.CancelledError
                try:
                    return await func(item)
                except Exception:
                    failed.set()
                    raise

        tasks = [asyncio.ensure_future(_admit(item)) for item in items]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for task in tasks:
            if not task.cancelled() and task.exception() is not None:
                logger.debug("governed batch of %d item(s) failed", len(items))
                raise task.exception()
        return [task.result() for task in tasks]
