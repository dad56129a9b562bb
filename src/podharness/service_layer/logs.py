"""Fan-in of several per-service log streams into one."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Iterable

from podharness.domain.model import LogLine
from podharness.interfaces.backend import BackendError

logger = logging.getLogger(__name__)


class LogFanIn:
    """Merge log streams in arrival order.

    One drain task per source pushes into a shared queue, so every stream
    keeps being polled even while nobody reads the merged side. Lines are
    ordered per source only.

    Example:
        async with LogFanIn(streams) as logs:
            line = await logs.get()
    """

    def __init__(self, sources: Iterable[AsyncIterator[LogLine]]) -> None:
        self._sources = list(sources)
        self._queue: asyncio.Queue[LogLine] = asyncio.Queue()
        self._tasks: list[asyncio.Task[None]] = []

    async def __aenter__(self) -> LogFanIn:
        self._tasks = [
            asyncio.create_task(self._drain(source)) for source in self._sources
        ]
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def _drain(self, source: AsyncIterator[LogLine]) -> None:
        try:
            async with contextlib.aclosing(source):
                async for line in source:
                    self._queue.put_nowait(line)
        except BackendError as exc:
            logger.warning("Log stream ended with an error: %s", exc)

    async def get(self) -> LogLine:
        """Wait for the next line from any source."""
        return await self._queue.get()

    async def aclose(self) -> None:
        """Stop draining every source."""
        for task in self._tasks:
            task.cancel()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Log drain failed: %r", result)
        self._tasks = []
