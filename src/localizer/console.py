"""
Leveled console output for streaming RPCs.

An operation pushes messages into a ``ConsoleStream`` while it runs and the
transport drains them with ``async for``. The queue is bounded so a chatty
operation waits for a slow client instead of buffering without limit.
Closing the stream is the only completion signal; there is no terminal
message.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from localizer.api.v1 import v1_pb2

DEFAULT_BUFFER_SIZE = 64

_CLOSED = object()


class ConsoleClosedError(RuntimeError):
    """Raised when writing to a console stream that was already closed."""


class ConsoleStream:
    """Bounded producer/consumer queue of ``ConsoleResponse`` messages."""

    def __init__(self, maxsize: int = DEFAULT_BUFFER_SIZE) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, level: int, message: str) -> None:
        if level == v1_pb2.CONSOLE_LEVEL_UNSPECIFIED:
            raise ValueError("console messages must carry a level")
        if self._closed:
            raise ConsoleClosedError("console stream is closed")

        await self._queue.put(v1_pb2.ConsoleResponse(level=level, message=message))

    async def info(self, message: str) -> None:
        await self.emit(v1_pb2.CONSOLE_LEVEL_INFO, message)

    async def warn(self, message: str) -> None:
        await self.emit(v1_pb2.CONSOLE_LEVEL_WARN, message)

    async def error(self, message: str) -> None:
        await self.emit(v1_pb2.CONSOLE_LEVEL_ERROR, message)

    def close(self) -> None:
        """Mark the stream finished. Never blocks; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if not self._queue.full():
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[v1_pb2.ConsoleResponse]:
        while True:
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
