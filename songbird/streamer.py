from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, Generic, TypeVar

from songbird.exceptions import StreamClosedError, StreamConsumedError
from songbird.log import logger

T = TypeVar("T")

_DONE = object()


class Streamable(Generic[T]):
    """
    Single-consumer channel of partial values.

    Producers push with ``update`` and seal with ``done``. The consumer iterates
    once and the iteration ends when the channel is sealed. The returned object
    is a handle: producers may keep updating it after it has been handed out.
    """

    def __init__(self, initial: T | None = None):
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._value: T | None = None
        self._closed = False
        self._consumed = False
        if initial is not None:
            self.update(initial)

    @property
    def value(self) -> T | None:
        """The latest value pushed to the stream."""
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def update(self, value: T) -> None:
        """Push a partial value."""
        if self._closed:
            raise StreamClosedError("Cannot update a stream that is already done")
        self._value = value
        self._queue.put_nowait(value)

    def done(self, value: T | None = None) -> None:
        """Seal the stream, optionally pushing a final value first."""
        if self._closed:
            raise StreamClosedError("Stream is already done")
        if value is not None:
            self.update(value)
        self._closed = True
        self._queue.put_nowait(_DONE)

    def __aiter__(self) -> AsyncIterator[T]:
        if self._consumed:
            raise StreamConsumedError("Stream already has a consumer")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            item = await self._queue.get()
            if item is _DONE:
                return
            yield item

    async def collect(self) -> list[T]:
        """Consume the whole stream."""
        return [item async for item in self]


_background_tasks: set[asyncio.Task] = set()


def run_without_blocking(
    coro: Coroutine[Any, Any, Any],
    *streams: Streamable[T],
    on_error: Callable[[Exception], T] | None = None,
) -> asyncio.Task:
    """
    Run ``coro`` as a background task.
    If it fails, every stream it was expected to seal is sealed with ``on_error(e)``.
    """

    async def runner() -> None:
        try:
            await coro
        except Exception as e:
            logger.exception(f"Error in background task: {e}")
            for stream in streams:
                if not stream.closed:
                    stream.done(on_error(e) if on_error else None)

    task = asyncio.create_task(runner())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
