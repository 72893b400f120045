"""
FetchQueue — collapses concurrent fetches for the same key into one.

The queue keeps an in-memory map of key → running fetch.  While a fetch
for a key is running, every further ``enqueue`` for that key gets the
very same ``FetchHandle`` back and the fetch function is not called
again.  All waiters therefore see the same result, or the same
exception object.

Each await on a handle is shielded, so a cancelled waiter only stops
waiting.  The fetch itself runs to completion for everyone else.

The entry is dropped inside the fetch task, after the fetch settled
and before any waiter resumes, so the next ``enqueue`` for the key
always starts a fresh fetch.  Failures are not remembered here;
callers that want "don't retry for a while" keep their own marker.

The map is process-local: two workers each do their own fetch.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator, Hashable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

FetchFunction = Callable[[K], Awaitable[T]]


class FetchHandle(Generic[T]):
    """Awaitable shared by every caller of one in-flight fetch."""

    __slots__ = ("_task",)

    def __init__(self, task: "asyncio.Task[T]") -> None:
        self._task = task

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self._task).__await__()

    def done(self) -> bool:
        return self._task.done()


class FetchQueue(Generic[K, T]):
    def __init__(self, fetch_function: "FetchFunction[K, T]") -> None:
        self._fetch_function = fetch_function
        self._in_flight: dict[K, FetchHandle[T]] = {}

    def enqueue(self, key: K) -> FetchHandle[T]:
        """
        Return the handle of the fetch for ``key``, starting one if none
        is running.

        Must be called from inside a running event loop.  Does not
        suspend; the caller awaits the returned handle.
        """
        existing = self._in_flight.get(key)
        if existing is not None:
            return existing

        handle: FetchHandle[T] = FetchHandle(asyncio.ensure_future(self._run(key)))
        self._in_flight[key] = handle
        logger.debug("Started fetch for %r (%d in flight)", key, len(self._in_flight))
        return handle

    async def _run(self, key: K) -> T:
        try:
            return await self._fetch_function(key)
        finally:
            # Only remove our own entry; clear() may have replaced it
            handle = self._in_flight.get(key)
            if handle is not None and handle._task is asyncio.current_task():
                del self._in_flight[key]

    def is_in_flight(self, key: K) -> bool:
        return key in self._in_flight

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def clear(self) -> None:
        """Forget all in-flight entries (running fetches keep running)."""
        self._in_flight.clear()
