"""
In-memory image cache with request coalescing.

Every key has at most one network fetch outstanding. Callers asking for a key that's
already being fetched join that fetch instead of starting their own, and all of them
receive the same outcome.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict, abc
from typing import Any

from localevents.exceptions import FetchError, InvalidKeyError


logger = logging.getLogger("LocalEvents.cache")

FetchFunc = abc.Callable[[str], abc.Awaitable[bytes]]


class InFlightRequest:
    """A fetch that has started, and the futures of everyone waiting for it."""

    __slots__ = ("key", "waiters", "task")

    def __init__(self, key: str):
        self.key: str = key
        self.waiters: list[asyncio.Future[bytes]] = []
        self.task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"InFlightRequest({self.key!r}, waiters={len(self.waiters)})"


class CacheStats:
    __slots__ = ("hits", "misses", "coalesced", "fetches", "failures", "evictions")

    def __init__(self) -> None:
        self.hits: int = 0
        self.misses: int = 0
        self.coalesced: int = 0
        self.fetches: int = 0
        self.failures: int = 0
        self.evictions: int = 0

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.__slots__}


class AssetCache:
    """
    Key to bytes store that coalesces concurrent loads of the same key.

    The committed entries and the in-flight table are only ever touched from the event loop
    thread, by code paths that don't await in between reading and updating them.
    That makes the miss -> register -> start fetch sequence atomic for every other caller.

    Failures are never committed, so a later load of a failed key fetches it again.
    With a non-zero ``max_bytes``, committed entries are evicted least-recently-used first
    once their total size goes over the bound. In-flight requests are never evicted.
    """

    def __init__(self, fetch: FetchFunc, *, max_bytes: int = 0):
        """
        Parameters
        ----------
        fetch : Callable[[str], Awaitable[bytes]]
            Downloads the bytes behind a key. Expected to raise FetchError on failure.
        max_bytes : int, optional
            Upper bound of the committed entries' total size, 0 for no bound
        """
        if max_bytes < 0:
            raise ValueError("max_bytes can't be negative")
        self._fetch: FetchFunc = fetch
        self._max_bytes: int = max_bytes
        self._entries: OrderedDict[str, bytes] = OrderedDict()
        self._in_flight: dict[str, InFlightRequest] = {}
        self._size: int = 0
        self.stats = CacheStats()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(entries={len(self._entries)}, "
            f"in_flight={len(self._in_flight)}, bytes={self._size})"
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def size(self) -> int:
        """Total size of the committed entries, in bytes."""
        return self._size

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @max_bytes.setter
    def max_bytes(self, value: int) -> None:
        if value < 0:
            raise ValueError("max_bytes can't be negative")
        self._max_bytes = value
        self._evict()

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    @staticmethod
    def _check_key(key: Any) -> None:
        if not isinstance(key, str) or not key.strip():
            raise InvalidKeyError(f"Invalid cache key: {key!r}")

    def peek(self, key: str) -> bytes | None:
        """Return the committed bytes for the key, without ever fetching."""
        self._check_key(key)
        return self._entries.get(key)

    def load(self, key: str) -> asyncio.Future[bytes]:
        """
        Request the bytes of a key.

        Never blocks: the returned future is already resolved on a cache hit,
        and otherwise resolves once the (possibly shared) fetch completes.
        Every caller gets its own future, so cancelling one of them leaves the fetch
        and the other waiters alone.

        Raises
        ------
        InvalidKeyError
            Synchronously, if the key is empty or not a string
        """
        self._check_key(key)
        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[bytes] = loop.create_future()
        data = self._entries.get(key)
        if data is not None:
            self._entries.move_to_end(key)
            self.stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            waiter.set_result(data)
            return waiter
        request = self._in_flight.get(key)
        if request is not None:
            self.stats.coalesced += 1
            logger.debug(f"Joining in-flight fetch ({len(request.waiters)} waiting): {key}")
            request.waiters.append(waiter)
            return waiter
        self.stats.misses += 1
        self.stats.fetches += 1
        request = InFlightRequest(key)
        request.waiters.append(waiter)
        self._in_flight[key] = request
        logger.debug(f"Cache miss, fetching: {key}")
        request.task = loop.create_task(self._run_fetch(request), name=f"asset-fetch:{key}")
        return waiter

    async def get(self, key: str) -> bytes:
        """Awaitable shortcut for `load`."""
        return await self.load(key)

    async def _run_fetch(self, request: InFlightRequest) -> None:
        try:
            data = await self._fetch(request.key)
        except asyncio.CancelledError:
            self._settle(request)
            for waiter in request.waiters:
                waiter.cancel()
            raise
        except FetchError as exc:
            logger.warning(f"Fetch failed for {request.key}: {exc}")
            self._fail(request, exc)
            return
        except Exception as exc:
            logger.exception(f"Unexpected error while fetching {request.key}")
            error = FetchError(f"Unexpected error: {exc!r}", url=request.key)
            error.__cause__ = exc
            self._fail(request, error)
            return
        if not isinstance(data, (bytes, bytearray, memoryview)):
            self._fail(
                request,
                FetchError(f"Fetch returned {type(data).__name__}, not bytes", url=request.key),
            )
            return
        data = bytes(data)
        self._settle(request, data)
        for waiter in request.waiters:
            if not waiter.done():
                waiter.set_result(data)

    def _fail(self, request: InFlightRequest, error: FetchError) -> None:
        self.stats.failures += 1
        self._settle(request)
        for waiter in request.waiters:
            if not waiter.done():
                waiter.set_exception(error)

    def _settle(self, request: InFlightRequest, data: bytes | None = None) -> None:
        # Runs without yielding to the loop: the in-flight entry goes away and the
        # committed entry (if any) appears as one step.
        if self._in_flight.get(request.key) is request:
            del self._in_flight[request.key]
        if data is not None:
            self._commit(request.key, data)

    def _commit(self, key: str, data: bytes) -> None:
        if self._max_bytes and len(data) > self._max_bytes:
            logger.debug(f"Not caching {key}: {len(data)} bytes is over the cache bound")
            return
        previous = self._entries.pop(key, None)
        if previous is not None:
            self._size -= len(previous)
        self._entries[key] = data
        self._size += len(data)
        self._evict()

    def _evict(self) -> None:
        if not self._max_bytes:
            return
        while self._size > self._max_bytes and self._entries:
            key, data = self._entries.popitem(last=False)
            self._size -= len(data)
            self.stats.evictions += 1
            logger.debug(f"Evicted {key} ({len(data)} bytes)")

    def invalidate(self, key: str) -> bool:
        """
        Drop the committed entry of a key.

        An in-flight fetch for the key is left running. Returns True if an entry was dropped.
        """
        self._check_key(key)
        data = self._entries.pop(key, None)
        if data is None:
            return False
        self._size -= len(data)
        return True

    def clear(self) -> None:
        """Drop every committed entry. In-flight fetches keep running."""
        self._entries.clear()
        self._size = 0

    def status(self) -> dict[str, int]:
        return {
            **self.stats.as_dict(),
            "entries": len(self._entries),
            "in_flight": len(self._in_flight),
            "bytes": self._size,
            "max_bytes": self._max_bytes,
        }

    async def close(self) -> None:
        """Cancel every in-flight fetch. Their waiters end up cancelled, nothing gets committed."""
        requests = list(self._in_flight.values())
        tasks = [request.task for request in requests if request.task is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        # a task cancelled before its first step never reaches its own cleanup
        for request in requests:
            for waiter in request.waiters:
                waiter.cancel()
        self._in_flight.clear()
