"""Throttling for outgoing image fetches."""

from __future__ import annotations

import asyncio


class RateLimiter:
    """
    Async context manager allowing at most ``capacity`` entries per ``window`` seconds.

    Concurrent holders count against the capacity too, so a slow download keeps
    its slot until it exits the context. Entries past the limit wait, they are never rejected.

        limiter = RateLimiter(capacity=10, window=1)
        async with limiter:
            await download()
    """

    def __init__(self, *, capacity: int, window: float):
        if capacity < 1:
            raise ValueError("Capacity has to be at least 1")
        self.total: int = 0
        self.concurrent: int = 0
        self.window: float = window
        self.capacity: int = capacity
        self._reset_task: asyncio.Task[None] | None = None
        self._cond: asyncio.Condition = asyncio.Condition()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.concurrent}/{self.total}/{self.capacity})"

    def _can_proceed(self) -> bool:
        return max(self.total, self.concurrent) < self.capacity

    async def __aenter__(self) -> None:
        async with self._cond:
            await self._cond.wait_for(self._can_proceed)
            self.total += 1
            self.concurrent += 1
            if self._reset_task is None:
                self._reset_task = asyncio.create_task(self._window_task())

    async def __aexit__(self, exc_type, exc, tb) -> None:
        async with self._cond:
            self.concurrent -= 1
            self._cond.notify(self.capacity - self.concurrent)

    async def _window_task(self) -> None:
        await asyncio.sleep(self.window)
        async with self._cond:
            self._reset_task = None
            self.total = 0
            self._cond.notify(self.capacity - self.concurrent)

    def close(self) -> None:
        """Stop the pending window reset, if any."""
        if self._reset_task is not None:
            self._reset_task.cancel()
            self._reset_task = None
