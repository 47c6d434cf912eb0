"""Exponential backoff used by the transport retry policy."""

from __future__ import annotations

import random
from collections import abc


class ExponentialBackoff:
    """
    Iterator of exponentially growing delays with random variance.

    With ``attempts`` set, the iterator yields exactly that many values and then stops,
    so a ``for delay in backoff`` loop doubles as the attempt counter:

        backoff = ExponentialBackoff(maximum=30, attempts=3)
        for delay in backoff:
            if await try_operation():
                break
            if not backoff.exhausted:
                await asyncio.sleep(delay)
    """

    def __init__(
        self,
        *,
        base: float = 2,
        variance: float | tuple[float, float] = 0.1,
        shift: float = 0,
        maximum: float = 300,
        attempts: int | None = None,
    ):
        """
        Args:
            base: Exponential base (must be > 1)
            variance: Either a symmetric fraction (delay * (1 +- variance)),
                or a (min_multiplier, max_multiplier) tuple
            shift: Constant added to each delay
            maximum: Upper bound of a single delay
            attempts: Total number of values to yield; unlimited if None

        Raises:
            ValueError: If base <= 1 or attempts < 1
        """
        if base <= 1:
            raise ValueError("Base has to be greater than 1")
        if attempts is not None and attempts < 1:
            raise ValueError("At least one attempt is required")
        self.steps: int = 0
        self.base: float = float(base)
        self.shift: float = float(shift)
        self.maximum: float = float(maximum)
        self.attempts: int | None = attempts
        self.variance_min: float
        self.variance_max: float
        if isinstance(variance, tuple):
            self.variance_min, self.variance_max = variance
        else:
            self.variance_min = 1 - variance
            self.variance_max = 1 + variance
        self._yielded: int = 0

    @property
    def exp(self) -> int:
        """Current exponent value (steps - 1, minimum 0)."""
        return max(0, self.steps - 1)

    @property
    def exhausted(self) -> bool:
        """True once the last allowed attempt has been handed out."""
        return self.attempts is not None and self._yielded >= self.attempts

    def __iter__(self) -> abc.Iterator[float]:
        return self

    def __next__(self) -> float:
        if self.exhausted:
            raise StopIteration
        self._yielded += 1
        value: float = (
            pow(self.base, self.steps) * random.uniform(self.variance_min, self.variance_max)
            + self.shift
        )
        if value > self.maximum:
            return self.maximum
        # variance can already make this lower than the previous value,
        # so the exponent stops growing once the maximum is reached
        self.steps += 1
        return value

    def reset(self) -> None:
        """Reset the backoff to its initial state."""
        self.steps = 0
        self._yielded = 0
