"""
Fixed-capacity rolling window with running mean and population standard deviation.
"""

import math
from collections import deque

import numpy as np


class RollingWindow:
    """Ring buffer of the last `capacity` values of one series

    Mean and variance are updated incrementally from running sums of the
    values shifted by a reference point close to the mean, which avoids
    cancellation on large magnitudes (byte counts). Every `capacity`
    evictions the sums are recomputed from the buffer and the reference point
    is moved to the current mean, so floating-point drift cannot accumulate.
    A window of identical values reports that value as its mean and exactly
    zero variance.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Window capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._values: deque[float] = deque(maxlen=capacity)
        self._shift = 0.0
        self._sum = 0.0  # sum of (x - shift)
        self._sum_sq = 0.0  # sum of (x - shift) ** 2
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._values)

    @property
    def count(self) -> int:
        return len(self._values)

    @property
    def is_full(self) -> bool:
        return len(self._values) == self.capacity

    @property
    def values(self) -> list[float]:
        return list(self._values)

    @property
    def is_constant(self) -> bool:
        """True when every value in the window is identical"""
        return bool(self._values) and min(self._values) == max(self._values)

    @property
    def mean(self) -> float:
        if not self._values:
            return 0.0
        if self.is_constant:
            return self._values[0]
        return self._shift + self._sum / len(self._values)

    @property
    def variance(self) -> float:
        n = len(self._values)
        if n == 0 or self.is_constant:
            return 0.0
        offset = self._sum / n
        variance = self._sum_sq / n - offset * offset
        if variance <= 0.0:
            # Spread lost to rounding in the running sums
            return float(np.var(np.fromiter(self._values, dtype=float, count=n)))
        return variance

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)

    def push(self, value: float) -> None:
        """Fold a finite value into the window, evicting the oldest at capacity"""
        if not self._values:
            self._shift = value

        if self.is_full:
            oldest = self._values[0] - self._shift
            self._sum -= oldest
            self._sum_sq -= oldest * oldest
            self._evictions += 1

        self._values.append(value)
        delta = value - self._shift
        self._sum += delta
        self._sum_sq += delta * delta

        if self._evictions >= self.capacity:
            self._resync()

    def _resync(self) -> None:
        arr = np.fromiter(self._values, dtype=float, count=len(self._values))
        self._shift = float(arr.mean())
        deltas = arr - self._shift
        self._sum = float(deltas.sum())
        self._sum_sq = float(np.dot(deltas, deltas))
        self._evictions = 0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(capacity={self.capacity}, count={self.count}, "
            f"mean={self.mean:.4g}, std={self.std:.4g})"
        )
