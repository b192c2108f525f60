"""
Fixed-width moving averages.

The estimator keeps a running sum alongside a bounded queue of the last
``window_size`` values, so each step is O(1) and a whole series is O(N).
Moving averages are recomputed every time the window width changes.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class RollingMeanEstimator:
    """
    Running mean over the most recent ``window_size`` values.

    Warm-up: peek() returns None until a full window has been seen.
    """

    window_size: int
    _values: Deque[float] = field(default_factory=deque, repr=False)
    _sum: float = 0.0

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")

    def update(self, value: float) -> None:
        value = float(value)
        self._values.append(value)
        self._sum += value
        if len(self._values) > self.window_size:
            self._sum -= self._values.popleft()

    def peek(self) -> Optional[float]:
        if len(self._values) < self.window_size:
            return None
        return self._sum / self.window_size

    @property
    def count(self) -> int:
        return len(self._values)


def rolling_mean(
    items: Sequence[T],
    window_size: int,
    accessor: Callable[[T], float],
) -> list[Optional[float]]:
    """Moving average of ``accessor(item)`` over ``items``.

    Args:
        items: Source sequence (e.g. date-ordered nights).
        window_size: Window width k (>= 1).
        accessor: Extracts the numeric value from each item.

    Returns:
        A list the same length as ``items``; index i holds the mean of the
        values at [i-k+1, i] once that window exists, otherwise None.
        A window wider than the sequence leaves every index None.
    """
    estimator = RollingMeanEstimator(window_size)
    out: list[Optional[float]] = []
    for item in items:
        estimator.update(accessor(item))
        out.append(estimator.peek())
    return out
