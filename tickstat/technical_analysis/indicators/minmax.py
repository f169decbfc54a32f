"""
Min/Max trackers.

This module implements O(1) amortized extremum tracking over a sliding window.

Classes:
    ExtremumTracker: Monotonic-queue running max or min.
    RollingMinMax: Window buffer paired with a max and a min tracker.
"""

import math
import numbers
from typing import List, NamedTuple, Optional, Tuple

from ..exceptions import InvalidDataError, InvalidParameterError
from ..validation import validate_period
from ..window import TimeGate, WindowBuffer


class MinMaxValue(NamedTuple):
    max: float
    min: float


def _check_value(value, owner: str) -> float:
    if not isinstance(value, numbers.Real) or isinstance(value, bool) or not math.isfinite(value):
        raise InvalidDataError("value", value, "finite number required", owner)
    return value


class _MonotonicRing:
    """Fixed-capacity ring of (value, insertion order) pairs with deque-style ends."""

    __slots__ = ('_values', '_orders', '_capacity', '_head', '_size')

    def __init__(self, capacity: int):
        self._values: List[float] = [0.0] * capacity
        self._orders: List[int] = [0] * capacity
        self._capacity = capacity
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def entry(self, offset: int) -> Tuple[float, int]:
        idx = (self._head + offset) % self._capacity
        return self._values[idx], self._orders[idx]

    def front(self) -> Tuple[float, int]:
        return self.entry(0)

    def back(self) -> Tuple[float, int]:
        return self.entry(self._size - 1)

    def push_back(self, value: float, order: int) -> None:
        if self._size == self._capacity:
            raise IndexError("monotonic ring overflow")
        idx = (self._head + self._size) % self._capacity
        self._values[idx] = value
        self._orders[idx] = order
        self._size += 1

    def pop_back(self) -> None:
        self._size -= 1

    def pop_front(self) -> None:
        self._head = (self._head + 1) % self._capacity
        self._size -= 1

    def clear(self) -> None:
        self._head = 0
        self._size = 0


class ExtremumTracker:
    """
    Running max (or min) over the last `period` admitted values.

    Keeps a sequence of (value, insertion order) pairs that is monotonically
    non-increasing (max) or non-decreasing (min) from front to back. On
    admission, entries whose order slid out of the window leave the front and
    entries dominated by the new value leave the back; the front is always the
    extremum of the live window. Each value is pushed once and popped at most
    once, so n admissions cost O(n) in total.

    Example:
        >>> tracker = ExtremumTracker(3, mode='max')
        >>> for x in (5, 1, 4, 2):
        ...     tracker.add(x)
        >>> tracker.value
        4
    """

    def __init__(self, period: int, mode: str = 'max'):
        """
        Args:
            period (int): Window length. Must be > 0.
            mode (str): 'max' or 'min'.
        """
        self.period = validate_period(period)
        if mode not in ('max', 'min'):
            raise InvalidParameterError("mode", mode, "'max' or 'min'", "ExtremumTracker")
        self.mode = mode
        # One slot of slack for the entry pushed before the window is trimmed
        self._ring = _MonotonicRing(period + 1)
        self._count = 0

    def _is_dominated(self, held: float, incoming: float) -> bool:
        if self.mode == 'max':
            return held <= incoming
        return held >= incoming

    def _is_expired(self, order: int, newest_order: int) -> bool:
        return order <= newest_order - self.period

    def add(self, value: float) -> None:
        """
        Admit a value.

        Raises:
            InvalidDataError: If value is not a finite number.
        """
        _check_value(value, "ExtremumTracker")
        order = self._count
        ring = self._ring

        while len(ring) and self._is_expired(ring.front()[1], order):
            ring.pop_front()

        while len(ring) and self._is_dominated(ring.back()[0], value):
            ring.pop_back()

        ring.push_back(value, order)
        self._count += 1

    def peek_next(self, candidate: float) -> float:
        """
        Extremum after admitting `candidate`, computed without mutation.

        Applies the same expiry and domination rules as add(): the first
        non-expired entry survives admission only if the candidate does not
        dominate it, and it is then the front.
        """
        _check_value(candidate, "ExtremumTracker")
        order = self._count
        ring = self._ring
        survivor: Optional[float] = None

        # At most one entry can newly expire, so this loop is O(1)
        for offset in range(len(ring)):
            held, held_order = ring.entry(offset)
            if not self._is_expired(held_order, order):
                survivor = held
                break

        if survivor is None or self._is_dominated(survivor, candidate):
            return candidate
        return survivor

    @property
    def value(self) -> Optional[float]:
        """Current extremum, or None before the first admission."""
        return self._ring.front()[0] if len(self._ring) else None

    @property
    def is_ready(self) -> bool:
        return self._count >= self.period

    @property
    def count(self) -> int:
        """Values admitted since construction or reset."""
        return self._count

    def reset(self) -> None:
        self._ring.clear()
        self._count = 0


class RollingMinMax:
    """
    Rolling max and min over a shared sliding window.

    Attributes:
        period (int): The lookback period for the calculation.
        min_interval (float): Minimum timestamp spacing between admitted
            samples; 0 admits every sample.
    """

    def __init__(self, period: int, min_interval: float = 0):
        """
        Args:
            period (int): The lookback period. Must be > 0.
            min_interval (float): Samples arriving with a timestamp earlier
                than last_admitted + min_interval are dropped.
        """
        self.period = validate_period(period)
        self._gate = TimeGate(min_interval)
        self._window = WindowBuffer(period)
        self._max_tracker = ExtremumTracker(period, 'max')
        self._min_tracker = ExtremumTracker(period, 'min')

    def add(self, value: float, timestamp: Optional[float] = None) -> bool:
        """
        Admit a value.

        Returns:
            bool: False if the sample was dropped by the time gap, else True.

        Raises:
            InvalidDataError: If value is not a finite number.
        """
        _check_value(value, "RollingMinMax")

        if not self._gate.admit(timestamp):
            return False

        self._window.add(value)
        self._max_tracker.add(value)
        self._min_tracker.add(value)
        return True

    def peek_next(self, candidate: float) -> MinMaxValue:
        """(max, min) the window would report after admitting candidate."""
        return MinMaxValue(self._max_tracker.peek_next(candidate), self._min_tracker.peek_next(candidate))

    @property
    def is_ready(self) -> bool:
        """True once the window is full."""
        return self._window.is_full

    @property
    def max(self) -> Optional[float]:
        return self._max_tracker.value

    @property
    def min(self) -> Optional[float]:
        return self._min_tracker.value

    @property
    def mid(self) -> Optional[float]:
        if not len(self._window):
            return None
        return (self.max + self.min) / 2.0

    @property
    def value(self) -> Optional[MinMaxValue]:
        """(max, min) of a full window, or None while filling."""
        if not self.is_ready:
            return None
        return MinMaxValue(self.max, self.min)

    @property
    def window(self) -> WindowBuffer:
        return self._window

    @property
    def dropped_count(self) -> int:
        """Samples rejected by the time gap."""
        return self._gate.dropped_count

    def __len__(self) -> int:
        return len(self._window)

    def reset(self) -> None:
        """Reset the calculator to its initial state."""
        self._window.clear()
        self._max_tracker.reset()
        self._min_tracker.reset()
        self._gate.reset()
