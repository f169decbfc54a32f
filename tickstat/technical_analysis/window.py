"""
Bounded sliding window.

Classes:
    WindowBuffer: Fixed-capacity FIFO used by every rolling computation.
    TimeGate: Drops samples that arrive too close together.
"""

import logging
import numbers
from collections import deque
from typing import Any, Deque, Iterator, Optional

from .exceptions import InvalidParameterError
from .validation import validate_period

logger = logging.getLogger(__name__)


class WindowBuffer:
    """
    Fixed-capacity FIFO of samples.

    Admitting a sample past capacity evicts exactly one sample: the one
    admitted earliest among those currently held. The evicted sample is
    handed back to the caller so running accumulators can subtract it.

    Example:
        >>> window = WindowBuffer(3)
        >>> [window.add(x) for x in (1, 2, 3, 4)]
        [None, None, None, 1]
        >>> list(window)
        [2, 3, 4]
    """

    def __init__(self, capacity: int):
        """
        Args:
            capacity (int): Maximum number of samples held. Must be > 0.

        Raises:
            InvalidParameterError: If capacity is not a positive integer.
        """
        self.capacity = validate_period(capacity, "capacity")
        self._items: Deque[Any] = deque(maxlen=capacity)

    def add(self, sample: Any) -> Optional[Any]:
        """
        Admit a sample.

        Returns:
            The evicted sample, or None while the window is still filling.
        """
        evicted = self._items[0] if len(self._items) == self.capacity else None
        self._items.append(sample)
        return evicted

    @property
    def front(self) -> Optional[Any]:
        """Oldest live sample, or None if empty."""
        return self._items[0] if self._items else None

    @property
    def back(self) -> Optional[Any]:
        """Newest live sample, or None if empty."""
        return self._items[-1] if self._items else None

    @property
    def is_full(self) -> bool:
        return len(self._items) == self.capacity

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Any:
        """Positional access, oldest first; negative indexes count from the newest."""
        return self._items[index]

    def __repr__(self) -> str:
        return f"WindowBuffer(capacity={self.capacity}, size={len(self._items)})"


class TimeGate:
    """
    Admission filter for time-gapped sampling.

    A timestamp is admitted when it is at least `min_interval` after the last
    admitted one. Samples without a timestamp, and every sample when
    min_interval is 0, pass through.
    """

    def __init__(self, min_interval: float = 0):
        if isinstance(min_interval, bool) or not isinstance(min_interval, numbers.Real) or min_interval < 0:
            raise InvalidParameterError("min_interval", min_interval, "non-negative number")
        self.min_interval = min_interval
        self._last_timestamp: Optional[float] = None
        self.dropped_count = 0

    def admit(self, timestamp: Optional[float]) -> bool:
        if not self.min_interval or timestamp is None:
            return True
        if self._last_timestamp is not None and timestamp < self._last_timestamp + self.min_interval:
            self.dropped_count += 1
            logger.debug(f"Dropped sample at {timestamp}: within {self.min_interval} of {self._last_timestamp}")
            return False
        self._last_timestamp = timestamp
        return True

    @property
    def last_timestamp(self) -> Optional[float]:
        return self._last_timestamp

    def reset(self) -> None:
        self._last_timestamp = None
        self.dropped_count = 0
