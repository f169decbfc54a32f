"""Base class and sample types for streaming indicators."""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Mapping
from typing import Any, Deque, List, NamedTuple, Optional, Tuple, Union
import math
import numbers
import logging

from .exceptions import (
    BarRangeError,
    InsufficientDataError,
    InvalidDataError,
    MissingInputError,
)
from .validation import validate_input_field, validate_period

logger = logging.getLogger(__name__)

HISTORY_LENGTH = 1000


class Bar(NamedTuple):
    """One OHLC observation; only the fields the indicators read."""
    high: float
    low: float
    close: float


Sample = Union[int, float, Bar, Tuple[float, float, float], Mapping]


class BaseIndicator(ABC):
    """Abstract base for streaming technical indicators."""

    # Class attribute to be overridden by subclasses
    required_inputs: Tuple[str, ...] = ('close',)

    def __init__(self, period: int, input_field: str = 'close'):
        """Initialize indicator with period and input field."""
        self._name = self.__class__.__name__
        self.period = validate_period(period, indicator_name=self._name)
        self.input_field = validate_input_field(input_field, self._name)

        self._output_history: Deque[Any] = deque(maxlen=HISTORY_LENGTH)

        # State management
        self._ready_threshold = period
        self._data_count = 0

        # Composite pattern support
        self._children: List['BaseIndicator'] = []

        self._last_update_time: Optional[float] = None

        logger.debug(f"Initialized {self._name} with period={period}, input_field={input_field}")

    @abstractmethod
    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        """
        Admit one new sample and update the indicator state incrementally.

        Concrete indicators must:
        1. Validate the sample (raising InvalidDataError / MissingInputError)
        2. Update internal accumulators in O(1) amortized time
        3. Store the new output in the history buffer

        Args:
            sample: A scalar price, a Bar / (high, low, close) tuple, or a
                mapping carrying OHLCV fields and an optional 'timestamp'.
            timestamp: Optional caller-supplied timestamp; overrides the
                mapping's 'timestamp' key.
        """

    @property
    @abstractmethod
    def value(self) -> Any:
        """
        Current output, or None while the indicator is warming up.

        Scalar indicators return a float; composite indicators return a
        named tuple of related values.
        """

    @property
    def is_ready(self) -> bool:
        """True once enough samples were admitted to produce a valid output."""
        return self._data_count >= self._ready_threshold

    @property
    def sample_count(self) -> int:
        """Number of samples admitted so far."""
        return self._data_count

    @property
    def previous(self) -> Any:
        """Output before the most recent admission, or None."""
        if len(self._output_history) < 2:
            return None
        return self._output_history[-2]

    @property
    def children(self) -> List['BaseIndicator']:
        """Child indicators this one is composed of."""
        return self._children.copy()

    @property
    def last_update_time(self) -> Optional[float]:
        return self._last_update_time

    def require(self) -> Any:
        """
        Return the current value, raising instead of returning None.

        Raises:
            InsufficientDataError: If the indicator is still warming up.
        """
        current = self.value
        if current is None:
            raise InsufficientDataError(self._data_count, self._ready_threshold, self._name)
        return current

    def get_history(self, n: int = 10) -> List[Any]:
        """
        Retrieve the last n outputs, oldest first.

        Entries recorded during warm-up are None.
        """
        if n <= 0:
            return []

        history_length = len(self._output_history)
        start_idx = max(0, history_length - n)

        return list(self._output_history)[start_idx:]

    def reset(self) -> None:
        """Return the indicator to its post-construction state."""
        self._output_history.clear()
        self._data_count = 0
        self._last_update_time = None

        for child in self._children:
            child.reset()

        logger.debug(f"Reset {self._name} indicator state")

    def _extract_value(self, sample: Sample) -> float:
        """
        Pull the configured input field out of a scalar or mapping sample.

        Raises:
            MissingInputError: If a mapping lacks the input field.
            InvalidDataError: If the value is None, non-numeric, NaN or infinite.
        """
        if isinstance(sample, Mapping):
            if self.input_field not in sample:
                raise MissingInputError([self.input_field], list(self.required_inputs), self._name)
            return self._check_number(self.input_field, sample[self.input_field])

        if isinstance(sample, tuple):
            # Scalar indicators read the close of an OHLC tuple
            return self._extract_bar(sample).close

        return self._check_number(self.input_field, sample)

    def _extract_bar(self, sample: Sample) -> Bar:
        """
        Normalise an OHLC sample and enforce low <= close <= high.

        A scalar is treated as a degenerate bar with high == low == close.

        Raises:
            MissingInputError: If a mapping lacks high, low or close.
            InvalidDataError: If a field is not a finite number or the tuple
                does not hold exactly three values.
            BarRangeError: If high < low or close lies outside [low, high].
        """
        if isinstance(sample, Mapping):
            missing_fields = [f for f in ('high', 'low', 'close') if f not in sample]
            if missing_fields:
                raise MissingInputError(missing_fields, ['high', 'low', 'close'], self._name)
            raw = (sample['high'], sample['low'], sample['close'])
        elif isinstance(sample, tuple):
            if len(sample) != 3:
                raise InvalidDataError("sample", sample, "expected (high, low, close)", self._name)
            raw = sample
        else:
            price = self._check_number('close', sample)
            return Bar(price, price, price)

        high = self._check_number('high', raw[0])
        low = self._check_number('low', raw[1])
        close = self._check_number('close', raw[2])

        if high < low or not low <= close <= high:
            raise BarRangeError(high, low, close, self._name)

        return Bar(high, low, close)

    def _extract_timestamp(self, sample: Sample, timestamp: Optional[float]) -> Optional[float]:
        if timestamp is not None:
            return timestamp
        if isinstance(sample, Mapping):
            return sample.get('timestamp')
        return None

    def _check_number(self, field_name: str, value: Any) -> float:
        if value is None:
            raise InvalidDataError(field_name, value, "value is None", self._name)
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidDataError(field_name, value, "value is not numeric", self._name)
        if math.isnan(value):
            raise InvalidDataError(field_name, value, "value is NaN", self._name)
        if math.isinf(value):
            raise InvalidDataError(field_name, value, "value is infinite", self._name)
        return float(value)

    def _update_metadata(self, timestamp: Optional[float] = None) -> None:
        self._data_count += 1
        if timestamp is not None:
            self._last_update_time = timestamp

    def _store_output(self, output_value: Any) -> None:
        self._output_history.append(output_value)

    def __repr__(self) -> str:
        ready_status = "ready" if self.is_ready else f"warming up ({self._data_count}/{self._ready_threshold})"
        return f"{self._name}(period={self.period}, {ready_status})"

    def __str__(self) -> str:
        return self.__repr__()
