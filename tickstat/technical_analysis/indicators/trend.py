"""
Trend-following technical indicators.

This module implements the moving-average accumulators every other indicator
is built on. All indicators use O(1) streaming updates.

Classes:
    SMA: Simple Moving Average with O(1) rolling sum technique
    EMA: Exponential Moving Average with SMA seeding during warm-up
"""

from typing import Optional

from ..base import BaseIndicator, Sample
from ..exceptions import InvalidParameterError
from ..window import TimeGate, WindowBuffer
from .smoothing import EmaSmoothing, SmoothingStrategy, WildersSmoothing


class SMA(BaseIndicator):
    """
    Simple Moving Average (SMA) indicator.

    Calculates the arithmetic mean of the last `period` admitted samples with
    a running sum that avoids recalculation.

    Mathematical Formula:
        SMA = (P1 + P2 + ... + Pn) / n

    For streaming updates:
        sum += new_price - evicted_price

    Time-gapped mode:
        With min_interval > 0, a sample whose timestamp is earlier than
        last_admitted + min_interval is dropped. This keeps a tick stream
        from over-weighting bursts.

    Example:
        >>> sma = SMA(period=20)
        >>> for bar in market_data:
        ...     sma.add(bar)
        ...     if sma.is_ready:
        ...         print(f"SMA(20): {sma.value:.2f}")
    """

    def __init__(self, period: int, input_field: str = 'close', min_interval: float = 0):
        """
        Initialize Simple Moving Average indicator.

        Args:
            period (int): Number of samples averaged. Must be >= 1.
            input_field (str): Field read from mapping samples. Defaults to 'close'.
            min_interval (float): Minimum timestamp spacing between admitted
                samples. 0 admits everything.

        Raises:
            InvalidParameterError: If period or min_interval is invalid.
        """
        super().__init__(period, input_field)
        self.required_inputs = (self.input_field,)

        self._window = WindowBuffer(period)
        self._gate = TimeGate(min_interval)

        # Running sum for O(1) calculation efficiency
        self._sum = 0.0

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        """
        Admit a sample and update the running sum.

        Raises:
            MissingInputError: If a mapping sample lacks the input field.
            InvalidDataError: If the value is None, NaN, infinite or non-numeric.
        """
        value = self._extract_value(sample)
        timestamp = self._extract_timestamp(sample, timestamp)

        if not self._gate.admit(timestamp):
            return

        evicted = self._window.add(value)
        if evicted is not None:
            self._sum -= evicted
        self._sum += value

        self._update_metadata(timestamp)
        self._store_output(self.value)

    @property
    def value(self) -> Optional[float]:
        """Current SMA, or None until `period` samples were admitted."""
        if not self._window.is_full:
            return None

        return self._sum / self.period

    @property
    def is_ready(self) -> bool:
        return self._window.is_full

    @property
    def count(self) -> int:
        """Samples currently in the window."""
        return len(self._window)

    @property
    def dropped_count(self) -> int:
        return self._gate.dropped_count

    def peek_next(self, candidate: float) -> Optional[float]:
        """SMA after admitting candidate, without mutating state."""
        if self._window.is_full:
            return (self._sum - self._window.front + candidate) / self.period
        if len(self._window) == self.period - 1:
            return (self._sum + candidate) / self.period
        return None

    def reset(self) -> None:
        super().reset()
        self._window.clear()
        self._gate.reset()
        self._sum = 0.0


class EMA(BaseIndicator):
    """
    Exponential Moving Average (EMA) indicator.

    Gives more weight to recent prices. The first `period` samples seed the
    value with their simple average; afterwards:

        EMA_today = α * Price_today + (1-α) * EMA_yesterday

    where α = 2 / (period + 1), α = 1 / period for Wilder's variant, or a
    custom alpha.

    Before the seed completes `value` is None, never a partial number.

    Example:
        >>> ema = EMA(period=12)
        >>> wilder = EMA(period=14, wilder=True)
        >>> for bar in market_data:
        ...     ema.add(bar)
    """

    def __init__(self, period: int, input_field: str = 'close', alpha: Optional[float] = None,
                 wilder: bool = False):
        """
        Initialize Exponential Moving Average indicator.

        Args:
            period (int): Warm-up length and smoothing period. Must be >= 1.
            input_field (str): Field read from mapping samples.
            alpha (Optional[float]): Custom smoothing factor in (0, 1].
            wilder (bool): Use Wilder's α = 1/period. Exclusive with alpha.

        Raises:
            InvalidParameterError: If period is not positive or alpha is out of range.
        """
        super().__init__(period, input_field)
        self.required_inputs = (self.input_field,)

        if wilder and alpha is not None:
            raise InvalidParameterError("alpha", alpha, "None when wilder=True", self._name)

        self._smoother: SmoothingStrategy = WildersSmoothing(period) if wilder else EmaSmoothing(period, alpha)

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        value = self._extract_value(sample)
        self._smoother.update(value)

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[float]:
        """Current EMA, or None during warm-up."""
        return self._smoother.value

    @property
    def is_ready(self) -> bool:
        return self._smoother.is_warmed_up

    @property
    def alpha(self) -> float:
        return self._smoother.get_alpha()

    def peek_next(self, candidate: float) -> Optional[float]:
        """EMA after admitting candidate, without mutating state."""
        return self._smoother.peek(candidate)

    def reset(self) -> None:
        super().reset()
        self._smoother.reset()
