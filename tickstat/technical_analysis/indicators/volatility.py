"""
Volatility technical indicators.

This module implements indicators that measure market volatility.

Classes:
    RollingVariance: Windowed Welford variance accumulator.
    RollingStdDev: Standard deviation view of RollingVariance.
    ATR: Average True Range with Wilder smoothing.
"""

import logging
import math
import numbers
from typing import Mapping, Optional

from ..base import BaseIndicator, Sample
from ..exceptions import BarRangeError, InvalidDataError, InvalidParameterError
from ..validation import validate_period
from ..window import WindowBuffer
from .smoothing import WildersSmoothing

logger = logging.getLogger(__name__)


class RollingVariance:
    """
    Numerically stable O(1) rolling variance.

    Uses Welford's mean/M2 recurrence restricted to the live window instead of
    a running sum of squares, which loses every significant digit when prices
    are large and their spread is small.

    Sliding update, with x admitted and y evicted from a full window of n:
        mean' = mean + (x - y) / n
        M2'   = M2 + (x - y) * (x - mean' + y - mean)

    Values are shifted by an anchor taken from the window, and every `period`
    admissions the anchor, mean and M2 are recomputed exactly from the window.
    That pass costs O(period) once per `period` updates, so updates stay O(1)
    amortized while rounding drift cannot accumulate.

    Attributes:
        period (int): The lookback period for the calculation.
        ddof (int): 0 for the population variance, 1 for the sample variance.
    """

    def __init__(self, period: int, ddof: int = 0):
        """
        Args:
            period (int): The lookback period. Must be > ddof.
            ddof (int): Delta degrees of freedom, 0 or 1.
        """
        self.period = validate_period(period)
        if ddof not in (0, 1):
            raise InvalidParameterError("ddof", ddof, "0 or 1")
        if period <= ddof:
            raise InvalidParameterError("period", period, f"integer greater than ddof ({ddof})")
        self.ddof = ddof

        self._window = WindowBuffer(period)
        self._anchor = 0.0
        self._mean = 0.0
        self._m2 = 0.0
        self._since_anchor = 0

    def update(self, value: float) -> None:
        """
        Update the rolling statistics with a new value.

        Raises:
            InvalidDataError: If value is not a finite number.
        """
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise InvalidDataError("value", value, "finite number required", self.__class__.__name__)

        evicted = self._window.add(value)
        if evicted is None and len(self._window) == 1:
            self._anchor = value

        x = value - self._anchor
        if evicted is None:
            n = len(self._window)
            delta = x - self._mean
            self._mean += delta / n
            self._m2 += delta * (x - self._mean)
        else:
            y = evicted - self._anchor
            old_mean = self._mean
            self._mean += (x - y) / self.period
            self._m2 += (x - y) * (x - self._mean + y - old_mean)

        if self._m2 < 0.0:
            self._m2 = 0.0

        self._since_anchor += 1
        if self._since_anchor >= self.period:
            self._reanchor()

    def _reanchor(self) -> None:
        self._anchor = self._window[-1]
        shifted = [v - self._anchor for v in self._window]
        self._mean = math.fsum(shifted) / len(shifted)
        self._m2 = math.fsum((s - self._mean) ** 2 for s in shifted)
        self._since_anchor = 0

    @property
    def is_ready(self) -> bool:
        """True once the window is full."""
        return self._window.is_full

    @property
    def count(self) -> int:
        return len(self._window)

    @property
    def mean(self) -> Optional[float]:
        """Mean of the live window, or None if empty."""
        if not len(self._window):
            return None
        return self._anchor + self._mean

    @property
    def variance(self) -> Optional[float]:
        """Variance of a full window, or None while filling."""
        if not self.is_ready:
            return None
        return max(self._m2 / (self.period - self.ddof), 0.0)

    @property
    def std_dev(self) -> Optional[float]:
        variance = self.variance
        return math.sqrt(variance) if variance is not None else None

    @property
    def value(self) -> Optional[float]:
        return self.variance

    def reset(self) -> None:
        """Reset the calculator to its initial state."""
        self._window.clear()
        self._anchor = 0.0
        self._mean = 0.0
        self._m2 = 0.0
        self._since_anchor = 0


class RollingStdDev(RollingVariance):
    """Rolling standard deviation; `value` is the std-dev of a full window."""

    @property
    def value(self) -> Optional[float]:
        return self.std_dev


class ATR(BaseIndicator):
    """
    Average True Range (ATR) volatility indicator.

    Mathematical Formula:
        TR  = max(high - low, |high - prev_close|, |low - prev_close|)
        ATR = Wilder-smoothed TR over `period` (seeded by the mean of the
              first `period` true ranges)

    The first bar has no previous close; it only records its close. ATR is
    therefore ready after period + 1 bars.

    Example:
        >>> atr = ATR(period=14)
        >>> for bar in bars:
        ...     atr.add((bar.high, bar.low, bar.close))
        >>> atr.fluctuant_index({1: 2.5})
    """

    required_inputs = ('high', 'low', 'close')

    def __init__(self, period: int = 14, candle_period: int = 1):
        """
        Args:
            period (int): Wilder smoothing period. Must be >= 2.
            candle_period (int): Key of this ATR's timeframe in the
                historical-average lookup passed to fluctuant_index().
        """
        validate_period(period, minimum=2, indicator_name="ATR")
        super().__init__(period)
        self.candle_period = validate_period(candle_period, "candle_period", indicator_name=self._name)

        self._smoother = WildersSmoothing(period)
        self._prev_close: Optional[float] = None
        self._true_range: Optional[float] = None
        self._ready_threshold = period + 1

    @staticmethod
    def compute_true_range(high: float, low: float, prev_close: float) -> float:
        return max(high - low, abs(high - prev_close), abs(low - prev_close))

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        """
        Admit one OHLC bar.

        Raises:
            BarRangeError: If high < low or close is outside [low, high].
        """
        bar = self._extract_bar(sample)

        if self._prev_close is not None:
            self._true_range = self.compute_true_range(bar.high, bar.low, self._prev_close)
            self._smoother.update(self._true_range)
        self._prev_close = bar.close

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[float]:
        """Current ATR, or None during warm-up."""
        return self._smoother.value

    @property
    def is_ready(self) -> bool:
        return self._smoother.is_warmed_up

    @property
    def true_range(self) -> Optional[float]:
        """True range of the latest bar, or None before the second bar."""
        return self._true_range

    def peek_next(self, high: float, low: float) -> Optional[float]:
        """
        ATR that a bar with this high/low would produce, without mutating.

        Returns None if that bar would not complete warm-up.
        """
        high = self._check_number('high', high)
        low = self._check_number('low', low)
        if high < low:
            raise BarRangeError(high, low, low, self._name)
        if self._prev_close is None:
            return None
        return self._smoother.peek(self.compute_true_range(high, low, self._prev_close))

    def fluctuant_index(self, day_average_atr: Mapping[int, float]) -> Optional[float]:
        """
        Ratio of the current ATR to its historical per-day average.

        Args:
            day_average_atr: Historical average ATR keyed by candle period.

        Returns:
            Optional[float]: current_ATR / day_average_atr[candle_period], or
                None if ATR is warming up or no positive average is known.
        """
        current = self.value
        if current is None:
            return None

        average = day_average_atr.get(self.candle_period)
        if average is None or average <= 0:
            logger.debug(f"No historical ATR average for candle_period={self.candle_period}")
            return None

        return current / average

    def reset(self) -> None:
        super().reset()
        self._smoother.reset()
        self._prev_close = None
        self._true_range = None
