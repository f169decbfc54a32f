"""
Composite technical indicators.

This module implements composite indicators that are built from other indicators.

Classes:
    BollingerBands: SMA middle band with standard-deviation envelopes
    MACD: Moving Average Convergence Divergence with cross and divergence signals
    Stochastic: Stochastic Oscillator %K/%D
    KDJ: Slow stochastic K/D plus the J line, with cross and peak/bottom signals
"""

import logging
from enum import Enum
from typing import List, NamedTuple, Optional

from ..base import BaseIndicator, Sample
from ..exceptions import InvalidParameterError
from ..validation import validate_multiplier, validate_period, validate_threshold, validate_thresholds
from .minmax import ExtremumTracker
from .signals import CrossDetector, CrossEvent, PeakTroughDetector, Zone, classify_zone
from .trend import EMA, SMA
from .volatility import RollingStdDev

logger = logging.getLogger(__name__)

# %K reported when the high/low range of the window is empty
FLAT_RANGE_K = 50.0


class BollingerValue(NamedTuple):
    upper: float
    middle: float
    lower: float
    bandwidth: float
    std_dev: float


class MACDValue(NamedTuple):
    macd: float
    signal: float
    histogram: float


class StochasticValue(NamedTuple):
    k: float
    d: Optional[float]


class KDJValue(NamedTuple):
    k: float
    d: float
    j: float


class KDJCross(Enum):
    GOLDEN_CROSS = "golden_cross"
    DEATH_CROSS = "death_cross"
    NONE = "none"


class PeakBottom(Enum):
    PEAK = "peak"
    BOTTOM = "bottom"
    NONE = "none"


class BollingerBands(BaseIndicator):
    """
    Bollinger Bands (BBands) indicator.

    Comprises a middle band (SMA) and upper/lower bands based on standard deviation.

    Mathematical Formula:
        Middle Band = SMA(period)
        Upper Band = Middle Band + (multiplier * StdDev(period))
        Lower Band = Middle Band - (multiplier * StdDev(period))
        Bandwidth = (Upper Band - Lower Band) / Middle Band

    The standard deviation is the population statistic (ddof=0) unless
    ddof=1 is requested. Band queries compare a value against the current
    bands without admitting it.

    Attributes:
        middle_band (SMA): The middle band (SMA) indicator.
        std_dev (RollingStdDev): The rolling standard deviation calculator.
    """

    def __init__(self, period: int = 20, multiplier: float = 2.0, ddof: int = 0, input_field: str = 'close'):
        """
        Initialize Bollinger Bands indicator.

        Args:
            period (int): The lookback period for SMA and StdDev.
            multiplier (float): The number of standard deviations for the bands.
            ddof (int): 0 for population, 1 for sample standard deviation.
            input_field (str): The input field to use.
        """
        super().__init__(period, input_field)
        self.required_inputs = (self.input_field,)

        self.multiplier = validate_multiplier(multiplier, indicator_name=self._name)

        self.middle_band = SMA(period, input_field)
        self.std_dev = RollingStdDev(period, ddof)
        self.ddof = ddof

        self._children: List[BaseIndicator] = [self.middle_band]

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        value = self._extract_value(sample)

        self.middle_band.add(value)
        self.std_dev.update(value)

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[BollingerValue]:
        """Current bands, or None until `period` samples were admitted."""
        if not self.is_ready:
            return None

        middle = self.middle_band.value
        std_dev_val = self.std_dev.std_dev

        upper = middle + self.multiplier * std_dev_val
        lower = middle - self.multiplier * std_dev_val

        bandwidth = (upper - lower) / middle if middle != 0 else 0.0

        return BollingerValue(upper, middle, lower, bandwidth, std_dev_val)

    @property
    def is_ready(self) -> bool:
        return self.middle_band.is_ready and self.std_dev.is_ready

    def is_above_upper_band(self, price: float) -> Optional[bool]:
        bands = self.value
        if bands is None:
            return None
        return self._check_number('price', price) > bands.upper

    def is_below_lower_band(self, price: float) -> Optional[bool]:
        bands = self.value
        if bands is None:
            return None
        return self._check_number('price', price) < bands.lower

    def is_inside_band(self, price: float) -> Optional[bool]:
        """True when lower <= price <= upper; the bounds themselves are inside."""
        bands = self.value
        if bands is None:
            return None
        return bands.lower <= self._check_number('price', price) <= bands.upper

    def percent_b(self, price: float) -> Optional[float]:
        """
        Position of price relative to the bands.

        Returns:
            Optional[float]: 0.0 at the lower band, 1.0 at the upper band,
                0.5 when the bands have collapsed to a line, None during warm-up.
        """
        bands = self.value
        if bands is None:
            return None
        price = self._check_number('price', price)
        width = bands.upper - bands.lower
        if width == 0:
            return 0.5
        return (price - bands.lower) / width

    def reset(self) -> None:
        super().reset()
        self.std_dev.reset()


class MACD(BaseIndicator):
    """
    Moving Average Convergence Divergence (MACD) indicator.

    A trend-following momentum indicator that shows the relationship between two
    exponential moving averages (EMAs) of a security's price.

    Mathematical Formula:
        MACD Line = EMA(fast_period) - EMA(slow_period)
        Signal Line = EMA(MACD Line, signal_period)
        Histogram = MACD Line - Signal Line

    Signals:
        - last_cross: BULLISH/BEARISH when the histogram changes sign; values
          within 1e-9 of zero keep the previous sign.
        - divergence(): price vs histogram extrema over `divergence_window`
          bars, positive when bearish, negative when bullish.

    Attributes:
        fast_ema (EMA): The fast EMA indicator.
        slow_ema (EMA): The slow EMA indicator.
        signal_ema (EMA): The signal line EMA indicator.
    """

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9,
                 divergence_window: int = 20, neighborhood: int = 2, input_field: str = 'close'):
        """
        Initialize MACD indicator.

        Args:
            fast_period (int): The period for the fast EMA.
            slow_period (int): The period for the slow EMA. Must exceed fast_period.
            signal_period (int): The period for the signal line EMA.
            divergence_window (int): Bars of (price, histogram) scanned for divergence.
            neighborhood (int): Points on each side a peak or trough must dominate.
            input_field (str): The input field to use.
        """
        validate_period(fast_period, "fast_period", indicator_name="MACD")
        validate_period(slow_period, "slow_period", indicator_name="MACD")
        validate_period(signal_period, "signal_period", indicator_name="MACD")
        if fast_period >= slow_period:
            raise InvalidParameterError(
                "fast_period", fast_period, f"value less than slow_period ({slow_period})", "MACD"
            )

        # The warm-up period is determined by the slow EMA plus the signal EMA.
        super().__init__(period=slow_period + signal_period - 1, input_field=input_field)
        self.required_inputs = (self.input_field,)

        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period

        self.fast_ema = EMA(fast_period, input_field)
        self.slow_ema = EMA(slow_period, input_field)
        # Fed with the MACD line, not with samples
        self.signal_ema = EMA(signal_period)

        self._children: List[BaseIndicator] = [self.fast_ema, self.slow_ema, self.signal_ema]

        self._cross_detector = CrossDetector()
        self._divergence = PeakTroughDetector(divergence_window, neighborhood)
        self._macd_line: Optional[float] = None

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        price = self._extract_value(sample)

        self.fast_ema.add(price)
        self.slow_ema.add(price)

        if self.fast_ema.is_ready and self.slow_ema.is_ready:
            self._macd_line = self.fast_ema.value - self.slow_ema.value
            self.signal_ema.add(self._macd_line)

            if self.signal_ema.is_ready:
                histogram = self._macd_line - self.signal_ema.value
                event = self._cross_detector.update(histogram)
                if event is not CrossEvent.NONE:
                    logger.debug(f"MACD {event.value} cross: histogram={histogram:.6f}")
                self._divergence.add(price, histogram)

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[MACDValue]:
        """Current (macd, signal, histogram), or None until the signal line is seeded."""
        if not self.is_ready:
            return None

        signal = self.signal_ema.value
        return MACDValue(self._macd_line, signal, self._macd_line - signal)

    @property
    def is_ready(self) -> bool:
        return self.signal_ema.is_ready

    @property
    def macd_line(self) -> Optional[float]:
        """Fast minus slow EMA; available before the signal line is ready."""
        return self._macd_line

    @property
    def last_cross(self) -> CrossEvent:
        """Histogram sign flip produced by the most recent sample."""
        return self._cross_detector.last_event

    def divergence(self) -> Optional[float]:
        return self._divergence.divergence()

    def peek_next(self, candidate: float) -> Optional[MACDValue]:
        """MACD values after admitting candidate, without mutating state."""
        candidate = self._check_number(self.input_field, candidate)
        fast = self.fast_ema.peek_next(candidate)
        slow = self.slow_ema.peek_next(candidate)
        if fast is None or slow is None:
            return None

        line = fast - slow
        signal = self.signal_ema.peek_next(line)
        if signal is None:
            return None
        return MACDValue(line, signal, line - signal)

    def reset(self) -> None:
        super().reset()
        self._cross_detector.reset()
        self._divergence.reset()
        self._macd_line = None


class _RangeOscillator(BaseIndicator):
    """
    Shared %K machinery: close relative to the highest high and lowest low.

        Raw %K = 100 * (close - lowest_low) / (highest_high - lowest_low)

    An empty range (highest_high == lowest_low) gives FLAT_RANGE_K.
    Scalar samples count as bars with high == low == close.
    """

    required_inputs = ('high', 'low', 'close')

    def __init__(self, k_period: int):
        validate_period(k_period, "k_period", indicator_name=self.__class__.__name__)
        super().__init__(period=k_period)
        self.k_period = k_period

        self._highs = ExtremumTracker(k_period, 'max')
        self._lows = ExtremumTracker(k_period, 'min')

    @staticmethod
    def _raw_k(close: float, highest_high: float, lowest_low: float) -> float:
        if highest_high == lowest_low:
            return FLAT_RANGE_K
        return 100.0 * (close - lowest_low) / (highest_high - lowest_low)

    def _admit_bar(self, sample: Sample) -> Optional[float]:
        """Feed the range trackers; returns raw %K once k_period bars were seen."""
        bar = self._extract_bar(sample)
        self._highs.add(bar.high)
        self._lows.add(bar.low)

        if not self._highs.is_ready:
            return None
        return self._raw_k(bar.close, self._highs.value, self._lows.value)

    @property
    def highest_high(self) -> Optional[float]:
        return self._highs.value

    @property
    def lowest_low(self) -> Optional[float]:
        return self._lows.value

    def peek_next(self, sample: Sample) -> Optional[float]:
        """
        Raw %K that admitting this bar would produce, without mutating state.

        Returns None if the bar would not fill the k_period window.
        """
        bar = self._extract_bar(sample)
        if self._highs.count + 1 < self.k_period:
            return None
        return self._raw_k(bar.close, self._highs.peek_next(bar.high), self._lows.peek_next(bar.low))

    def reset(self) -> None:
        super().reset()
        self._highs.reset()
        self._lows.reset()


class Stochastic(_RangeOscillator):
    """
    Stochastic Oscillator (Fast and Slow variants).

    A momentum indicator comparing a particular closing price of a security
    to a range of its prices over a certain period of time.

    Mathematical Formula:
        Raw %K = 100 * (Current Close - Lowest Low) / (Highest High - Lowest Low)
        Slow %K = SMA(Raw %K, smooth_k) [if smooth_k > 1]
        Fast %K = Raw %K [if smooth_k = 1]
        %D = SMA(%K, d_period)

    A flat window (Highest High == Lowest Low) reports %K = 50.0.

    Attributes:
        k_sma (Optional[SMA]): The SMA for smoothing %K (if smooth_k > 1).
        d_sma (SMA): The SMA for the %D line.
    """

    def __init__(self, k_period: int = 14, d_period: int = 3, smooth_k: int = 1,
                 overbought: float = 80.0, oversold: float = 20.0):
        """
        Initialize Stochastic Oscillator.

        Args:
            k_period (int): The lookback period for %K.
            d_period (int): The smoothing period for %D.
            smooth_k (int): The smoothing period for %K (1 for Fast Stochastic).
            overbought (float): Upper zone threshold on %K.
            oversold (float): Lower zone threshold on %K.
        """
        super().__init__(k_period)
        self.d_period = validate_period(d_period, "d_period", indicator_name=self._name)
        self.smooth_k = validate_period(smooth_k, "smooth_k", indicator_name=self._name)
        self.overbought, self.oversold = validate_thresholds(overbought, oversold, indicator_name=self._name)

        self.k_sma: Optional[SMA] = SMA(smooth_k) if smooth_k > 1 else None
        self.d_sma = SMA(d_period)

        self._children: List[BaseIndicator] = [self.d_sma]
        if self.k_sma is not None:
            self._children.append(self.k_sma)

        self._ready_threshold = k_period + smooth_k - 1
        self._k_value: Optional[float] = None

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        raw_k = self._admit_bar(sample)

        if raw_k is not None:
            if self.k_sma is not None:
                self.k_sma.add(raw_k)
                self._k_value = self.k_sma.value
            else:
                self._k_value = raw_k

            if self._k_value is not None:
                self.d_sma.add(self._k_value)

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[StochasticValue]:
        """(%K, %D); None until %K is ready, %D is None until its SMA fills."""
        if self._k_value is None:
            return None
        return StochasticValue(self._k_value, self.d_sma.value)

    @property
    def is_ready(self) -> bool:
        return self._k_value is not None

    @property
    def percent_k(self) -> Optional[float]:
        return self._k_value

    @property
    def percent_d(self) -> Optional[float]:
        return self.d_sma.value

    def zone(self) -> Optional[Zone]:
        return classify_zone(self._k_value, self.overbought, self.oversold)

    def is_overbought(self) -> Optional[bool]:
        zone = self.zone()
        return None if zone is None else zone is Zone.OVERBOUGHT

    def is_oversold(self) -> Optional[bool]:
        zone = self.zone()
        return None if zone is None else zone is Zone.OVERSOLD

    def reset(self) -> None:
        super().reset()
        self._k_value = None


class KDJ(_RangeOscillator):
    """
    KDJ indicator: a slow stochastic extended with the J line.

    Mathematical Formula:
        Fast %K = Raw %K over k_period (50.0 on a flat window)
        K = SMA(Fast %K, slow_k_period)
        D = SMA(K, slow_d_period)
        J = 3K - 2D

    Classifications (all None until D is available):
        - zone(): D against overbought / oversold
        - cross(): GOLDEN_CROSS when K crosses above D with K <= golden
          threshold, DEATH_CROSS when K crosses below D with K >= death
          threshold
        - peak_bottom(): PEAK when J > peak threshold, BOTTOM when
          J < bottom threshold

    Example:
        >>> kdj = KDJ()
        >>> for bar in bars:
        ...     kdj.add((bar.high, bar.low, bar.close))
        ...     if kdj.cross() is KDJCross.GOLDEN_CROSS:
        ...         print(f"Golden cross at K={kdj.value.k:.1f}")
    """

    def __init__(self, k_period: int = 9, slow_k_period: int = 3, slow_d_period: int = 3,
                 overbought: float = 80.0, oversold: float = 20.0,
                 golden_cross_threshold: float = 100.0, death_cross_threshold: float = 0.0,
                 peak_threshold: float = 100.0, bottom_threshold: float = 0.0):
        super().__init__(k_period)
        self.slow_k_period = validate_period(slow_k_period, "slow_k_period", indicator_name=self._name)
        self.slow_d_period = validate_period(slow_d_period, "slow_d_period", indicator_name=self._name)

        self.overbought, self.oversold = validate_thresholds(overbought, oversold, indicator_name=self._name)
        self.golden_cross_threshold = validate_threshold(golden_cross_threshold, "golden_cross_threshold", self._name)
        self.death_cross_threshold = validate_threshold(death_cross_threshold, "death_cross_threshold", self._name)
        self.peak_threshold, self.bottom_threshold = validate_thresholds(
            peak_threshold, bottom_threshold, "peak_threshold", "bottom_threshold", self._name
        )

        self.slow_k = SMA(slow_k_period)
        self.slow_d = SMA(slow_d_period)
        self._children: List[BaseIndicator] = [self.slow_k, self.slow_d]

        self._ready_threshold = k_period + slow_k_period + slow_d_period - 2
        self._cross_detector = CrossDetector()
        self._cross = KDJCross.NONE
        self._j: Optional[float] = None

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        fast_k = self._admit_bar(sample)

        if fast_k is not None:
            self.slow_k.add(fast_k)
            if self.slow_k.is_ready:
                self.slow_d.add(self.slow_k.value)

        if self.slow_d.is_ready:
            k, d = self.slow_k.value, self.slow_d.value
            self._j = 3.0 * k - 2.0 * d
            self._cross = self._classify_cross(self._cross_detector.update(k - d), k)

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    def _classify_cross(self, event: CrossEvent, k: float) -> KDJCross:
        if event is CrossEvent.BULLISH and k <= self.golden_cross_threshold:
            logger.debug(f"KDJ golden cross at K={k:.4f}")
            return KDJCross.GOLDEN_CROSS
        if event is CrossEvent.BEARISH and k >= self.death_cross_threshold:
            logger.debug(f"KDJ death cross at K={k:.4f}")
            return KDJCross.DEATH_CROSS
        return KDJCross.NONE

    @property
    def value(self) -> Optional[KDJValue]:
        """Current (K, D, J), or None until D is available."""
        if self._j is None:
            return None
        return KDJValue(self.slow_k.value, self.slow_d.value, self._j)

    @property
    def is_ready(self) -> bool:
        return self._j is not None

    @property
    def j_centered(self) -> Optional[float]:
        """J shifted so that 50 maps to 0."""
        return None if self._j is None else self._j - 50.0

    def zone(self) -> Optional[Zone]:
        if self._j is None:
            return None
        return classify_zone(self.slow_d.value, self.overbought, self.oversold)

    def cross(self) -> Optional[KDJCross]:
        """K/D cross produced by the most recent bar, gated by the cross thresholds."""
        if self._j is None:
            return None
        return self._cross

    def peak_bottom(self) -> Optional[PeakBottom]:
        if self._j is None:
            return None
        if self._j > self.peak_threshold:
            return PeakBottom.PEAK
        if self._j < self.bottom_threshold:
            return PeakBottom.BOTTOM
        return PeakBottom.NONE

    def reset(self) -> None:
        super().reset()
        self._cross_detector.reset()
        self._cross = KDJCross.NONE
        self._j = None
