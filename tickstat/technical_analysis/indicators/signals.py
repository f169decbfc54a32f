"""
Signal state machines layered on top of indicator outputs.

Classes:
    CrossDetector: Emits an event when a tracked difference changes sign.
    Zone: Overbought / oversold / neutral classification.
    PeakTroughDetector: Finds local extrema and scores price/indicator divergence.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..exceptions import InvalidParameterError
from ..validation import validate_period
from ..window import WindowBuffer

logger = logging.getLogger(__name__)


class Sign(Enum):
    POSITIVE = 1
    NEGATIVE = -1
    UNDEFINED = 0


class CrossEvent(Enum):
    """Direction of a sign flip."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NONE = "none"


class Zone(Enum):
    """Threshold classification of a bounded oscillator."""
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


def classify_zone(value: Optional[float], overbought: float, oversold: float) -> Optional[Zone]:
    """Zone of value against (overbought, oversold) bounds; None if value is None."""
    if value is None:
        return None
    if value > overbought:
        return Zone.OVERBOUGHT
    if value < oversold:
        return Zone.OVERSOLD
    return Zone.NEUTRAL


class CrossDetector:
    """
    Sign-flip state machine.

    Tracks the sign of a difference such as K-D or a MACD histogram. A value
    within `epsilon` of zero (or None) is UNDEFINED and leaves the recorded
    sign untouched, so rounding noise around zero cannot fake a cross. The
    first defined sign only sets state.

    Example:
        >>> detector = CrossDetector()
        >>> [detector.update(d) for d in (-1.0, 0.0, 2.0)]
        [<CrossEvent.NONE: 'none'>, <CrossEvent.NONE: 'none'>, <CrossEvent.BULLISH: 'bullish'>]
    """

    def __init__(self, epsilon: float = 1e-9):
        if not isinstance(epsilon, (int, float)) or epsilon < 0:
            raise InvalidParameterError("epsilon", epsilon, "non-negative number", "CrossDetector")
        self.epsilon = epsilon
        self._sign = Sign.UNDEFINED
        self._last_event = CrossEvent.NONE

    def classify(self, difference: Optional[float]) -> Sign:
        if difference is None or abs(difference) <= self.epsilon:
            return Sign.UNDEFINED
        return Sign.POSITIVE if difference > 0 else Sign.NEGATIVE

    def update(self, difference: Optional[float]) -> CrossEvent:
        """
        Record a new difference.

        Returns:
            CrossEvent: BULLISH on a flip to positive, BEARISH on a flip to
                negative, NONE otherwise.
        """
        sign = self.classify(difference)
        event = CrossEvent.NONE

        if sign is not Sign.UNDEFINED:
            if self._sign is not Sign.UNDEFINED and sign is not self._sign:
                event = CrossEvent.BULLISH if sign is Sign.POSITIVE else CrossEvent.BEARISH
            self._sign = sign

        self._last_event = event
        return event

    @property
    def sign(self) -> Sign:
        """Last defined sign observed."""
        return self._sign

    @property
    def last_event(self) -> CrossEvent:
        """Event produced by the most recent update."""
        return self._last_event

    def reset(self) -> None:
        self._sign = Sign.UNDEFINED
        self._last_event = CrossEvent.NONE


class PeakTroughDetector:
    """
    Local-extrema detector over a rolling (price, indicator) history.

    A position is a peak when it is strictly above the `neighborhood` points
    before it and not below the `neighborhood` points after it, so a flat
    top is reported once, at its first point.
    Only positions with a full neighborhood on both sides qualify, which
    means an extremum is confirmed `neighborhood` samples after it happens.
    Troughs are symmetric.

    Divergence compares the two most recent price peaks (and troughs) with the
    indicator values at the same positions:

        price_slope     = (p2 - p1) / (i2 - i1)
        indicator_slope = (m2 - m1) / (i2 - i1)

    Opposite slopes are a divergence with strength price_slope -
    indicator_slope: positive for bearish (price higher high, indicator lower
    high), negative for bullish (price lower low, indicator higher low).
    """

    def __init__(self, lookback: int, neighborhood: int = 2):
        """
        Args:
            lookback (int): Number of (price, indicator) pairs retained.
            neighborhood (int): Points compared on each side of a candidate.
                lookback must leave room for two confirmed extrema.
        """
        self.neighborhood = validate_period(neighborhood, "neighborhood", indicator_name="PeakTroughDetector")
        self.lookback = validate_period(lookback, "lookback", minimum=2 * neighborhood + 2,
                                        indicator_name="PeakTroughDetector")
        self._prices = WindowBuffer(lookback)
        self._indicator = WindowBuffer(lookback)

    def add(self, price: float, indicator: float) -> None:
        self._prices.add(price)
        self._indicator.add(indicator)

    @property
    def is_ready(self) -> bool:
        return self._prices.is_full

    def _extrema(self, series: WindowBuffer, is_peak: bool) -> List[int]:
        values = list(series)
        width = self.neighborhood
        found = []
        for i in range(width, len(values) - width):
            center = values[i]
            left = values[i - width:i]
            right = values[i + 1:i + width + 1]
            # Strict on the left so a plateau reports only its first point
            if is_peak and all(n < center for n in left) and all(n <= center for n in right):
                found.append(i)
            elif not is_peak and all(n > center for n in left) and all(n >= center for n in right):
                found.append(i)
        return found

    def peaks(self) -> List[int]:
        """Positions (oldest = 0) of confirmed local price maxima."""
        return self._extrema(self._prices, is_peak=True)

    def troughs(self) -> List[int]:
        """Positions (oldest = 0) of confirmed local price minima."""
        return self._extrema(self._prices, is_peak=False)

    def _slope_divergence(self, positions: List[int], bearish: bool) -> float:
        if len(positions) < 2:
            return 0.0
        i1, i2 = positions[-2], positions[-1]
        span = i2 - i1
        price_slope = (self._prices[i2] - self._prices[i1]) / span
        indicator_slope = (self._indicator[i2] - self._indicator[i1]) / span

        if bearish and price_slope > 0 > indicator_slope:
            return price_slope - indicator_slope
        if not bearish and price_slope < 0 < indicator_slope:
            return price_slope - indicator_slope
        return 0.0

    def divergence(self) -> Optional[float]:
        """
        Signed divergence strength over the lookback window.

        Returns:
            Optional[float]: > 0 bearish, < 0 bullish, 0.0 none; None until
                `lookback` pairs have been seen.
        """
        if not self.is_ready:
            return None

        bearish = self._slope_divergence(self.peaks(), bearish=True)
        bullish = self._slope_divergence(self.troughs(), bearish=False)
        strength = bearish if abs(bearish) >= abs(bullish) else bullish

        if strength:
            logger.debug(f"Divergence detected: strength={strength:.6f}")
        return strength

    def reset(self) -> None:
        self._prices.clear()
        self._indicator.clear()
