"""
Momentum technical indicators.

This module implements indicators that measure the speed and strength of price movements.
All indicators use O(1) streaming updates.

Classes:
    RSI: Relative Strength Index with configurable smoothing strategies
"""

import math
from typing import Literal, Optional

from ..base import BaseIndicator, Sample
from ..exceptions import InvalidParameterError
from ..validation import validate_period, validate_thresholds
from .signals import Zone, classify_zone
from .smoothing import EmaSmoothing, WildersSmoothing


class RSI(BaseIndicator):
    """
    Relative Strength Index (RSI) momentum indicator.

    Measures the speed and change of price movements to identify
    overbought/oversold conditions.

    Mathematical Formula:
        RSI = 100 - (100 / (1 + RS))
        where RS = Average Gain / Average Loss

        Gains = max(0, current_price - previous_price)
        Losses = max(0, previous_price - current_price)

    The averages are seeded with the mean of the first `period` gains and
    losses, then smoothed:
        - 'wilders': Original Wilder's smoothing (α = 1/N)
        - 'ema': Standard EMA smoothing (α = 2/(N+1))

    Edge cases:
        - Average loss of zero gives RSI = 100 (including a flat series)
        - RSI is None until period + 1 prices were admitted

    Example:
        >>> rsi = RSI(period=14)
        >>> for bar in market_data:
        ...     rsi.add(bar)
        ...     if rsi.zone() is Zone.OVERBOUGHT:
        ...         print(f"Overbought: RSI = {rsi.value:.1f}")
    """

    def __init__(
        self,
        period: int = 14,
        input_field: str = 'close',
        smoothing_strategy: Literal['wilders', 'ema'] = 'wilders',
        overbought: float = 70.0,
        oversold: float = 30.0,
    ):
        """
        Initialize Relative Strength Index indicator.

        Args:
            period (int): Number of price changes averaged. Must be >= 2.
            input_field (str): Field read from mapping samples.
            smoothing_strategy (str): 'wilders' or 'ema'.
            overbought (float): Upper zone threshold.
            oversold (float): Lower zone threshold; must be below overbought.

        Raises:
            InvalidParameterError: If period < 2, the strategy is unknown or
                the thresholds are out of order.
        """
        validate_period(period, minimum=2, indicator_name="RSI")
        super().__init__(period, input_field)
        self.required_inputs = (self.input_field,)

        # One extra price for the first gain/loss
        self._ready_threshold = period + 1

        if smoothing_strategy == 'wilders':
            self._gain_smoother = WildersSmoothing(period)
            self._loss_smoother = WildersSmoothing(period)
        elif smoothing_strategy == 'ema':
            self._gain_smoother = EmaSmoothing(period)
            self._loss_smoother = EmaSmoothing(period)
        else:
            raise InvalidParameterError(
                "smoothing_strategy",
                smoothing_strategy,
                "either 'wilders' or 'ema'",
                self._name
            )

        self.smoothing_strategy = smoothing_strategy
        self.overbought, self.oversold = validate_thresholds(overbought, oversold, indicator_name=self._name)

        self._previous_price: Optional[float] = None
        self._rsi_value: Optional[float] = None

    @staticmethod
    def _compute(avg_gain: float, avg_loss: float) -> float:
        if avg_loss == 0:
            return 100.0
        rs = avg_gain / avg_loss
        return 100.0 - (100.0 / (1.0 + rs))

    def add(self, sample: Sample, timestamp: Optional[float] = None) -> None:
        """
        Admit a price and update the smoothed gain/loss averages.

        Raises:
            MissingInputError: If a mapping sample lacks the input field.
            InvalidDataError: If the price is None, NaN, infinite or non-numeric.
        """
        current_price = self._extract_value(sample)

        if self._previous_price is not None:
            price_change = current_price - self._previous_price
            avg_gain = self._gain_smoother.update(max(0.0, price_change))
            avg_loss = self._loss_smoother.update(max(0.0, -price_change))

            if avg_gain is not None and avg_loss is not None:
                self._rsi_value = self._compute(avg_gain, avg_loss)

        self._previous_price = current_price

        self._update_metadata(self._extract_timestamp(sample, timestamp))
        self._store_output(self.value)

    @property
    def value(self) -> Optional[float]:
        """Current RSI in [0, 100], or None during warm-up."""
        return self._rsi_value

    @property
    def is_ready(self) -> bool:
        return self._rsi_value is not None

    @property
    def average_gain(self) -> Optional[float]:
        return self._gain_smoother.value

    @property
    def average_loss(self) -> Optional[float]:
        return self._loss_smoother.value

    @property
    def relative_strength(self) -> Optional[float]:
        """
        RS = average_gain / average_loss.

        Returns math.inf when there were no losses, None during warm-up.
        """
        avg_gain = self.average_gain
        avg_loss = self.average_loss
        if avg_gain is None or avg_loss is None:
            return None
        if avg_loss == 0:
            return math.inf
        return avg_gain / avg_loss

    def peek_next(self, candidate: float) -> Optional[float]:
        """RSI after admitting candidate, without mutating state."""
        if self._previous_price is None:
            return None
        price_change = candidate - self._previous_price
        avg_gain = self._gain_smoother.peek(max(0.0, price_change))
        avg_loss = self._loss_smoother.peek(max(0.0, -price_change))
        if avg_gain is None or avg_loss is None:
            return None
        return self._compute(avg_gain, avg_loss)

    def zone(self) -> Optional[Zone]:
        """Overbought / oversold / neutral classification, None during warm-up."""
        return classify_zone(self.value, self.overbought, self.oversold)

    def reset(self) -> None:
        super().reset()
        self._previous_price = None
        self._rsi_value = None
        self._gain_smoother.reset()
        self._loss_smoother.reset()
