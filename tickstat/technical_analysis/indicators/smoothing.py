"""
Smoothing strategy classes for exponential moving averages.

This module implements the Strategy pattern for the exponential recurrences
shared by EMA, RSI and ATR.

Classes:
    SmoothingStrategy: Abstract base with simple-average warm-up seeding
    WildersSmoothing: Wilder's exponential smoothing (α = 1/N)
    EmaSmoothing: Standard exponential moving average smoothing (α = 2/(N+1))
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..validation import validate_alpha, validate_period


class SmoothingStrategy(ABC):
    """
    Exponential smoothing accumulator with an explicit warm-up phase.

    The first `period` values are averaged to seed the smoothed value; from
    the (period+1)-th value onward the exponential recurrence applies:

        smoothed = α * new_value + (1-α) * previous_smoothed

    Until the seed is complete `value` is None.
    """

    def __init__(self, period: int):
        """
        Args:
            period (int): Warm-up length and smoothing period.
        """
        self.period = validate_period(period)
        self._seed_sum = 0.0
        self._seed_count = 0
        self._current_value: Optional[float] = None

    @abstractmethod
    def get_alpha(self) -> float:
        """Smoothing factor applied after warm-up."""

    def update(self, new_value: float) -> Optional[float]:
        """
        Fold one value into the smoothed result.

        Returns:
            Optional[float]: The smoothed value, or None during warm-up.
        """
        if self._current_value is None:
            self._seed_sum += new_value
            self._seed_count += 1
            if self._seed_count == self.period:
                self._current_value = self._seed_sum / self.period
        else:
            alpha = self.get_alpha()
            self._current_value = alpha * new_value + (1 - alpha) * self._current_value

        return self._current_value

    def peek(self, candidate: float) -> Optional[float]:
        """
        Smoothed value that update(candidate) would produce, without mutating.

        Returns None if the candidate would not complete warm-up.
        """
        if self._current_value is not None:
            alpha = self.get_alpha()
            return alpha * candidate + (1 - alpha) * self._current_value
        if self._seed_count == self.period - 1:
            return (self._seed_sum + candidate) / self.period
        return None

    @property
    def value(self) -> Optional[float]:
        return self._current_value

    @property
    def is_warmed_up(self) -> bool:
        return self._current_value is not None

    def reset(self) -> None:
        """Reset the smoothing strategy to initial state."""
        self._seed_sum = 0.0
        self._seed_count = 0
        self._current_value = None


class WildersSmoothing(SmoothingStrategy):
    """
    Wilder's exponential smoothing.

    Uses α = 1/N, the method J. Welles Wilder Jr. introduced for RSI and ATR.
    """

    def get_alpha(self) -> float:
        return 1.0 / self.period


class EmaSmoothing(SmoothingStrategy):
    """
    Standard exponential moving average smoothing.

    Uses α = 2/(N+1) unless a custom alpha is supplied.
    """

    def __init__(self, period: int, alpha: Optional[float] = None):
        super().__init__(period)
        self._alpha = validate_alpha(alpha) if alpha is not None else 2.0 / (period + 1)

    def get_alpha(self) -> float:
        return self._alpha
