"""
Technical Analysis Indicators Module

Concrete implementations of streaming technical indicators built on BaseIndicator,
plus the incremental primitives they share (extremum trackers, smoothing
strategies, rolling variance, cross and divergence detectors).
"""

from .smoothing import SmoothingStrategy, WildersSmoothing, EmaSmoothing
from .minmax import ExtremumTracker, RollingMinMax, MinMaxValue
from .trend import SMA, EMA
from .volatility import RollingVariance, RollingStdDev, ATR
from .momentum import RSI
from .signals import CrossDetector, CrossEvent, PeakTroughDetector, Sign, Zone, classify_zone
from .composite import (
    BollingerBands, BollingerValue,
    MACD, MACDValue,
    Stochastic, StochasticValue,
    KDJ, KDJValue, KDJCross, PeakBottom,
)

__all__ = [
    # Trend indicators
    "SMA",
    "EMA",

    # Momentum indicators
    "RSI",

    # Volatility indicators
    "ATR",
    "RollingVariance",
    "RollingStdDev",

    # Composite indicators
    "BollingerBands",
    "MACD",
    "Stochastic",
    "KDJ",

    # Result types
    "MinMaxValue",
    "BollingerValue",
    "MACDValue",
    "StochasticValue",
    "KDJValue",

    # Extremum tracking
    "ExtremumTracker",
    "RollingMinMax",

    # Signals
    "CrossDetector",
    "CrossEvent",
    "PeakTroughDetector",
    "Sign",
    "Zone",
    "KDJCross",
    "PeakBottom",
    "classify_zone",

    # Smoothing strategies
    "SmoothingStrategy",
    "WildersSmoothing",
    "EmaSmoothing",
]
