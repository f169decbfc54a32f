"""
Tickstat Technical Analysis Library

A streaming technical indicator library for tick-by-tick trading and charting
hosts. Every indicator ingests one price or OHLC bar at a time and updates in
O(1) amortized time, without re-scanning history.

This library provides:
- Factory pattern for intuitive indicator creation, including from YAML config
- O(1) streaming indicator updates using efficient data structures
- Abstract base class ensuring consistent indicator interfaces
- Cross, zone and divergence signals layered on indicator outputs
- Tick quote sampling with cached rolling volatility

Example Usage:
    import tickstat.technical_analysis as ta

    # Factory pattern - primary interface
    sma = ta.create('sma', period=20)
    macd = ta.create('macd', fast_period=12, slow_period=26, signal_period=9)

    # Direct class access
    kdj = ta.KDJ(k_period=9)
    bbands = ta.BollingerBands(period=20, multiplier=2.0)

    # Utility functions
    indicators = ta.list_indicators()
    info = ta.describe('rsi')
"""

__version__ = "1.0.0"
__author__ = "Tickstat Development Team"

# Public API exports
from .base import BaseIndicator, Bar, Sample
from .exceptions import (
    IndicatorError,
    InvalidParameterError,
    MissingInputError,
    InsufficientDataError,
    InvalidDataError,
    BarRangeError,
    IndicatorNotFoundError
)
from .window import WindowBuffer, TimeGate
from .indicators import (
    SMA, EMA, RSI, ATR,
    BollingerBands, MACD, Stochastic, KDJ,
    BollingerValue, MACDValue, StochasticValue, KDJValue, MinMaxValue,
    ExtremumTracker, RollingMinMax, RollingVariance, RollingStdDev,
    CrossDetector, CrossEvent, PeakTroughDetector, Sign, Zone, KDJCross, PeakBottom,
    SmoothingStrategy, WildersSmoothing, EmaSmoothing
)
from .ticks import TickPriceKeeper, TradePriceKeeper, TradeSide, TickVolatility, SmaStd
from .factory import (
    create,
    create_from_config,
    list_indicators,
    describe,
    validate_period,
    validate_alpha,
    validate_multiplier,
    validate_thresholds,
    validate_input_field
)

__all__ = [
    # Core classes
    "BaseIndicator",
    "Bar",
    "Sample",
    "WindowBuffer",
    "TimeGate",

    # Factory functions
    "create",
    "create_from_config",
    "list_indicators",
    "describe",

    # Basic indicators
    "SMA",
    "EMA",
    "RSI",
    "ATR",

    # Composite indicators
    "BollingerBands",
    "MACD",
    "Stochastic",
    "KDJ",

    # Result types
    "BollingerValue",
    "MACDValue",
    "StochasticValue",
    "KDJValue",
    "MinMaxValue",
    "SmaStd",

    # Primitives
    "ExtremumTracker",
    "RollingMinMax",
    "RollingVariance",
    "RollingStdDev",
    "CrossDetector",
    "PeakTroughDetector",

    # Signals
    "CrossEvent",
    "Sign",
    "Zone",
    "KDJCross",
    "PeakBottom",

    # Ticks
    "TickPriceKeeper",
    "TradePriceKeeper",
    "TradeSide",
    "TickVolatility",

    # Smoothing strategies
    "SmoothingStrategy",
    "WildersSmoothing",
    "EmaSmoothing",

    # Validation utilities
    "validate_period",
    "validate_alpha",
    "validate_multiplier",
    "validate_thresholds",
    "validate_input_field",

    # Exceptions
    "IndicatorError",
    "InvalidParameterError",
    "MissingInputError",
    "InsufficientDataError",
    "InvalidDataError",
    "BarRangeError",
    "IndicatorNotFoundError",

    # Metadata
    "__version__",
    "__author__",
]
