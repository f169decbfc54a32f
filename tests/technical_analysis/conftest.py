"""Shared fixtures for technical analysis tests."""

from typing import List, Optional

import numpy as np
import pandas as pd
import pytest

from tickstat.technical_analysis import Bar


@pytest.fixture
def random_walk() -> List[float]:
    """500 prices of a seeded Gaussian random walk around 100."""
    rng = np.random.default_rng(42)
    steps = rng.normal(0.0, 1.0, 500)
    return [float(x) for x in 100.0 + np.cumsum(steps)]


@pytest.fixture
def ohlc_bars() -> List[Bar]:
    """300 consistent OHLC bars (low <= close <= high) from a seeded walk."""
    rng = np.random.default_rng(7)
    closes = 100.0 + np.cumsum(rng.normal(0.0, 1.0, 300))
    highs = closes + rng.uniform(0.0, 2.0, 300)
    lows = closes - rng.uniform(0.0, 2.0, 300)
    return [Bar(float(h), float(l), float(c)) for h, l, c in zip(highs, lows, closes)]


@pytest.fixture
def integer_walk() -> List[int]:
    """Small integer series with many repeated values, for tie handling."""
    rng = np.random.default_rng(11)
    return [int(x) for x in rng.integers(0, 6, 400)]


def _seeded_ema(values: List[float], period: int, alpha: float) -> List[Optional[float]]:
    if len(values) < period:
        return [None] * len(values)
    seeded = [float(np.mean(values[:period]))] + list(values[period:])
    smoothed = pd.Series(seeded).ewm(alpha=alpha, adjust=False).mean().tolist()
    return [None] * (period - 1) + smoothed


@pytest.fixture
def seeded_ema():
    """
    Reference EMA seeded with the simple average of the first `period` values.

    The seed replaces the period-th value and pandas' recursive ewm runs from there.
    """
    return _seeded_ema
