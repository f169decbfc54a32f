"""Tests for rolling variance and ATR."""

import math
import statistics

import numpy as np
import pytest

from tickstat.technical_analysis import (
    ATR,
    BarRangeError,
    InvalidDataError,
    InvalidParameterError,
    RollingStdDev,
    RollingVariance,
)


class TestRollingVariance:

    def test_large_magnitude_small_spread(self):
        """Prices near 1e6 with unit spread; a sum-of-squares variance loses all precision here."""
        rng = np.random.default_rng(3)
        values = [float(x) for x in 1e6 + rng.normal(0.0, 1.0, 600)]
        period = 50
        variance = RollingVariance(period)

        for i, x in enumerate(values):
            variance.update(x)
            if i + 1 >= period:
                exact = statistics.pvariance(values[i + 1 - period:i + 1])
                assert variance.variance == pytest.approx(exact, rel=1e-9)

    def test_sample_variance(self, random_walk):
        period = 20
        variance = RollingVariance(period, ddof=1)
        for i, x in enumerate(random_walk):
            variance.update(x)
            if i + 1 >= period:
                exact = statistics.variance(random_walk[i + 1 - period:i + 1])
                assert variance.variance == pytest.approx(exact, rel=1e-9)

    def test_matches_numpy(self, random_walk):
        period = 30
        std = RollingStdDev(period)
        for i, x in enumerate(random_walk):
            std.update(x)
            if i + 1 >= period:
                window = np.array(random_walk[i + 1 - period:i + 1])
                assert std.value == pytest.approx(float(np.std(window)), rel=1e-9)
                assert std.mean == pytest.approx(float(np.mean(window)), rel=1e-12)

    def test_not_ready_until_full(self):
        variance = RollingVariance(3)
        variance.update(1.0)
        variance.update(2.0)
        assert variance.variance is None
        assert variance.std_dev is None
        assert variance.mean == pytest.approx(1.5)

    def test_constant_series_is_zero(self):
        variance = RollingVariance(5)
        for _ in range(20):
            variance.update(42.0)
            assert variance.variance in (None, 0.0)
        assert variance.std_dev == 0.0

    def test_never_negative(self, integer_walk):
        variance = RollingVariance(4)
        for x in integer_walk:
            variance.update(float(x))
            if variance.is_ready:
                assert variance.variance >= 0.0

    def test_rejects_invalid_values(self):
        variance = RollingVariance(3)
        with pytest.raises(InvalidDataError):
            variance.update(math.nan)
        assert variance.count == 0

    def test_invalid_parameters(self):
        with pytest.raises(InvalidParameterError):
            RollingVariance(0)
        with pytest.raises(InvalidParameterError):
            RollingVariance(5, ddof=2)
        with pytest.raises(InvalidParameterError):
            RollingVariance(1, ddof=1)


class TestATR:

    BARS = [(10.0, 8.0, 9.0), (11.0, 9.0, 10.0), (12.0, 10.0, 11.0), (13.0, 11.0, 12.0)]

    def test_first_bar_only_records_close(self):
        atr = ATR(period=3)
        atr.add(self.BARS[0])
        assert atr.true_range is None
        assert atr.value is None

    def test_seed_and_wilder_smoothing(self):
        atr = ATR(period=3)
        for bar in self.BARS[:3]:
            atr.add(bar)
        assert atr.value is None
        assert not atr.is_ready

        atr.add(self.BARS[3])
        assert atr.is_ready
        assert atr.value == pytest.approx(2.0)

        # Gap up: TR = max(2, |20 - 12|, |18 - 12|) = 8
        assert atr.peek_next(20.0, 18.0) == pytest.approx(4.0)
        atr.add((20.0, 18.0, 19.0))
        assert atr.true_range == pytest.approx(8.0)
        assert atr.value == pytest.approx((2.0 * 2 + 8.0) / 3)

    def test_true_range(self):
        assert ATR.compute_true_range(12.0, 10.0, 11.0) == 2.0
        assert ATR.compute_true_range(12.0, 10.0, 5.0) == 7.0
        assert ATR.compute_true_range(12.0, 10.0, 15.0) == 5.0

    def test_fluctuant_index(self):
        atr = ATR(period=3, candle_period=5)
        assert atr.fluctuant_index({5: 1.0}) is None

        for bar in self.BARS:
            atr.add(bar)

        assert atr.fluctuant_index({5: 4.0}) == pytest.approx(0.5)
        assert atr.fluctuant_index({1: 4.0}) is None
        assert atr.fluctuant_index({5: 0.0}) is None

    def test_accepts_mappings_and_bars(self, ohlc_bars):
        from_tuples = ATR(14)
        from_mappings = ATR(14)
        for bar in ohlc_bars:
            from_tuples.add(bar)
            from_mappings.add({'high': bar.high, 'low': bar.low, 'close': bar.close, 'open': bar.close})
        assert from_tuples.value == from_mappings.value
        assert from_tuples.value > 0

    def test_rejects_inconsistent_bars(self):
        atr = ATR(3)
        with pytest.raises(BarRangeError) as excinfo:
            atr.add((8.0, 10.0, 9.0))
        assert excinfo.value.field_name == "high"
        assert isinstance(excinfo.value, InvalidDataError)

        with pytest.raises(BarRangeError) as excinfo:
            atr.add((10.0, 8.0, 11.0))
        assert excinfo.value.field_name == "close"

        with pytest.raises(BarRangeError):
            atr.peek_next(1.0, 2.0)

        assert atr.sample_count == 0

    def test_invalid_period(self):
        with pytest.raises(InvalidParameterError):
            ATR(period=1)
        with pytest.raises(InvalidParameterError):
            ATR(period=14, candle_period=0)

    def test_reset(self):
        atr = ATR(3)
        for bar in self.BARS:
            atr.add(bar)
        atr.reset()
        assert atr.value is None
        assert atr.true_range is None
        assert atr.sample_count == 0
