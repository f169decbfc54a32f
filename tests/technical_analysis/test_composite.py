"""Tests for Bollinger Bands, MACD, Stochastic and KDJ."""

import math

import pytest

from tickstat.technical_analysis import (
    KDJ,
    MACD,
    BarRangeError,
    BollingerBands,
    BollingerValue,
    CrossEvent,
    InvalidParameterError,
    KDJCross,
    PeakBottom,
    PeakTroughDetector,
    Stochastic,
    Zone,
)


def _ramp(start: float, stop: float, n: int):
    step = (stop - start) / (n - 1)
    return [start + i * step for i in range(n)]


class TestBollingerBands:

    def test_three_sample_scenario(self):
        bands = BollingerBands(period=3, multiplier=2.0)
        for x in (100.0, 101.0, 102.0):
            bands.add(x)

        value = bands.value
        std = math.sqrt(2.0 / 3.0)
        assert isinstance(value, BollingerValue)
        assert value.middle == pytest.approx(101.0)
        assert value.std_dev == pytest.approx(std)
        assert value.upper == pytest.approx(101.0 + 2.0 * std)
        assert value.lower == pytest.approx(101.0 - 2.0 * std)
        assert value.bandwidth == pytest.approx(4.0 * std / 101.0)

        assert bands.is_inside_band(101.0) is True
        assert bands.is_above_upper_band(103.0) is True
        assert bands.is_below_lower_band(99.0) is True
        assert bands.is_inside_band(103.0) is False
        assert bands.percent_b(101.0) == pytest.approx(0.5)

    def test_sample_std_dev_option(self):
        bands = BollingerBands(period=3, multiplier=2.0, ddof=1)
        for x in (100.0, 101.0, 102.0):
            bands.add(x)

        assert bands.value.upper == pytest.approx(103.0)
        assert bands.value.lower == pytest.approx(99.0)
        assert bands.is_inside_band(103.0) is True
        assert bands.is_inside_band(99.0) is True

    def test_queries_do_not_admit(self):
        bands = BollingerBands(period=3)
        for x in (1.0, 2.0, 3.0):
            bands.add(x)
        before = bands.value
        bands.is_above_upper_band(50.0)
        bands.is_inside_band(50.0)
        bands.percent_b(50.0)
        assert bands.value == before
        assert bands.sample_count == 3

    def test_none_before_ready(self):
        bands = BollingerBands(period=3)
        bands.add(1.0)
        assert bands.value is None
        assert bands.is_above_upper_band(5.0) is None
        assert bands.is_below_lower_band(5.0) is None
        assert bands.is_inside_band(5.0) is None
        assert bands.percent_b(5.0) is None

    def test_collapsed_bands(self):
        bands = BollingerBands(period=4)
        for _ in range(4):
            bands.add(10.0)
        assert bands.value.upper == bands.value.lower == 10.0
        assert bands.percent_b(10.0) == 0.5
        assert bands.is_inside_band(10.0) is True

    @pytest.mark.parametrize("multiplier", [0, -1.0, math.inf, "2"])
    def test_invalid_multiplier(self, multiplier):
        with pytest.raises(InvalidParameterError):
            BollingerBands(period=20, multiplier=multiplier)

    def test_reset(self):
        bands = BollingerBands(period=2)
        for x in (1.0, 2.0, 3.0):
            bands.add(x)
        bands.reset()
        assert bands.value is None
        bands.add(5.0)
        bands.add(7.0)
        assert bands.value.middle == 6.0


class TestMACD:

    def test_ready_after_slow_plus_signal(self):
        macd = MACD(12, 26, 9)
        prices = _ramp(100.0, 150.0, 40)
        for i, x in enumerate(prices, start=1):
            macd.add(x)
            if i < 26:
                assert macd.macd_line is None
            if i < 34:
                assert macd.value is None
        assert macd.is_ready

    def test_monotonic_input_never_bearish(self):
        macd = MACD(fast_period=12, slow_period=26)
        for x in _ramp(100.0, 300.0, 400):
            macd.add(x)
            assert macd.last_cross is not CrossEvent.BEARISH
            if macd.value is not None:
                assert macd.value.macd > 0

    def test_histogram_identity(self, random_walk):
        macd = MACD()
        for x in random_walk:
            macd.add(x)
            if macd.value is not None:
                line, signal, histogram = macd.value
                assert histogram == pytest.approx(line - signal)

    def test_crosses_on_oscillating_input(self):
        macd = MACD(fast_period=3, slow_period=6, signal_period=3)
        events = []
        for i in range(300):
            macd.add(100.0 + 10.0 * math.sin(2 * math.pi * i / 40))
            events.append(macd.last_cross)
        assert CrossEvent.BULLISH in events
        assert CrossEvent.BEARISH in events

    def test_peek_next(self, random_walk):
        macd = MACD(5, 10, 4)
        for x in random_walk[:100]:
            preview = macd.peek_next(x)
            macd.add(x)
            if preview is None:
                assert macd.value is None
            else:
                assert macd.value.macd == pytest.approx(preview.macd, rel=1e-9, abs=1e-12)
                assert macd.value.signal == pytest.approx(preview.signal, rel=1e-9, abs=1e-12)

    def test_divergence_available_after_window(self, random_walk):
        macd = MACD(5, 10, 4, divergence_window=20)
        for x in random_walk[:20]:
            macd.add(x)
        assert macd.divergence() is None

        for x in random_walk[20:200]:
            macd.add(x)
        assert isinstance(macd.divergence(), float)

    @staticmethod
    def _spike_then_grind(direction: float):
        # One-bar spike of 10, a flat stretch, then a slow 12-bar ramp to a
        # more extreme level of 12 and a return to the base
        base = [100.0] * 20
        spike = [100.0 + direction * 10.0]
        flat = [100.0] * 10
        grind = [100.0 + direction * k for k in range(1, 13)]
        return base + spike + flat + grind + [100.0, 100.0]

    def _feed_with_reference(self, prices):
        macd = MACD(3, 6, 3, divergence_window=30, neighborhood=2)
        reference = PeakTroughDetector(30, 2)
        for x in prices:
            macd.add(x)
            if macd.value is not None:
                reference.add(x, macd.value.histogram)
        return macd, reference

    def test_bearish_divergence_on_fading_higher_high(self):
        macd, reference = self._feed_with_reference(self._spike_then_grind(1.0))

        # Spike bar and ramp top are the two latest price peaks
        assert reference.peaks() == [5, 27]
        assert macd.divergence() > 0
        assert macd.divergence() == pytest.approx(reference.divergence())

    def test_bullish_divergence_on_fading_lower_low(self):
        macd, reference = self._feed_with_reference(self._spike_then_grind(-1.0))

        assert reference.troughs() == [5, 27]
        assert macd.divergence() < 0
        assert macd.divergence() == pytest.approx(reference.divergence())

    @pytest.mark.parametrize("fast, slow", [(26, 12), (12, 12)])
    def test_slow_must_exceed_fast(self, fast, slow):
        with pytest.raises(InvalidParameterError):
            MACD(fast_period=fast, slow_period=slow)

    def test_invalid_periods(self):
        with pytest.raises(InvalidParameterError):
            MACD(signal_period=0)
        with pytest.raises(InvalidParameterError):
            MACD(divergence_window=3)

    def test_reset(self, random_walk):
        macd = MACD(3, 6, 3)
        for x in random_walk[:50]:
            macd.add(x)
        macd.reset()
        assert macd.value is None
        assert macd.macd_line is None
        assert macd.last_cross is CrossEvent.NONE
        assert macd.divergence() is None


class TestStochastic:

    def test_flat_window_reports_midpoint(self):
        stoch = Stochastic(k_period=5, d_period=3)
        for _ in range(5):
            stoch.add(100.0)
        assert stoch.percent_k == 50.0

        stoch.add(100.0)
        stoch.add(100.0)
        assert stoch.value.k == 50.0
        assert stoch.value.d == 50.0

    def test_percent_k_bounds(self):
        stoch = Stochastic(k_period=5, d_period=3)
        for x in (1.0, 2.0, 3.0, 4.0, 5.0):
            stoch.add(x)
        assert stoch.percent_k == 100.0
        assert stoch.value.d is None

        stoch.add((5.0, 0.0, 0.0))
        assert stoch.percent_k == 0.0

    def test_not_ready_before_k_period(self):
        stoch = Stochastic(k_period=5)
        for x in (1.0, 2.0, 3.0, 4.0):
            stoch.add(x)
        assert stoch.value is None
        assert stoch.zone() is None
        assert stoch.is_overbought() is None
        assert stoch.is_oversold() is None

    def test_zones(self):
        stoch = Stochastic(k_period=3)
        for x in (1.0, 2.0, 3.0):
            stoch.add(x)
        assert stoch.zone() is Zone.OVERBOUGHT
        assert stoch.is_overbought() is True
        assert stoch.is_oversold() is False

        stoch.add(0.5)
        assert stoch.is_oversold() is True

    def test_smoothed_k(self):
        stoch = Stochastic(k_period=3, d_period=2, smooth_k=2)
        for x in (1.0, 2.0, 3.0):
            stoch.add(x)
        assert stoch.value is None

        stoch.add((3.0, 1.0, 2.0))
        # raw %K: 100 then 50
        assert stoch.percent_k == pytest.approx(75.0)

    def test_peek_next(self, ohlc_bars):
        stoch = Stochastic(k_period=14)
        for bar in ohlc_bars:
            preview = stoch.peek_next(bar)
            stoch.add(bar)
            assert stoch.percent_k == preview

    def test_rejects_inconsistent_bar(self):
        stoch = Stochastic()
        with pytest.raises(BarRangeError):
            stoch.add({'high': 1.0, 'low': 2.0, 'close': 1.5})

    def test_invalid_parameters(self):
        with pytest.raises(InvalidParameterError):
            Stochastic(k_period=0)
        with pytest.raises(InvalidParameterError):
            Stochastic(d_period=0)
        with pytest.raises(InvalidParameterError):
            Stochastic(overbought=20, oversold=80)


class TestKDJ:

    @staticmethod
    def _run(kdj, closes):
        crosses = []
        for x in closes:
            kdj.add(x)
            crosses.append(kdj.cross())
        return crosses

    def test_ready_after_all_smoothing(self):
        kdj = KDJ(k_period=9, slow_k_period=3, slow_d_period=3)
        for i in range(12):
            kdj.add(100.0 + i)
            assert kdj.value is None
            assert kdj.cross() is None
            assert kdj.zone() is None
            assert kdj.peak_bottom() is None
            assert kdj.j_centered is None

        kdj.add(112.0)
        assert kdj.is_ready

    def test_j_line(self, ohlc_bars):
        kdj = KDJ()
        for bar in ohlc_bars:
            kdj.add(bar)
            if kdj.value is not None:
                k, d, j = kdj.value
                assert j == pytest.approx(3 * k - 2 * d)
                assert kdj.j_centered == pytest.approx(j - 50.0)

    def test_flat_series(self):
        kdj = KDJ()
        for _ in range(20):
            kdj.add(10.0)
        assert kdj.value == (50.0, 50.0, 50.0)
        assert kdj.j_centered == 0.0
        assert kdj.zone() is Zone.NEUTRAL
        assert kdj.peak_bottom() is PeakBottom.NONE

    def test_golden_and_death_cross(self):
        kdj = KDJ()
        up = _ramp(100.0, 115.0, 16)
        down = _ramp(114.0, 90.0, 25)
        up_again = _ramp(91.0, 120.0, 30)
        down_again = _ramp(119.0, 95.0, 25)

        crosses = self._run(kdj, up + down + up_again + down_again)

        assert crosses.count(KDJCross.GOLDEN_CROSS) == 1
        assert crosses.count(KDJCross.DEATH_CROSS) == 1
        assert crosses.index(KDJCross.GOLDEN_CROSS) < crosses.index(KDJCross.DEATH_CROSS)

    def test_cross_thresholds_gate_events(self):
        kdj = KDJ(golden_cross_threshold=-1.0, death_cross_threshold=101.0)
        up = _ramp(100.0, 115.0, 16)
        down = _ramp(114.0, 90.0, 25)
        up_again = _ramp(91.0, 120.0, 30)
        down_again = _ramp(119.0, 95.0, 25)

        crosses = self._run(kdj, up + down + up_again + down_again)

        assert KDJCross.GOLDEN_CROSS not in crosses
        assert KDJCross.DEATH_CROSS not in crosses

    def test_zone_and_peak_bottom(self):
        kdj = KDJ(peak_threshold=90.0, bottom_threshold=10.0)
        for x in _ramp(100.0, 130.0, 30):
            kdj.add(x)
        assert kdj.zone() is Zone.OVERBOUGHT
        assert kdj.peak_bottom() is PeakBottom.PEAK

        for x in _ramp(129.0, 60.0, 30):
            kdj.add(x)
        assert kdj.zone() is Zone.OVERSOLD
        assert kdj.peak_bottom() is PeakBottom.BOTTOM

    def test_peek_next_matches_fast_stochastic(self, ohlc_bars):
        kdj = KDJ(k_period=9)
        stoch = Stochastic(k_period=9)
        for bar in ohlc_bars:
            preview = kdj.peek_next(bar)
            kdj.add(bar)
            stoch.add(bar)
            assert preview == stoch.percent_k

    def test_invalid_parameters(self):
        with pytest.raises(InvalidParameterError):
            KDJ(k_period=0)
        with pytest.raises(InvalidParameterError):
            KDJ(slow_d_period=-1)
        with pytest.raises(InvalidParameterError):
            KDJ(peak_threshold=0.0, bottom_threshold=100.0)
        with pytest.raises(InvalidParameterError):
            KDJ(golden_cross_threshold=math.nan)

    def test_reset(self, ohlc_bars):
        kdj = KDJ()
        for bar in ohlc_bars[:30]:
            kdj.add(bar)
        kdj.reset()
        assert kdj.value is None
        assert kdj.cross() is None
        assert kdj.highest_high is None
