"""Tests for SMA and EMA accumulators."""

import math

import pytest

from tickstat.technical_analysis import (
    EMA,
    SMA,
    InsufficientDataError,
    InvalidDataError,
    InvalidParameterError,
    MissingInputError,
)


class TestSMA:

    def test_matches_recomputation(self, random_walk):
        period = 10
        sma = SMA(period)
        for i, x in enumerate(random_walk):
            sma.add(x)
            if i + 1 < period:
                assert sma.value is None
            else:
                window = random_walk[i + 1 - period:i + 1]
                assert sma.value == pytest.approx(sum(window) / period, rel=1e-9)

    def test_previous_and_history(self):
        sma = SMA(2)
        for x in (1.0, 3.0, 5.0):
            sma.add(x)

        assert sma.value == 4.0
        assert sma.previous == 2.0
        assert sma.get_history(3) == [None, 2.0, 4.0]

    def test_peek_next(self, random_walk):
        sma = SMA(5)
        for x in random_walk[:50]:
            preview = sma.peek_next(x)
            sma.add(x)
            if preview is None:
                assert sma.value is None
            else:
                assert sma.value == pytest.approx(preview, rel=1e-12)

    def test_mapping_samples_use_input_field(self):
        sma = SMA(2, input_field='high')
        sma.add({'high': 10.0, 'close': 1.0})
        sma.add({'high': 20.0, 'close': 1.0})
        assert sma.value == 15.0

        with pytest.raises(MissingInputError):
            sma.add({'close': 1.0})

    def test_time_gapped_admission(self):
        sma = SMA(2, min_interval=1000)
        sma.add({'close': 1.0, 'timestamp': 0})
        sma.add({'close': 100.0, 'timestamp': 400})
        sma.add(3.0, timestamp=1000)

        assert sma.value == 2.0
        assert sma.dropped_count == 1
        assert sma.sample_count == 2
        assert sma.last_update_time == 1000

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf, None, "10", True])
    def test_rejects_invalid_samples(self, bad):
        sma = SMA(3)
        with pytest.raises(InvalidDataError):
            sma.add(bad)
        assert sma.count == 0

    def test_require_and_reset(self):
        sma = SMA(3)
        sma.add(1.0)
        with pytest.raises(InsufficientDataError) as excinfo:
            sma.require()
        assert excinfo.value.current_count == 1
        assert excinfo.value.required_count == 3
        assert "[SMA]" in str(excinfo.value)

        sma.add(2.0)
        sma.add(3.0)
        assert sma.require() == 2.0

        sma.reset()
        assert sma.value is None
        assert sma.sample_count == 0
        assert sma.get_history() == []

    @pytest.mark.parametrize("period", [0, -5, 2.5, True])
    def test_invalid_period(self, period):
        with pytest.raises(InvalidParameterError):
            SMA(period)

    def test_invalid_input_field(self):
        with pytest.raises(InvalidParameterError):
            SMA(3, input_field='vwap')


class TestEMA:

    def test_not_ready_until_seeded(self):
        ema = EMA(3)
        ema.add(1.0)
        ema.add(2.0)
        assert ema.value is None
        assert not ema.is_ready

        ema.add(3.0)
        assert ema.value == 2.0
        assert ema.is_ready

    def test_recurrence_after_seed(self):
        ema = EMA(3)
        for x in (1.0, 2.0, 3.0, 4.0):
            ema.add(x)
        # alpha = 2 / (3 + 1) = 0.5
        assert ema.value == pytest.approx(3.0)

    def test_wilder_and_custom_alpha(self):
        assert EMA(14, wilder=True).alpha == pytest.approx(1 / 14)
        assert EMA(10).alpha == pytest.approx(2 / 11)
        assert EMA(10, alpha=0.3).alpha == pytest.approx(0.3)

    def test_matches_seeded_reference(self, random_walk, seeded_ema):
        period = 12
        ema = EMA(period)
        expected = seeded_ema(random_walk, period, 2 / (period + 1))

        for x, reference in zip(random_walk, expected):
            ema.add(x)
            if reference is None:
                assert ema.value is None
            else:
                assert ema.value == pytest.approx(reference, rel=1e-9)

    def test_peek_next(self, random_walk):
        ema = EMA(4)
        for x in random_walk[:30]:
            preview = ema.peek_next(x)
            ema.add(x)
            assert preview == ema.value or preview == pytest.approx(ema.value)

    @pytest.mark.parametrize("alpha", [0, -0.1, 1.5, "0.2"])
    def test_invalid_alpha(self, alpha):
        with pytest.raises(InvalidParameterError):
            EMA(10, alpha=alpha)

    def test_alpha_with_wilder_rejected(self):
        with pytest.raises(InvalidParameterError):
            EMA(10, alpha=0.2, wilder=True)

    def test_reset(self):
        ema = EMA(2)
        for x in (1.0, 2.0, 3.0):
            ema.add(x)
        ema.reset()
        assert ema.value is None
        ema.add(5.0)
        ema.add(7.0)
        assert ema.value == 6.0
