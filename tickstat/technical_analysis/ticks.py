"""
Tick-level price sampling.

Classes:
    TickPriceKeeper: Samples the latest bid/ask quote on a fixed cadence.
    TradePriceKeeper: Samples the last trade price and side, with order-flow imbalance.
    TickVolatility: Rolling mid-price mean and standard deviation, cached per cadence.
"""

import logging
import math
import numbers
from enum import Enum
from typing import NamedTuple, Optional

from .exceptions import InvalidDataError
from .indicators.trend import SMA
from .indicators.volatility import RollingStdDev
from .validation import validate_period
from .window import TimeGate, WindowBuffer

logger = logging.getLogger(__name__)


class SmaStd(NamedTuple):
    sma: float
    std: float


def _check_quote(field_name: str, value, owner: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise InvalidDataError(field_name, value, "finite number required", owner)
    return float(value)


class TickPriceKeeper:
    """
    Bounded history of bid/ask quotes sampled on a timer.

    on_receive_tick() only updates the current quote. on_period_callback()
    records it, provided both sides are positive and at least `frequency_ms`
    elapsed since the previous record. The history keeps the newest
    `max_length` records.

    Example:
        >>> keeper = TickPriceKeeper(frequency_ms=1000, max_length=3)
        >>> keeper.on_receive_tick(99.5, 100.5)
        >>> keeper.on_period_callback(0)
        True
        >>> keeper.history_bid(-1)
        99.5
    """

    def __init__(self, frequency_ms: int, max_length: int):
        """
        Args:
            frequency_ms (int): Minimum spacing between records. 0 records
                on every callback.
            max_length (int): Number of records retained.
        """
        self.frequency_ms = frequency_ms
        self.max_length = validate_period(max_length, "max_length", indicator_name="TickPriceKeeper")
        self._gate = TimeGate(frequency_ms)

        self.current_bid = 0.0
        self.current_ask = 0.0

        self._bids = WindowBuffer(max_length)
        self._asks = WindowBuffer(max_length)
        self._timestamps = WindowBuffer(max_length)

    def on_receive_tick(self, bid: float, ask: float) -> None:
        self.current_bid = _check_quote("bid", bid, "TickPriceKeeper")
        self.current_ask = _check_quote("ask", ask, "TickPriceKeeper")

    def on_period_callback(self, timestamp: int) -> bool:
        """
        Record the current quote at `timestamp`.

        Returns:
            bool: True if a record was appended.
        """
        if self.current_bid <= 0.0 or self.current_ask <= 0.0:
            return False
        if not self._gate.admit(timestamp):
            return False

        self._bids.add(self.current_bid)
        self._asks.add(self.current_ask)
        self._timestamps.add(timestamp)
        return True

    def _history(self, series: WindowBuffer, label: str, index: int):
        size = len(series)
        if not -size <= index < size:
            raise IndexError(f"TickPriceKeeper {label} index out of range index={index} size={size}")
        return series[index]

    def history_bid(self, index: int) -> float:
        """Recorded bid by position; 0 is the oldest, -1 the newest."""
        return self._history(self._bids, "bid", index)

    def history_ask(self, index: int) -> float:
        return self._history(self._asks, "ask", index)

    def history_timestamp(self, index: int) -> int:
        return self._history(self._timestamps, "timestamp", index)

    @property
    def history_size(self) -> int:
        return len(self._bids)

    @property
    def current_mid(self) -> Optional[float]:
        """Mid of the current quote, or None without a two-sided quote."""
        if self.current_bid <= 0.0 or self.current_ask <= 0.0:
            return None
        return (self.current_bid + self.current_ask) / 2.0

    @property
    def current_spread(self) -> float:
        if self.current_bid <= 0.0 or self.current_ask <= 0.0:
            return 0.0
        return self.current_ask - self.current_bid

    def reset(self) -> None:
        self.current_bid = 0.0
        self.current_ask = 0.0
        self._bids.clear()
        self._asks.clear()
        self._timestamps.clear()
        self._gate.reset()


class TradeSide(Enum):
    """Aggressor side of a trade."""
    BUY = "buy"
    SELL = "sell"


SIDE_LOOKBACK = 10


class TradePriceKeeper:
    """
    Bounded history of last-trade prices and aggressor sides sampled on a timer.

    on_receive_trade() only updates the current trade. on_period_callback()
    records it, provided the price is positive and at least `frequency_ms`
    elapsed since the previous record.

    Example:
        >>> keeper = TradePriceKeeper(frequency_ms=0, max_length=100)
        >>> keeper.on_receive_trade(101.0, TradeSide.BUY)
        >>> keeper.on_period_callback(0)
        True
        >>> keeper.side_ratio(0)
        1.0
    """

    def __init__(self, frequency_ms: int, max_length: int):
        self.frequency_ms = frequency_ms
        self.max_length = validate_period(max_length, "max_length", indicator_name="TradePriceKeeper")
        self._gate = TimeGate(frequency_ms)

        self.current_price = 0.0
        self.current_side = TradeSide.BUY

        self._prices = WindowBuffer(max_length)
        self._sides = WindowBuffer(max_length)
        self._timestamps = WindowBuffer(max_length)

    def on_receive_trade(self, price: float, side) -> None:
        """
        Args:
            price (float): Trade price.
            side (TradeSide or str): 'buy' or 'sell'.
        """
        price = _check_quote("price", price, "TradePriceKeeper")
        try:
            side = TradeSide(side)
        except ValueError:
            raise InvalidDataError("side", side, "'buy' or 'sell'", "TradePriceKeeper") from None
        self.current_price = price
        self.current_side = side

    def on_period_callback(self, timestamp: int) -> bool:
        """
        Record the current trade at `timestamp`.

        Returns:
            bool: True if a record was appended.
        """
        if self.current_price <= 0.0:
            return False
        if not self._gate.admit(timestamp):
            return False

        self._prices.add(self.current_price)
        self._sides.add(self.current_side)
        self._timestamps.add(timestamp)
        return True

    def _history(self, series: WindowBuffer, label: str, index: int):
        size = len(series)
        if not -size <= index < size:
            raise IndexError(f"TradePriceKeeper {label} index out of range index={index} size={size}")
        return series[index]

    def history_price(self, index: int) -> float:
        """Recorded price by position; 0 is the oldest, -1 the newest."""
        return self._history(self._prices, "price", index)

    def history_side(self, index: int) -> TradeSide:
        return self._history(self._sides, "side", index)

    def history_timestamp(self, index: int) -> int:
        return self._history(self._timestamps, "timestamp", index)

    @property
    def history_size(self) -> int:
        return len(self._prices)

    @property
    def current_price_side(self) -> Optional[TradeSide]:
        """
        Majority side over the newest SIDE_LOOKBACK records.

        BUY only when buys strictly outnumber sells; None with no records.
        """
        if not len(self._sides):
            return None
        recent = list(self._sides)[-SIDE_LOOKBACK:]
        buys = sum(1 for side in recent if side is TradeSide.BUY)
        return TradeSide.BUY if buys > len(recent) - buys else TradeSide.SELL

    def side_ratio(self, timestamp_from: int) -> float:
        """
        Order-flow imbalance of records stamped at or after `timestamp_from`.

        Returns:
            float: (buys - sells) / (buys + sells) in [-1, 1], or 0.0 when no
                record falls in the range.
        """
        buys = sells = 0
        # Newest first; timestamps are recorded in non-decreasing order
        for timestamp, side in reversed(list(zip(self._timestamps, self._sides))):
            if timestamp < timestamp_from:
                break
            if side is TradeSide.BUY:
                buys += 1
            else:
                sells += 1

        total = buys + sells
        if total == 0:
            return 0.0
        return (buys - sells) / total

    def reset(self) -> None:
        self.current_price = 0.0
        self.current_side = TradeSide.BUY
        self._prices.clear()
        self._sides.clear()
        self._timestamps.clear()
        self._gate.reset()


class TickVolatility:
    """
    Rolling mean and standard deviation of tick mid prices.

    Every tick with a positive mid price feeds an SMA and a population
    RollingStdDev over the last `period` mids. The (sma, std) pair is cached
    and refreshed at most once per `frequency_ms`; a read whose timestamp is
    past the cache window gets the live values.
    """

    def __init__(self, period: int, frequency_ms: int = 0):
        self.period = validate_period(period, indicator_name="TickVolatility")
        self.frequency_ms = frequency_ms

        self.tick_price_keeper = TickPriceKeeper(frequency_ms, period)
        self._sma = SMA(period)
        self._std = RollingStdDev(period)

        self._cached: Optional[SmaStd] = None
        self._last_cache_timestamp: Optional[int] = None

    def on_receive_tick(self, timestamp: int, bid: float, ask: float) -> None:
        self.tick_price_keeper.on_receive_tick(bid, ask)

        mid = self.tick_price_keeper.current_mid
        if mid is not None:
            self.tick_price_keeper.on_period_callback(timestamp)
            self._sma.add(mid)
            self._std.update(mid)

        if self._cache_expired(timestamp):
            self._cached = self._compute()
            self._last_cache_timestamp = timestamp
            logger.debug(f"Refreshed tick volatility cache at {timestamp}: {self._cached}")

    def _cache_expired(self, timestamp: int) -> bool:
        return self._last_cache_timestamp is None or timestamp >= self._last_cache_timestamp + self.frequency_ms

    def _compute(self) -> Optional[SmaStd]:
        if not self._sma.is_ready:
            return None
        return SmaStd(self._sma.value, self._std.std_dev)

    def get_sma_and_std(self, timestamp: int) -> Optional[SmaStd]:
        """(sma, std) as of `timestamp`, or None before `period` mids were seen."""
        if self._cache_expired(timestamp):
            return self._compute()
        return self._cached

    def get_sma(self, timestamp: int) -> Optional[float]:
        pair = self.get_sma_and_std(timestamp)
        return None if pair is None else pair.sma

    def get_std(self, timestamp: int) -> Optional[float]:
        pair = self.get_sma_and_std(timestamp)
        return None if pair is None else pair.std

    def get_std_percentage(self, timestamp: int) -> Optional[float]:
        """Standard deviation as a percentage of the mean mid price."""
        pair = self.get_sma_and_std(timestamp)
        if pair is None or pair.sma == 0:
            return None
        return 100.0 * pair.std / pair.sma

    @property
    def history_size(self) -> int:
        return self._std.count

    def reset(self) -> None:
        self.tick_price_keeper.reset()
        self._sma.reset()
        self._std.reset()
        self._cached = None
        self._last_cache_timestamp = None
