"""
Moving-average indicator provider.

Indicators are addressed through integer handles: the caller creates one at
startup, polls ``is_ready`` until the provider has enough history, reads the
latest values and releases the handle at shutdown.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
import pandas as pd

from range_trader.config.settings import MovingAverageMethod
from range_trader.data_providers.market_data import MarketDataFeed

logger = logging.getLogger(__name__)

INVALID_HANDLE = -1

# Recursive averages (EMA/SMMA) are seeded from this many periods of history
_RECURSIVE_HISTORY_FACTOR = 4


class IndicatorProvider(ABC):
    """Abstract handle-based indicator source"""

    @abstractmethod
    def create_indicator(
        self, symbol: str, timeframe: str, period: int, method: MovingAverageMethod
    ) -> int:
        """Return a handle, or INVALID_HANDLE when the indicator cannot be built."""
        pass

    @abstractmethod
    def is_ready(self, handle: int) -> bool:
        pass

    @abstractmethod
    def read_values(self, handle: int, count: int) -> list[float]:
        """Latest values, most recent first; shorter than ``count`` on a short read."""
        pass

    @abstractmethod
    def release(self, handle: int) -> None:
        pass


def moving_average(close: pd.Series, period: int, method: MovingAverageMethod) -> pd.Series:
    """Calculate a moving average over a time-ordered close series"""
    if method is MovingAverageMethod.SMA:
        return close.rolling(window=period).mean()
    if method is MovingAverageMethod.EMA:
        ma = close.ewm(span=period, adjust=False).mean()
    elif method is MovingAverageMethod.SMMA:
        ma = close.ewm(alpha=1.0 / period, adjust=False).mean()
    elif method is MovingAverageMethod.LWMA:
        weights = np.arange(1, period + 1, dtype=float)
        return close.rolling(window=period).apply(
            lambda x: float(np.dot(x, weights) / weights.sum()), raw=True
        )
    else:
        raise ValueError(f"Unsupported moving average method: {method}")
    # Values before a full period of history are not meaningful
    ma.iloc[: period - 1] = np.nan
    return ma


@dataclass
class _IndicatorSpec:
    symbol: str
    timeframe: str
    period: int
    method: MovingAverageMethod
    pending_polls: int = 0


class PandasIndicatorProvider(IndicatorProvider):
    """Computes moving averages from a market data feed with pandas.

    ``warmup_polls`` makes each new handle report not-ready for that many
    ``is_ready`` calls, the way a remote calculation reports while it catches up.
    """

    def __init__(self, feed: MarketDataFeed, warmup_polls: int = 0):
        self.feed = feed
        self.warmup_polls = warmup_polls
        self._handles: dict[int, _IndicatorSpec] = {}
        self._next_handle = 1

    def create_indicator(
        self, symbol: str, timeframe: str, period: int, method: MovingAverageMethod
    ) -> int:
        if period < 1 or not isinstance(method, MovingAverageMethod):
            logger.error("Cannot create %s(%s) on %s %s", method, period, symbol, timeframe)
            return INVALID_HANDLE
        handle = self._next_handle
        self._next_handle += 1
        self._handles[handle] = _IndicatorSpec(
            symbol=symbol,
            timeframe=timeframe,
            period=period,
            method=method,
            pending_polls=self.warmup_polls,
        )
        return handle

    def _history_needed(self, spec: _IndicatorSpec, count: int) -> int:
        if spec.method in (MovingAverageMethod.EMA, MovingAverageMethod.SMMA):
            return spec.period * _RECURSIVE_HISTORY_FACTOR + count
        return spec.period + count - 1

    def is_ready(self, handle: int) -> bool:
        spec = self._handles.get(handle)
        if spec is None:
            return False
        if spec.pending_polls > 0:
            spec.pending_polls -= 1
            return False
        bars = self.feed.get_recent_bars(spec.symbol, spec.timeframe, spec.period)
        return len(bars) >= spec.period

    def read_values(self, handle: int, count: int) -> list[float]:
        spec = self._handles.get(handle)
        if spec is None or count <= 0:
            return []
        bars = self.feed.get_recent_bars(
            spec.symbol, spec.timeframe, self._history_needed(spec, count)
        )
        if len(bars) < spec.period:
            return []
        close = pd.Series([bar.close for bar in reversed(bars)], dtype=float)
        values = moving_average(close, spec.period, spec.method).dropna()
        return [float(v) for v in values.iloc[::-1].iloc[:count]]

    def release(self, handle: int) -> None:
        self._handles.pop(handle, None)
