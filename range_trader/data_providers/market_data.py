"""
Market data contracts.

The analyzer consumes one-minute bars ordered most-recent-first; providers that
keep OHLCV frames in time order convert them with ``bars_from_frame``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

import pandas as pd


@dataclass(frozen=True)
class PriceBar:
    """One fixed-duration OHLC interval"""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True)
class Quote:
    """Current top of book"""

    bid: float
    ask: float

    @property
    def spread(self) -> float:
        return self.ask - self.bid


def bars_from_frame(df: pd.DataFrame, count: int | None = None) -> list[PriceBar]:
    """Convert an OHLCV frame (oldest row first) into most-recent-first bars.

    Args:
        df: Frame indexed by timestamp with open/high/low/close[/volume] columns
        count: Keep only the most recent ``count`` bars

    Returns:
        List of PriceBar, index 0 being the most recent bar
    """
    if df is None or df.empty:
        return []
    frame = df if count is None else df.tail(count)
    has_volume = "volume" in frame.columns
    bars = [
        PriceBar(
            timestamp=pd.Timestamp(ts).to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume) if has_volume else 0.0,
        )
        for ts, row in zip(frame.index, frame.itertuples(index=False))
    ]
    bars.reverse()
    return bars


class MarketDataFeed(ABC):
    """
    Abstract market data source.

    Implementations may return fewer bars than requested near session start.
    """

    @abstractmethod
    def get_recent_bars(self, symbol: str, interval: str, count: int) -> list[PriceBar]:
        """
        Fetch the most recent bars.

        Args:
            symbol: Instrument symbol (e.g., 'EURUSD')
            interval: Bar interval (e.g., '1m')
            count: Number of bars requested

        Returns:
            Bars ordered most-recent-first, possibly fewer than ``count``
        """
        pass

    @abstractmethod
    def get_bid_ask(self, symbol: str) -> Quote:
        """Return the current bid/ask for a symbol."""
        pass
