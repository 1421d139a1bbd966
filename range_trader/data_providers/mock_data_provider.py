from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import MarketDataFeed, PriceBar, Quote, bars_from_frame

_TIMEFRAME_TO_FREQ = {
    "1m": "1min",
    "5m": "5min",
    "15m": "15min",
    "30m": "30min",
    "1h": "1h",
    "4h": "4h",
    "1d": "1D",
}


class MockMarketDataFeed(MarketDataFeed):
    """Synthetic one-minute feed used for paper runs and tests.

    Generates a seedable random walk with small intrabar ranges; ``advance``
    appends completed bars up to a given time so a simulated clock can drive it.
    """

    def __init__(
        self,
        instrument: InstrumentSpec,
        start: datetime,
        seed: int | None = 42,
        base_price: float = 1.1,
        volatility_pips: float = 0.8,
        spread_points: int = 10,
        warmup_bars: int = 120,
    ):
        self.instrument = instrument
        self.volatility_pips = volatility_pips
        self.spread_points = spread_points
        self._rng = np.random.default_rng(seed)
        self._last_close = float(base_price)
        self.data = pd.DataFrame(
            columns=["open", "high", "low", "close", "volume"],
            index=pd.DatetimeIndex([], name="timestamp"),
            dtype=float,
        )
        self._append_bars(start - timedelta(minutes=warmup_bars), warmup_bars)

    def _append_bars(self, first: datetime, count: int) -> None:
        if count <= 0:
            return
        index = pd.date_range(start=first, periods=count, freq="1min", name="timestamp")
        scale = self.volatility_pips * self.instrument.pip_size
        steps = self._rng.normal(loc=0.0, scale=scale, size=count)
        close = self._last_close + np.cumsum(steps)
        open_ = np.concatenate(([self._last_close], close[:-1]))
        wick = np.abs(self._rng.normal(0.0, scale / 2, size=count))
        high = np.maximum(open_, close) + wick
        low = np.minimum(open_, close) - wick
        volume = self._rng.integers(10, 500, size=count).astype(float)
        frame = pd.DataFrame(
            {
                "open": np.round(open_, self.instrument.digits),
                "high": np.round(high, self.instrument.digits),
                "low": np.round(low, self.instrument.digits),
                "close": np.round(close, self.instrument.digits),
                "volume": volume,
            },
            index=index,
        )
        self.data = frame if self.data.empty else pd.concat([self.data, frame])
        self._last_close = float(frame["close"].iloc[-1])

    def advance(self, now: datetime) -> int:
        """Append every completed one-minute bar up to ``now``; returns bars added."""
        if self.data.empty:
            return 0
        next_open = self.data.index[-1].to_pydatetime() + timedelta(minutes=1)
        completed = int((now - next_open).total_seconds() // 60)
        self._append_bars(next_open, completed)
        return max(completed, 0)

    def get_recent_bars(self, symbol: str, interval: str, count: int) -> list[PriceBar]:
        if symbol != self.instrument.symbol or count <= 0:
            return []
        freq = _TIMEFRAME_TO_FREQ.get(interval)
        if freq is None:
            raise ValueError(f"Unsupported interval: {interval}")
        frame = self.data
        if interval != "1m":
            frame = (
                frame.resample(freq)
                .agg({"open": "first", "high": "max", "low": "min", "close": "last", "volume": "sum"})
                .dropna()
            )
        return bars_from_frame(frame, count)

    def get_bid_ask(self, symbol: str) -> Quote:
        bid = self.instrument.round_price(self._last_close)
        ask = self.instrument.round_price(bid + self.spread_points * self.instrument.point)
        return Quote(bid=bid, ask=ask)
