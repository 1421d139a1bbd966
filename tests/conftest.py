"""
Pytest configuration and shared fixtures for the range trader test suite.

Provides a five-digit EURUSD instrument, a static in-memory feed whose bars and
quote the test controls, a paper venue on top of it, and a bar builder for
volatility windows.
"""

from datetime import UTC, datetime, timedelta

import pytest

from range_trader.config.settings import SignalMode, StrategySettings, parse_hhmm
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import MarketDataFeed, PriceBar, Quote
from range_trader.data_providers.paper_venue import PaperExecutionVenue
from range_trader.scheduling.clock import ManualClock

START = datetime(2024, 6, 11, 9, 0, tzinfo=UTC)


class StaticFeed(MarketDataFeed):
    """Feed returning whatever bars and quote the test set"""

    def __init__(self, symbol="EURUSD", bars=None, bid=1.1008, ask=1.1009):
        self.symbol = symbol
        self.bars = list(bars or [])
        self.quote = Quote(bid=bid, ask=ask)
        self.bar_requests = 0

    def set_quote(self, bid, ask=None):
        self.quote = Quote(bid=bid, ask=ask if ask is not None else round(bid + 0.0001, 5))

    def get_recent_bars(self, symbol, interval, count):
        self.bar_requests += 1
        if symbol != self.symbol:
            return []
        return self.bars[:count]

    def get_bid_ask(self, symbol):
        return self.quote


def build_bars(count=60, high=1.1010, low=1.1005, extremes=None, end=START):
    """Most-recent-first bars with flat highs/lows, overridden per index.

    ``extremes`` maps bar index to a (high, low) pair; None keeps the default.
    """
    extremes = extremes or {}
    bars = []
    for i in range(count):
        bar_high, bar_low = extremes.get(i, (None, None))
        bar_high = high if bar_high is None else bar_high
        bar_low = low if bar_low is None else bar_low
        bars.append(
            PriceBar(
                timestamp=end - timedelta(minutes=i + 1),
                open=bar_low,
                high=bar_high,
                low=bar_low,
                close=bar_high,
                volume=100.0,
            )
        )
    return bars


@pytest.fixture
def instrument():
    return InstrumentSpec.forex("EURUSD", digits=5)


@pytest.fixture
def bar_builder():
    return build_bars


@pytest.fixture
def quiet_bars():
    """Sixty bars spanning 1.1000-1.1015 with both extremes well aged"""
    return build_bars(extremes={10: (1.1015, None), 8: (None, 1.1000)})


@pytest.fixture
def feed_factory():
    return StaticFeed


@pytest.fixture
def static_feed(quiet_bars):
    return StaticFeed(bars=quiet_bars)


@pytest.fixture
def manual_clock():
    return ManualClock(START)


@pytest.fixture
def paper_venue(instrument, static_feed, manual_clock):
    return PaperExecutionVenue(instrument, static_feed, initial_balance=10000.0, clock=manual_clock)


@pytest.fixture
def settings_factory():
    def _make(**overrides):
        params = {
            "symbol": "EURUSD",
            "trading_start": parse_hhmm("00:00"),
            "trading_end": parse_hhmm("00:00"),
            "signal_mode": SignalMode.RANDOM,
            "random_seed": 7,
            "trailing_activation_pips": 2.0,
        }
        params.update(overrides)
        return StrategySettings(**params)

    return _make


@pytest.fixture
def settings(settings_factory):
    return settings_factory()
