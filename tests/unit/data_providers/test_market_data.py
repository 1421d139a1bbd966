from datetime import UTC, datetime, timedelta

import pandas as pd
import pytest

from range_trader.data_providers.market_data import Quote, bars_from_frame
from range_trader.data_providers.mock_data_provider import MockMarketDataFeed

pytestmark = pytest.mark.unit

START = datetime(2024, 6, 11, 9, 0, tzinfo=UTC)


def test_bars_from_frame_is_most_recent_first():
    index = pd.date_range("2024-06-11 09:00", periods=3, freq="1min", tz="UTC")
    df = pd.DataFrame(
        {
            "open": [1.0, 2.0, 3.0],
            "high": [1.5, 2.5, 3.5],
            "low": [0.5, 1.5, 2.5],
            "close": [1.2, 2.2, 3.2],
        },
        index=index,
    )

    bars = bars_from_frame(df)

    assert [b.close for b in bars] == [3.2, 2.2, 1.2]
    assert bars[0].timestamp == index[-1].to_pydatetime()
    assert bars[0].volume == 0.0
    assert [b.close for b in bars_from_frame(df, count=2)] == [3.2, 2.2]


def test_bars_from_empty_frame():
    assert bars_from_frame(pd.DataFrame()) == []


def test_quote_spread():
    assert Quote(bid=1.1000, ask=1.1002).spread == pytest.approx(0.0002)


class TestMockMarketDataFeed:
    def test_same_seed_gives_same_bars(self, instrument):
        a = MockMarketDataFeed(instrument, START, seed=5)
        b = MockMarketDataFeed(instrument, START, seed=5)

        assert a.get_recent_bars("EURUSD", "1m", 30) == b.get_recent_bars("EURUSD", "1m", 30)

    def test_bars_are_consistent_and_ordered(self, instrument):
        feed = MockMarketDataFeed(instrument, START, warmup_bars=60)

        bars = feed.get_recent_bars("EURUSD", "1m", 60)

        assert len(bars) == 60
        assert all(b.low <= min(b.open, b.close) and b.high >= max(b.open, b.close) for b in bars)
        assert all(a.timestamp > b.timestamp for a, b in zip(bars, bars[1:]))

    def test_advance_appends_completed_minutes(self, instrument):
        feed = MockMarketDataFeed(instrument, START, warmup_bars=10)

        added = feed.advance(START + timedelta(minutes=5, seconds=30))

        assert added == 5
        assert len(feed.get_recent_bars("EURUSD", "1m", 100)) == 15
        assert feed.advance(START + timedelta(minutes=5, seconds=40)) == 0

    def test_quote_tracks_last_close(self, instrument):
        feed = MockMarketDataFeed(instrument, START, spread_points=10)

        quote = feed.get_bid_ask("EURUSD")

        assert quote.bid == feed.get_recent_bars("EURUSD", "1m", 1)[0].close
        assert quote.spread == pytest.approx(0.0001)

    def test_resampled_intervals(self, instrument):
        feed = MockMarketDataFeed(instrument, START, warmup_bars=120)

        bars = feed.get_recent_bars("EURUSD", "5m", 10)

        assert len(bars) == 10
        assert bars[0].timestamp - bars[1].timestamp == timedelta(minutes=5)

    def test_unknown_symbol_and_interval(self, instrument):
        feed = MockMarketDataFeed(instrument, START)

        assert feed.get_recent_bars("GBPUSD", "1m", 10) == []
        with pytest.raises(ValueError):
            feed.get_recent_bars("EURUSD", "7m", 10)
