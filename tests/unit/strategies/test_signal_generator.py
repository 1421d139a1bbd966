import math
from unittest.mock import Mock

import numpy as np
import pytest

from range_trader.config.settings import MovingAverageMethod, SignalMode
from range_trader.data_providers.market_data import Quote
from range_trader.indicators.moving_average import INVALID_HANDLE, IndicatorProvider
from range_trader.strategies.signal_generator import (
    CompositeSignalGenerator,
    RandomSignalGenerator,
    SignalDirection,
    TrendSignalGenerator,
    create_signal_generator,
)

pytestmark = pytest.mark.unit

QUOTE = Quote(bid=1.1008, ask=1.1009)


def make_provider(ready=True, values=(1.1000,), handle=1):
    provider = Mock(spec=IndicatorProvider)
    provider.create_indicator.return_value = handle
    if isinstance(ready, list):
        provider.is_ready.side_effect = ready
    else:
        provider.is_ready.return_value = ready
    provider.read_values.return_value = list(values)
    return provider


def make_trend(provider, max_attempts=5, sleep=None, rng=None):
    return TrendSignalGenerator(
        provider=provider,
        symbol="EURUSD",
        timeframe="1m",
        period=50,
        method=MovingAverageMethod.SMA,
        max_attempts=max_attempts,
        rng=rng,
        sleep=sleep or Mock(),
    )


class TestRandomSignalGenerator:
    def test_same_seed_gives_same_directions(self):
        a = RandomSignalGenerator(np.random.default_rng(11))
        b = RandomSignalGenerator(np.random.default_rng(11))

        seq_a = [a.generate_signal(QUOTE).direction for _ in range(20)]
        seq_b = [b.generate_signal(QUOTE).direction for _ in range(20)]

        assert seq_a == seq_b

    def test_draws_both_directions_only(self):
        gen = RandomSignalGenerator(np.random.default_rng(3))

        directions = {gen.generate_signal(QUOTE).direction for _ in range(200)}

        assert directions == {SignalDirection.LONG, SignalDirection.SHORT}


class TestTrendSignalGenerator:
    def test_bid_above_average_goes_long(self):
        signal = make_trend(make_provider(values=[1.1000])).generate_signal(QUOTE)

        assert signal.direction is SignalDirection.LONG
        assert signal.metadata["moving_average"] == 1.1000

    def test_bid_below_average_goes_short(self):
        signal = make_trend(make_provider(values=[1.1020])).generate_signal(QUOTE)

        assert signal.direction is SignalDirection.SHORT

    def test_bid_equal_to_average_gives_no_signal(self):
        signal = make_trend(make_provider(values=[1.1008])).generate_signal(QUOTE)

        assert signal.direction is SignalDirection.NONE
        assert signal.metadata["reason"] == "price_at_average"

    def test_never_ready_exhausts_the_attempt_budget(self):
        provider = make_provider(ready=False)
        sleep = Mock()

        signal = make_trend(provider, max_attempts=5, sleep=sleep).generate_signal(QUOTE)

        assert signal.direction is SignalDirection.NONE
        assert signal.metadata == {"reason": "indicator_not_ready", "attempts": 5}
        assert provider.is_ready.call_count == 5
        # No wait after the final attempt
        assert sleep.call_count == 4
        provider.read_values.assert_not_called()

    def test_backoff_is_drawn_between_100_and_500_ms(self):
        sleep = Mock()
        gen = make_trend(make_provider(ready=False), sleep=sleep, rng=np.random.default_rng(5))

        gen.generate_signal(QUOTE)

        delays = [c.args[0] for c in sleep.call_args_list]
        assert all(0.1 <= d <= 0.5 for d in delays)

    def test_ready_after_retries(self):
        provider = make_provider(ready=[False, False, True])

        signal = make_trend(provider).generate_signal(QUOTE)

        assert signal.direction is SignalDirection.LONG
        assert signal.metadata["attempts"] == 3

    def test_invalid_handle_gives_no_signal(self):
        provider = make_provider(handle=INVALID_HANDLE)

        signal = make_trend(provider).generate_signal(QUOTE)

        assert signal.metadata["reason"] == "invalid_handle"
        provider.is_ready.assert_not_called()

    def test_short_read_gives_no_signal(self):
        signal = make_trend(make_provider(values=[])).generate_signal(QUOTE)

        assert signal.metadata["reason"] == "short_read"

    @pytest.mark.parametrize("value", [math.nan, 0.0, -1.0])
    def test_unusable_value_gives_no_signal(self, value):
        signal = make_trend(make_provider(values=[value])).generate_signal(QUOTE)

        assert signal.metadata["reason"] == "invalid_value"

    def test_handle_is_created_once_and_released_on_close(self):
        provider = make_provider()
        gen = make_trend(provider)

        gen.generate_signal(QUOTE)
        gen.generate_signal(QUOTE)
        gen.close()

        provider.create_indicator.assert_called_once_with(
            "EURUSD", "1m", 50, MovingAverageMethod.SMA
        )
        provider.release.assert_called_once_with(1)
        assert gen.handle == INVALID_HANDLE


class TestCompositeSignalGenerator:
    def test_hybrid_falls_back_to_random_when_trend_is_silent(self):
        trend = make_trend(make_provider(ready=False))
        gen = CompositeSignalGenerator(
            SignalMode.HYBRID, RandomSignalGenerator(np.random.default_rng(1)), trend
        )

        signal = gen.generate_signal(QUOTE)

        assert signal.is_actionable
        assert signal.source == "random_signal_generator"
        assert signal.metadata["fallback_from"]["reason"] == "indicator_not_ready"

    def test_hybrid_uses_trend_when_available(self):
        trend = make_trend(make_provider(values=[1.1020]))
        gen = CompositeSignalGenerator(
            SignalMode.HYBRID, RandomSignalGenerator(np.random.default_rng(1)), trend
        )

        assert gen.generate_signal(QUOTE).direction is SignalDirection.SHORT

    def test_trend_only_mode_does_not_fall_back(self):
        trend = make_trend(make_provider(ready=False))
        gen = CompositeSignalGenerator(
            SignalMode.TREND, RandomSignalGenerator(np.random.default_rng(1)), trend
        )

        assert gen.generate_signal(QUOTE).direction is SignalDirection.NONE

    def test_trend_modes_require_a_trend_generator(self):
        with pytest.raises(ValueError):
            CompositeSignalGenerator(SignalMode.HYBRID, RandomSignalGenerator(np.random.default_rng()))


def test_factory_builds_random_only_without_provider(settings_factory):
    gen = create_signal_generator(
        settings_factory(signal_mode=SignalMode.RANDOM), None, np.random.default_rng(0)
    )

    assert gen.trend_generator is None
    assert gen.generate_signal(QUOTE).is_actionable


def test_factory_rejects_trend_mode_without_provider(settings_factory):
    with pytest.raises(ValueError):
        create_signal_generator(
            settings_factory(signal_mode=SignalMode.HYBRID), None, np.random.default_rng(0)
        )
