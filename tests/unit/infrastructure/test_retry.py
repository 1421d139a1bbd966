from unittest.mock import Mock

import numpy as np
import pytest

from range_trader.infrastructure.retry import backoff_delay, bounded_poll

pytestmark = pytest.mark.unit


def test_returns_as_soon_as_ready():
    probe = Mock(side_effect=[None, None, "value", "unused"])
    sleep = Mock()

    result = bounded_poll(probe, max_attempts=5, min_delay=0.1, max_delay=0.1, sleep=sleep)

    assert result.ready is True
    assert result.value == "value"
    assert result.attempts == 3
    assert sleep.call_count == 2
    assert result.waited_seconds == pytest.approx(0.2)


def test_gives_up_after_max_attempts():
    probe = Mock(return_value=[])
    sleep = Mock()

    result = bounded_poll(probe, max_attempts=3, sleep=sleep, description="bars")

    assert result.ready is False
    assert result.value == []
    assert result.attempts == 3
    assert probe.call_count == 3
    assert sleep.call_count == 2


def test_custom_readiness_predicate():
    probe = Mock(side_effect=[1, 2, 3])

    result = bounded_poll(probe, is_ready=lambda v: v >= 2, max_attempts=3, sleep=Mock())

    assert result.value == 2


def test_single_attempt_never_sleeps():
    sleep = Mock()

    bounded_poll(Mock(return_value=False), max_attempts=1, sleep=sleep)

    sleep.assert_not_called()


def test_at_least_one_attempt_required():
    with pytest.raises(ValueError):
        bounded_poll(Mock(), max_attempts=0)


def test_backoff_delay_bounds():
    rng = np.random.default_rng(0)

    delays = [backoff_delay(rng, 0.1, 0.5) for _ in range(100)]

    assert all(0.1 <= d <= 0.5 for d in delays)
    assert backoff_delay(None, 0.1, 0.5) == 0.1
    assert backoff_delay(rng, 0.3, 0.3) == 0.3
