from datetime import UTC, datetime, time, timedelta

import numpy as np
import pytest

from range_trader.scheduling.clock import ManualClock
from range_trader.scheduling.scheduler import (
    CheckScheduler,
    DailyCounters,
    ScheduleState,
    TradingHours,
    day_floor,
)

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 11, 9, 30, tzinfo=UTC)


def make_scheduler(seed=42, random_schedule=True, min_minutes=5, max_minutes=25, per_hour=4):
    return CheckScheduler(
        random_schedule=random_schedule,
        checks_per_hour=per_hour,
        min_check_minutes=min_minutes,
        max_check_minutes=max_minutes,
        rng=np.random.default_rng(seed),
    )


def test_same_seed_reproduces_the_schedule():
    a, b = make_scheduler(seed=99), make_scheduler(seed=99)

    times_a = [a.schedule_next(NOW) for _ in range(25)]
    times_b = [b.schedule_next(NOW) for _ in range(25)]

    assert times_a == times_b


def test_random_offsets_cover_the_inclusive_bounds():
    scheduler = make_scheduler(min_minutes=5, max_minutes=7)

    offsets = {(scheduler.schedule_next(NOW) - NOW) for _ in range(300)}

    assert offsets == {timedelta(minutes=m) for m in (5, 6, 7)}


def test_fixed_cadence_divides_the_hour():
    scheduler = make_scheduler(random_schedule=False, per_hour=4)

    assert scheduler.schedule_next(NOW) == NOW + timedelta(minutes=15)


def test_fixed_cadence_allows_fractional_minutes():
    scheduler = make_scheduler(random_schedule=False, per_hour=7)

    assert scheduler.schedule_next(NOW) == NOW + timedelta(minutes=60 / 7)


def test_is_due_is_inclusive():
    assert CheckScheduler.is_due(NOW, None) is True
    assert CheckScheduler.is_due(NOW, NOW) is True
    assert CheckScheduler.is_due(NOW, NOW + timedelta(seconds=1)) is False


def test_mark_checked_and_reset():
    scheduler = make_scheduler()
    state = ScheduleState()

    scheduler.mark_checked(state, NOW)
    assert state.last_check_time == NOW
    assert state.next_check_time > NOW

    CheckScheduler.reset(state, NOW + timedelta(days=1))
    assert state.last_check_time is None
    assert state.next_check_time == NOW + timedelta(days=1)


def test_invalid_bounds_are_rejected():
    with pytest.raises(ValueError):
        make_scheduler(min_minutes=10, max_minutes=5)
    with pytest.raises(ValueError):
        make_scheduler(per_hour=0)


def test_daily_counters_reset_across_midnight():
    counters = DailyCounters()
    counters.roll(NOW)
    counters.daily_trade_count = 4

    just_before = datetime(2024, 6, 11, 23, 59, 59, tzinfo=UTC)
    after = datetime(2024, 6, 12, 0, 0, 1, tzinfo=UTC)

    assert counters.is_new_day(just_before) is False
    assert counters.is_new_day(after) is True
    counters.roll(after)
    assert counters.daily_trade_count == 0
    assert counters.current_day == day_floor(after)


def test_fresh_counters_report_a_new_day():
    assert DailyCounters().is_new_day(NOW) is True


@pytest.mark.parametrize(
    "start,end,at,expected",
    [
        (time(8), time(20), time(8), True),
        (time(8), time(20), time(19, 59), True),
        (time(8), time(20), time(20), False),
        (time(8), time(20), time(7, 59), False),
        (time(22), time(6), time(23), True),
        (time(22), time(6), time(5, 59), True),
        (time(22), time(6), time(12), False),
        (time(0), time(0), time(12), True),
    ],
)
def test_trading_hours(start, end, at, expected):
    now = datetime.combine(NOW.date(), at, tzinfo=UTC)

    assert TradingHours(start, end).contains(now) is expected


def test_manual_clock_advances():
    clock = ManualClock(NOW)

    clock.advance(minutes=5)

    assert clock.now() == NOW + timedelta(minutes=5)
