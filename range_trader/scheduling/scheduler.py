"""
Check scheduling and daily counters.

The engine runs every tick but only evaluates a new entry when the scheduled
check time has been reached. Checks are spaced either at a fixed cadence
(``60 / checks_per_hour`` minutes) or by a whole number of minutes drawn
uniformly from ``[min_check_minutes, max_check_minutes]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta

import numpy as np

from range_trader.config.settings import StrategySettings


def day_floor(now: datetime) -> datetime:
    """Midnight of the day containing ``now`` (timezone preserved)."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class DailyCounters:
    current_day: datetime | None = None
    daily_trade_count: int = 0

    def is_new_day(self, now: datetime) -> bool:
        return self.current_day != day_floor(now)

    def roll(self, now: datetime) -> None:
        self.current_day = day_floor(now)
        self.daily_trade_count = 0


@dataclass
class ScheduleState:
    next_check_time: datetime | None = None
    last_check_time: datetime | None = None


class CheckScheduler:
    """Computes when the next entry check is due"""

    def __init__(
        self,
        random_schedule: bool,
        checks_per_hour: int,
        min_check_minutes: int,
        max_check_minutes: int,
        rng: np.random.Generator,
    ):
        if checks_per_hour < 1:
            raise ValueError("checks_per_hour must be at least 1")
        if min_check_minutes < 0 or max_check_minutes < min_check_minutes:
            raise ValueError("check minutes must satisfy 0 <= min <= max")
        self.random_schedule = random_schedule
        self.checks_per_hour = checks_per_hour
        self.min_check_minutes = min_check_minutes
        self.max_check_minutes = max_check_minutes
        self.rng = rng

    @classmethod
    def from_settings(cls, settings: StrategySettings, rng: np.random.Generator) -> CheckScheduler:
        return cls(
            random_schedule=settings.random_schedule,
            checks_per_hour=settings.checks_per_hour,
            min_check_minutes=settings.min_check_minutes,
            max_check_minutes=settings.max_check_minutes,
            rng=rng,
        )

    def schedule_next(self, now: datetime) -> datetime:
        if self.random_schedule:
            # integers() excludes the upper bound
            minutes = int(self.rng.integers(self.min_check_minutes, self.max_check_minutes + 1))
            return now + timedelta(minutes=minutes)
        return now + timedelta(minutes=60 / self.checks_per_hour)

    @staticmethod
    def is_due(now: datetime, next_check_time: datetime | None) -> bool:
        return next_check_time is None or now >= next_check_time

    def mark_checked(self, state: ScheduleState, now: datetime) -> None:
        state.last_check_time = now
        state.next_check_time = self.schedule_next(now)

    @staticmethod
    def reset(state: ScheduleState, now: datetime) -> None:
        """A fresh day starts with a check due immediately."""
        state.last_check_time = None
        state.next_check_time = now


@dataclass(frozen=True)
class TradingHours:
    """Daily entry window; ``start > end`` wraps past midnight, ``start == end`` is all day"""

    start: time
    end: time

    def contains(self, now: datetime) -> bool:
        t = now.time().replace(tzinfo=None)
        if self.start == self.end:
            return True
        if self.start < self.end:
            return self.start <= t < self.end
        return t >= self.start or t < self.end
