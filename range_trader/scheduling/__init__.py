from .clock import Clock, ManualClock, SystemClock
from .scheduler import CheckScheduler, DailyCounters, ScheduleState, TradingHours, day_floor

__all__ = [
    "CheckScheduler",
    "Clock",
    "DailyCounters",
    "ManualClock",
    "ScheduleState",
    "SystemClock",
    "TradingHours",
    "day_floor",
]
