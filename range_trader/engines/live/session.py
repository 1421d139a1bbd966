"""
Trading session state.

Everything the cycle handler mutates lives on one ``TradingSession`` object
owned by the engine: daily counters, the check schedule, the position ledger
and running statistics. Nothing here is process-wide.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from range_trader.position_management.ledger import PositionLedger
from range_trader.scheduling.scheduler import DailyCounters, ScheduleState


@dataclass
class SessionStatistics:
    """Running counters for one engine run"""

    cycles: int = 0
    checks: int = 0
    trades_opened: int = 0
    rejections: int = 0
    transport_failures: int = 0
    trail_activations: int = 0
    total_activation_profit_pips: float = 0.0
    stop_modifications: int = 0
    forced_closes: int = 0
    forced_close_failures: int = 0
    forced_loss_pips: float = 0.0
    eod_closes: int = 0
    positions_closed_at_venue: int = 0

    def record_activation(self, profit_pips: float) -> None:
        self.trail_activations += 1
        self.total_activation_profit_pips += profit_pips

    def record_forced_close(self, loss_pips: float, succeeded: bool) -> None:
        if succeeded:
            self.forced_closes += 1
            self.forced_loss_pips += loss_pips
        else:
            self.forced_close_failures += 1

    @property
    def average_activation_profit_pips(self) -> float:
        if self.trail_activations == 0:
            return 0.0
        return self.total_activation_profit_pips / self.trail_activations

    def summary(self) -> dict[str, Any]:
        data = asdict(self)
        data["average_activation_profit_pips"] = round(self.average_activation_profit_pips, 2)
        return data


@dataclass
class TradingSession:
    counters: DailyCounters = field(default_factory=DailyCounters)
    schedule: ScheduleState = field(default_factory=ScheduleState)
    ledger: PositionLedger = field(default_factory=PositionLedger)
    stats: SessionStatistics = field(default_factory=SessionStatistics)
    started_at: datetime | None = None
