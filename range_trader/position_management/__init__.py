from .ledger import PositionLedger, PositionTrackingRecord, ReconcileResult
from .pnl import exit_price, unrealized_pips
from .time_exits import EndOfDayLiquidation, ForcedClose, LossTimeLimitMonitor
from .trailing_stops import TrailingStopManager, TrailingStopPolicy, TrailingUpdate, tightens

__all__ = [
    "EndOfDayLiquidation",
    "ForcedClose",
    "LossTimeLimitMonitor",
    "PositionLedger",
    "PositionTrackingRecord",
    "ReconcileResult",
    "TrailingStopManager",
    "TrailingStopPolicy",
    "TrailingUpdate",
    "exit_price",
    "tightens",
    "unrealized_pips",
]
