from .session import SessionStatistics, TradingSession
from .trading_engine import CycleReport, RangeTradingEngine, SkipReason

__all__ = [
    "CycleReport",
    "RangeTradingEngine",
    "SessionStatistics",
    "SkipReason",
    "TradingSession",
]
