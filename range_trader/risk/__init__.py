from .order_planner import OrderPlanner, PlanRejection, PlanResult, TradeIntent
from .position_sizer import FixedLotSizer, PositionSizer, RiskPercentSizer, create_position_sizer

__all__ = [
    "FixedLotSizer",
    "OrderPlanner",
    "PlanRejection",
    "PlanResult",
    "PositionSizer",
    "RiskPercentSizer",
    "TradeIntent",
    "create_position_sizer",
]
