from .signal_generator import (
    CompositeSignalGenerator,
    RandomSignalGenerator,
    Signal,
    SignalDirection,
    SignalGenerator,
    TrendSignalGenerator,
    create_signal_generator,
)
from .volatility import (
    RejectReason,
    VolatilityAnalysis,
    VolatilityWindow,
    VolatilityWindowAnalyzer,
    analyze_volatility,
)

__all__ = [
    "CompositeSignalGenerator",
    "RandomSignalGenerator",
    "RejectReason",
    "Signal",
    "SignalDirection",
    "SignalGenerator",
    "TrendSignalGenerator",
    "VolatilityAnalysis",
    "VolatilityWindow",
    "VolatilityWindowAnalyzer",
    "analyze_volatility",
    "create_signal_generator",
]
