"""
Configuration management for the range trader
"""

from .config_manager import ConfigManager, get_config, set_config
from .settings import MovingAverageMethod, SignalMode, SizingMode, StrategySettings, parse_hhmm

__all__ = [
    "ConfigManager",
    "get_config",
    "set_config",
    "StrategySettings",
    "SignalMode",
    "SizingMode",
    "MovingAverageMethod",
    "parse_hhmm",
]
