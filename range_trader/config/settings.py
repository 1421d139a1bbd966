"""
Strategy settings.

The configuration surface is read once at startup into an immutable
``StrategySettings`` object; the trading core never consults the provider
chain directly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import time
from enum import Enum
from typing import Any

from .config_manager import ConfigManager
from .constants import (
    DEFAULT_BAR_FETCH_ATTEMPTS,
    DEFAULT_CHECKS_PER_HOUR,
    DEFAULT_ENTRY_MARGIN_FRACTION,
    DEFAULT_FIXED_LOT,
    DEFAULT_INDICATOR_BACKOFF_MAX_MS,
    DEFAULT_INDICATOR_BACKOFF_MIN_MS,
    DEFAULT_INDICATOR_MAX_ATTEMPTS,
    DEFAULT_LOSS_TIME_LIMIT_SECONDS,
    DEFAULT_MA_METHOD,
    DEFAULT_MA_PERIOD,
    DEFAULT_MA_TIMEFRAME,
    DEFAULT_MAGIC_NUMBER,
    DEFAULT_MAX_CHECK_MINUTES,
    DEFAULT_MAX_DAILY_TRADES,
    DEFAULT_MAX_OPEN_POSITIONS,
    DEFAULT_MIN_CHECK_MINUTES,
    DEFAULT_RANDOM_SCHEDULE,
    DEFAULT_RISK_PERCENT,
    DEFAULT_SIGNAL_MODE,
    DEFAULT_SIZING_MODE,
    DEFAULT_STOP_LOSS_PIPS,
    DEFAULT_STOP_SAFETY_MULTIPLIER,
    DEFAULT_SYMBOL,
    DEFAULT_TAKE_PROFIT_PIPS,
    DEFAULT_TICK_INTERVAL_SECONDS,
    DEFAULT_TRADING_END,
    DEFAULT_TRADING_START,
    DEFAULT_TRAILING_ACTIVATION_PIPS,
    DEFAULT_TRAILING_MIN_DISTANCE_PIPS,
    DEFAULT_TRAILING_PERCENT,
    DEFAULT_VOLATILITY_PERIOD_MINUTES,
    DEFAULT_VOLATILITY_THRESHOLD_PIPS,
    MIN_EXTREME_AGE_BARS,
)


class SignalMode(Enum):
    """How an entry direction is chosen once a cycle qualifies"""

    RANDOM = "random"
    TREND = "trend"  # moving-average comparison only
    HYBRID = "hybrid"  # moving-average comparison, random when it has no opinion


class MovingAverageMethod(Enum):
    SMA = "sma"
    EMA = "ema"
    SMMA = "smma"
    LWMA = "lwma"


class SizingMode(Enum):
    FIXED = "fixed"
    RISK_PERCENT = "risk_percent"


def parse_hhmm(value: str | time) -> time:
    """Parse an ``HH:MM`` string into a ``datetime.time``."""
    if isinstance(value, time):
        return value
    try:
        hours, minutes = str(value).strip().split(":")
        return time(hour=int(hours), minute=int(minutes))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid HH:MM time: {value!r}") from e


def _enum_value(enum_cls: type[Enum], raw: Any) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError as e:
        allowed = [m.value for m in enum_cls]
        raise ValueError(f"{enum_cls.__name__} must be one of {allowed}, got {raw!r}") from e


@dataclass(frozen=True)
class StrategySettings:
    """Immutable strategy configuration"""

    symbol: str = DEFAULT_SYMBOL
    magic_number: int = DEFAULT_MAGIC_NUMBER

    trading_start: time = parse_hhmm(DEFAULT_TRADING_START)
    trading_end: time = parse_hhmm(DEFAULT_TRADING_END)
    close_all_time: time | None = None
    max_open_positions: int = DEFAULT_MAX_OPEN_POSITIONS
    max_daily_trades: int = DEFAULT_MAX_DAILY_TRADES

    volatility_check: bool = True
    volatility_period_minutes: int = DEFAULT_VOLATILITY_PERIOD_MINUTES
    volatility_threshold_pips: float = DEFAULT_VOLATILITY_THRESHOLD_PIPS
    entry_margin_fraction: float = DEFAULT_ENTRY_MARGIN_FRACTION
    min_extreme_age_bars: int = MIN_EXTREME_AGE_BARS
    bar_fetch_attempts: int = DEFAULT_BAR_FETCH_ATTEMPTS

    stop_loss_pips: float = DEFAULT_STOP_LOSS_PIPS
    take_profit_pips: float = DEFAULT_TAKE_PROFIT_PIPS
    stop_safety_multiplier: float = DEFAULT_STOP_SAFETY_MULTIPLIER

    trailing_enabled: bool = True
    trailing_activation_pips: float = DEFAULT_TRAILING_ACTIVATION_PIPS
    trailing_percent: float = DEFAULT_TRAILING_PERCENT
    trailing_min_distance_pips: float = DEFAULT_TRAILING_MIN_DISTANCE_PIPS

    loss_time_limit_seconds: int = DEFAULT_LOSS_TIME_LIMIT_SECONDS

    sizing_mode: SizingMode = SizingMode(DEFAULT_SIZING_MODE)
    fixed_lot: float = DEFAULT_FIXED_LOT
    risk_percent: float = DEFAULT_RISK_PERCENT

    random_schedule: bool = DEFAULT_RANDOM_SCHEDULE
    checks_per_hour: int = DEFAULT_CHECKS_PER_HOUR
    min_check_minutes: int = DEFAULT_MIN_CHECK_MINUTES
    max_check_minutes: int = DEFAULT_MAX_CHECK_MINUTES

    signal_mode: SignalMode = SignalMode(DEFAULT_SIGNAL_MODE)
    ma_period: int = DEFAULT_MA_PERIOD
    ma_method: MovingAverageMethod = MovingAverageMethod(DEFAULT_MA_METHOD)
    ma_timeframe: str = DEFAULT_MA_TIMEFRAME
    indicator_max_attempts: int = DEFAULT_INDICATOR_MAX_ATTEMPTS
    indicator_backoff_min_ms: int = DEFAULT_INDICATOR_BACKOFF_MIN_MS
    indicator_backoff_max_ms: int = DEFAULT_INDICATOR_BACKOFF_MAX_MS

    random_seed: int | None = None
    tick_interval_seconds: float = DEFAULT_TICK_INTERVAL_SECONDS

    def __post_init__(self):
        """Validate settings after initialization"""
        if not self.symbol:
            raise ValueError("symbol must not be empty")
        if self.max_open_positions < 1:
            raise ValueError("max_open_positions must be at least 1")
        if self.max_daily_trades < 1:
            raise ValueError("max_daily_trades must be at least 1")
        if self.volatility_period_minutes < 1:
            raise ValueError("volatility_period_minutes must be positive")
        if self.volatility_threshold_pips <= 0:
            raise ValueError("volatility_threshold_pips must be positive")
        if not 0.0 <= self.entry_margin_fraction < 0.5:
            raise ValueError("entry_margin_fraction must be in [0, 0.5)")
        if self.min_extreme_age_bars < 0:
            raise ValueError("min_extreme_age_bars must be non-negative")
        if self.bar_fetch_attempts < 1:
            raise ValueError("bar_fetch_attempts must be at least 1")
        if self.stop_loss_pips < 0 or self.take_profit_pips < 0:
            raise ValueError("stop_loss_pips and take_profit_pips must be non-negative")
        if self.stop_safety_multiplier < 1.0:
            raise ValueError("stop_safety_multiplier must be >= 1")
        if self.trailing_activation_pips < 0:
            raise ValueError("trailing_activation_pips must be non-negative")
        if not 0.0 < self.trailing_percent <= 100.0:
            raise ValueError("trailing_percent must be in (0, 100]")
        if self.trailing_min_distance_pips <= 0:
            raise ValueError("trailing_min_distance_pips must be positive")
        if self.loss_time_limit_seconds < 0:
            raise ValueError("loss_time_limit_seconds must be non-negative")
        if self.sizing_mode is SizingMode.FIXED and self.fixed_lot <= 0:
            raise ValueError("fixed_lot must be positive")
        if self.sizing_mode is SizingMode.RISK_PERCENT:
            if not 0.0 < self.risk_percent <= 100.0:
                raise ValueError("risk_percent must be in (0, 100]")
            if self.stop_loss_pips <= 0:
                raise ValueError("risk_percent sizing requires a positive stop_loss_pips")
        if self.checks_per_hour < 1 or self.checks_per_hour > 60:
            raise ValueError("checks_per_hour must be between 1 and 60")
        if self.min_check_minutes < 0 or self.max_check_minutes < self.min_check_minutes:
            raise ValueError("check minutes must satisfy 0 <= min <= max")
        if self.random_schedule and self.max_check_minutes == 0:
            raise ValueError("randomized schedule needs max_check_minutes > 0")
        if self.ma_period < 1:
            raise ValueError("ma_period must be positive")
        if self.indicator_max_attempts < 1:
            raise ValueError("indicator_max_attempts must be at least 1")
        if (
            self.indicator_backoff_min_ms < 0
            or self.indicator_backoff_max_ms < self.indicator_backoff_min_ms
        ):
            raise ValueError("indicator backoff must satisfy 0 <= min <= max")
        if self.tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")

    @classmethod
    def from_config(cls, config: ConfigManager) -> StrategySettings:
        """Build settings from the ``RT_*`` keys of a configuration manager."""
        close_all = config.get("RT_CLOSE_ALL_TIME")
        seed = config.get("RT_RANDOM_SEED")
        return cls(
            symbol=config.get("RT_SYMBOL", DEFAULT_SYMBOL),
            magic_number=config.get_int("RT_MAGIC_NUMBER", DEFAULT_MAGIC_NUMBER, strict=True),
            trading_start=parse_hhmm(config.get("RT_TRADING_START", DEFAULT_TRADING_START)),
            trading_end=parse_hhmm(config.get("RT_TRADING_END", DEFAULT_TRADING_END)),
            close_all_time=parse_hhmm(close_all) if close_all else None,
            max_open_positions=config.get_int(
                "RT_MAX_OPEN_POSITIONS", DEFAULT_MAX_OPEN_POSITIONS, strict=True
            ),
            max_daily_trades=config.get_int(
                "RT_MAX_DAILY_TRADES", DEFAULT_MAX_DAILY_TRADES, strict=True
            ),
            volatility_check=config.get_bool("RT_VOLATILITY_CHECK", True, strict=True),
            volatility_period_minutes=config.get_int(
                "RT_VOLATILITY_PERIOD_MINUTES", DEFAULT_VOLATILITY_PERIOD_MINUTES, strict=True
            ),
            volatility_threshold_pips=config.get_float(
                "RT_VOLATILITY_THRESHOLD_PIPS", DEFAULT_VOLATILITY_THRESHOLD_PIPS, strict=True
            ),
            entry_margin_fraction=config.get_float(
                "RT_ENTRY_MARGIN_FRACTION", DEFAULT_ENTRY_MARGIN_FRACTION, strict=True
            ),
            bar_fetch_attempts=config.get_int(
                "RT_BAR_FETCH_ATTEMPTS", DEFAULT_BAR_FETCH_ATTEMPTS, strict=True
            ),
            stop_loss_pips=config.get_float(
                "RT_STOP_LOSS_PIPS", DEFAULT_STOP_LOSS_PIPS, strict=True
            ),
            take_profit_pips=config.get_float(
                "RT_TAKE_PROFIT_PIPS", DEFAULT_TAKE_PROFIT_PIPS, strict=True
            ),
            stop_safety_multiplier=config.get_float(
                "RT_STOP_SAFETY_MULTIPLIER", DEFAULT_STOP_SAFETY_MULTIPLIER, strict=True
            ),
            trailing_enabled=config.get_bool("RT_TRAILING_ENABLED", True, strict=True),
            trailing_activation_pips=config.get_float(
                "RT_TRAILING_ACTIVATION_PIPS", DEFAULT_TRAILING_ACTIVATION_PIPS, strict=True
            ),
            trailing_percent=config.get_float(
                "RT_TRAILING_PERCENT", DEFAULT_TRAILING_PERCENT, strict=True
            ),
            trailing_min_distance_pips=config.get_float(
                "RT_TRAILING_MIN_DISTANCE_PIPS", DEFAULT_TRAILING_MIN_DISTANCE_PIPS, strict=True
            ),
            loss_time_limit_seconds=config.get_int(
                "RT_LOSS_TIME_LIMIT_SECONDS", DEFAULT_LOSS_TIME_LIMIT_SECONDS, strict=True
            ),
            sizing_mode=_enum_value(SizingMode, config.get("RT_SIZING_MODE", DEFAULT_SIZING_MODE)),
            fixed_lot=config.get_float("RT_FIXED_LOT", DEFAULT_FIXED_LOT, strict=True),
            risk_percent=config.get_float("RT_RISK_PERCENT", DEFAULT_RISK_PERCENT, strict=True),
            random_schedule=config.get_bool(
                "RT_RANDOM_SCHEDULE", DEFAULT_RANDOM_SCHEDULE, strict=True
            ),
            checks_per_hour=config.get_int(
                "RT_CHECKS_PER_HOUR", DEFAULT_CHECKS_PER_HOUR, strict=True
            ),
            min_check_minutes=config.get_int(
                "RT_MIN_CHECK_MINUTES", DEFAULT_MIN_CHECK_MINUTES, strict=True
            ),
            max_check_minutes=config.get_int(
                "RT_MAX_CHECK_MINUTES", DEFAULT_MAX_CHECK_MINUTES, strict=True
            ),
            signal_mode=_enum_value(SignalMode, config.get("RT_SIGNAL_MODE", DEFAULT_SIGNAL_MODE)),
            ma_period=config.get_int("RT_MA_PERIOD", DEFAULT_MA_PERIOD, strict=True),
            ma_method=_enum_value(
                MovingAverageMethod, config.get("RT_MA_METHOD", DEFAULT_MA_METHOD)
            ),
            ma_timeframe=config.get("RT_MA_TIMEFRAME", DEFAULT_MA_TIMEFRAME),
            indicator_max_attempts=config.get_int(
                "RT_INDICATOR_MAX_ATTEMPTS", DEFAULT_INDICATOR_MAX_ATTEMPTS, strict=True
            ),
            indicator_backoff_min_ms=config.get_int(
                "RT_INDICATOR_BACKOFF_MIN_MS", DEFAULT_INDICATOR_BACKOFF_MIN_MS, strict=True
            ),
            indicator_backoff_max_ms=config.get_int(
                "RT_INDICATOR_BACKOFF_MAX_MS", DEFAULT_INDICATOR_BACKOFF_MAX_MS, strict=True
            ),
            random_seed=(
                config.get_int("RT_RANDOM_SEED", strict=True) if seed not in (None, "") else None
            ),
            tick_interval_seconds=config.get_float(
                "RT_TICK_INTERVAL_SECONDS", DEFAULT_TICK_INTERVAL_SECONDS, strict=True
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten settings for structured logging."""
        out: dict[str, Any] = {}
        for key, value in asdict(self).items():
            if isinstance(value, Enum):
                out[key] = value.value
            elif isinstance(value, time):
                out[key] = value.strftime("%H:%M")
            else:
                out[key] = value
        return out
