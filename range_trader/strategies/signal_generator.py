"""
Signal Generator Components

Turns a volatility-qualified cycle into a direction. Three sources are
combined through ``SignalMode``: a fair coin, a moving-average comparison read
from the indicator provider, or the comparison with the coin as fallback.
"""

from __future__ import annotations

import logging
import math
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from range_trader.config.settings import MovingAverageMethod, SignalMode, StrategySettings
from range_trader.data_providers.market_data import Quote
from range_trader.indicators.moving_average import INVALID_HANDLE, IndicatorProvider
from range_trader.infrastructure.retry import bounded_poll

logger = logging.getLogger(__name__)


class SignalDirection(Enum):
    """Enumeration for signal directions"""

    LONG = "long"
    SHORT = "short"
    NONE = "none"


@dataclass(frozen=True)
class Signal:
    """
    A trading decision for one cycle

    Attributes:
        direction: LONG, SHORT or NONE
        source: Name of the generator that decided
        metadata: Values the decision was based on, for logging
    """

    direction: SignalDirection
    source: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_actionable(self) -> bool:
        return self.direction is not SignalDirection.NONE


class SignalGenerator(ABC):
    """Abstract base class for signal generators"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def generate_signal(self, quote: Quote) -> Signal:
        """Decide a direction for the current quote."""
        pass

    def get_parameters(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.__class__.__name__}


class RandomSignalGenerator(SignalGenerator):
    """Draws long or short with equal probability from a seedable generator"""

    def __init__(self, rng: np.random.Generator):
        super().__init__("random_signal_generator")
        self.rng = rng

    def generate_signal(self, quote: Quote) -> Signal:
        draw = int(self.rng.integers(0, 2))
        direction = SignalDirection.LONG if draw == 0 else SignalDirection.SHORT
        return Signal(direction=direction, source=self.name, metadata={"draw": draw})


class TrendSignalGenerator(SignalGenerator):
    """
    Compares the bid with a moving average from the indicator provider.

    The provider is polled for readiness with a bounded number of attempts and a
    short randomized backoff; an exhausted poll, a short read or an unusable
    value yields no signal.
    """

    def __init__(
        self,
        provider: IndicatorProvider,
        symbol: str,
        timeframe: str,
        period: int,
        method: MovingAverageMethod,
        max_attempts: int = 5,
        backoff_min_ms: int = 100,
        backoff_max_ms: int = 500,
        rng: np.random.Generator | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__("trend_signal_generator")
        self.provider = provider
        self.symbol = symbol
        self.timeframe = timeframe
        self.period = period
        self.method = method
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min_ms / 1000.0
        self.backoff_max = backoff_max_ms / 1000.0
        self.rng = rng
        self.sleep = sleep
        self.handle = INVALID_HANDLE

    def open(self) -> bool:
        """Create the indicator handle; returns False when the provider refuses."""
        if self.handle == INVALID_HANDLE:
            self.handle = self.provider.create_indicator(
                self.symbol, self.timeframe, self.period, self.method
            )
        if self.handle == INVALID_HANDLE:
            logger.error(
                "Moving average handle unavailable for %s (%s %s)",
                self.symbol,
                self.method.value,
                self.period,
            )
            return False
        return True

    def close(self) -> None:
        if self.handle != INVALID_HANDLE:
            self.provider.release(self.handle)
            self.handle = INVALID_HANDLE

    def _no_signal(self, reason: str, **metadata: Any) -> Signal:
        return Signal(
            direction=SignalDirection.NONE, source=self.name, metadata={"reason": reason, **metadata}
        )

    def read_moving_average(self) -> tuple[float | None, str | None, int]:
        """Return (value, failure_reason, attempts)."""
        if not self.open():
            return None, "invalid_handle", 0
        poll = bounded_poll(
            lambda: self.provider.is_ready(self.handle),
            max_attempts=self.max_attempts,
            min_delay=self.backoff_min,
            max_delay=self.backoff_max,
            rng=self.rng,
            sleep=self.sleep,
            description=f"{self.method.value.upper()}({self.period}) on {self.symbol}",
        )
        if not poll.ready:
            return None, "indicator_not_ready", poll.attempts
        values = self.provider.read_values(self.handle, 1)
        if not values:
            return None, "short_read", poll.attempts
        value = values[0]
        if value is None or not math.isfinite(value) or value <= 0:
            return None, "invalid_value", poll.attempts
        return float(value), None, poll.attempts

    def generate_signal(self, quote: Quote) -> Signal:
        ma, failure, attempts = self.read_moving_average()
        if ma is None:
            return self._no_signal(failure or "unavailable", attempts=attempts)
        metadata = {"moving_average": ma, "bid": quote.bid, "attempts": attempts}
        if quote.bid > ma:
            return Signal(direction=SignalDirection.LONG, source=self.name, metadata=metadata)
        if quote.bid < ma:
            return Signal(direction=SignalDirection.SHORT, source=self.name, metadata=metadata)
        return self._no_signal("price_at_average", **metadata)

    def get_parameters(self) -> dict[str, Any]:
        params = super().get_parameters()
        params.update(
            {
                "period": self.period,
                "method": self.method.value,
                "timeframe": self.timeframe,
                "max_attempts": self.max_attempts,
            }
        )
        return params


class CompositeSignalGenerator(SignalGenerator):
    """Resolves the configured mode to exactly one decision per cycle"""

    def __init__(
        self,
        mode: SignalMode,
        random_generator: RandomSignalGenerator,
        trend_generator: TrendSignalGenerator | None = None,
    ):
        super().__init__("composite_signal_generator")
        if mode in (SignalMode.TREND, SignalMode.HYBRID) and trend_generator is None:
            raise ValueError(f"{mode.value} mode requires a trend generator")
        self.mode = mode
        self.random_generator = random_generator
        self.trend_generator = trend_generator

    def generate_signal(self, quote: Quote) -> Signal:
        if self.mode is SignalMode.RANDOM:
            return self.random_generator.generate_signal(quote)

        trend = self.trend_generator.generate_signal(quote)
        if trend.is_actionable or self.mode is SignalMode.TREND:
            return trend

        fallback = self.random_generator.generate_signal(quote)
        return Signal(
            direction=fallback.direction,
            source=fallback.source,
            metadata={**fallback.metadata, "fallback_from": trend.metadata},
        )

    def open(self) -> None:
        if self.trend_generator is not None:
            self.trend_generator.open()

    def close(self) -> None:
        if self.trend_generator is not None:
            self.trend_generator.close()

    def get_parameters(self) -> dict[str, Any]:
        params = super().get_parameters()
        params["mode"] = self.mode.value
        if self.trend_generator is not None:
            params["trend"] = self.trend_generator.get_parameters()
        return params


def create_signal_generator(
    settings: StrategySettings,
    provider: IndicatorProvider | None,
    signal_rng: np.random.Generator,
    backoff_rng: np.random.Generator | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CompositeSignalGenerator:
    """Build the generator described by the settings."""
    trend = None
    if settings.signal_mode is not SignalMode.RANDOM:
        if provider is None:
            raise ValueError(f"{settings.signal_mode.value} mode requires an indicator provider")
        trend = TrendSignalGenerator(
            provider=provider,
            symbol=settings.symbol,
            timeframe=settings.ma_timeframe,
            period=settings.ma_period,
            method=settings.ma_method,
            max_attempts=settings.indicator_max_attempts,
            backoff_min_ms=settings.indicator_backoff_min_ms,
            backoff_max_ms=settings.indicator_backoff_max_ms,
            rng=backoff_rng,
            sleep=sleep,
        )
    return CompositeSignalGenerator(settings.signal_mode, RandomSignalGenerator(signal_rng), trend)
