"""
Order sizing and placement decisions.

Turns a direction into a complete trade intent: entry at the touch, stop and
target at least the venue minimum away (the stop padded by a safety
multiplier), levels rounded to the quote precision and validated before any
request is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from range_trader.config.settings import StrategySettings
from range_trader.data_providers.exchange_interface import OrderSide, TradeRequest
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import Quote
from range_trader.risk.position_sizer import PositionSizer, create_position_sizer
from range_trader.strategies.signal_generator import SignalDirection


class PlanRejection:
    NO_DIRECTION = "no_direction"
    INVALID_STOP = "invalid_stop_loss"
    INVALID_TARGET = "invalid_take_profit"
    STOP_TOO_CLOSE = "stop_loss_too_close"
    TARGET_TOO_CLOSE = "take_profit_too_close"
    ZERO_SIZE = "zero_size"


@dataclass(frozen=True)
class TradeIntent:
    direction: SignalDirection
    entry_price: float
    stop_loss: float
    take_profit: float
    size: float
    stop_loss_pips: float
    take_profit_pips: float

    @property
    def side(self) -> OrderSide:
        return OrderSide.BUY if self.direction is SignalDirection.LONG else OrderSide.SELL


@dataclass(frozen=True)
class PlanResult:
    intent: TradeIntent | None
    reason: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.intent is not None


class OrderPlanner:
    """Computes protective levels and volume for one instrument"""

    def __init__(
        self,
        instrument: InstrumentSpec,
        settings: StrategySettings,
        sizer: PositionSizer | None = None,
    ):
        self.instrument = instrument
        self.stop_loss_pips = settings.stop_loss_pips
        self.take_profit_pips = settings.take_profit_pips
        self.safety_multiplier = settings.stop_safety_multiplier
        self.symbol = settings.symbol
        self.magic_number = settings.magic_number
        self.sizer = sizer or create_position_sizer(settings, instrument)

    @property
    def min_distance(self) -> float:
        """Smallest enforceable stop distance: venue stop level or one pip."""
        return max(self.instrument.min_stop_distance, self.instrument.pip_size)

    def protective_distances(self) -> tuple[float, float]:
        spec = self.instrument
        stop_distance = max(
            spec.pips_to_price(self.stop_loss_pips), self.min_distance * self.safety_multiplier
        )
        target_distance = max(spec.pips_to_price(self.take_profit_pips), self.min_distance)
        return stop_distance, target_distance

    def protective_levels(self, direction: SignalDirection, entry: float) -> tuple[float, float]:
        stop_distance, target_distance = self.protective_distances()
        if direction is SignalDirection.LONG:
            stop, target = entry - stop_distance, entry + target_distance
        else:
            stop, target = entry + stop_distance, entry - target_distance
        return self.instrument.round_price(stop), self.instrument.round_price(target)

    def validate_levels(
        self, direction: SignalDirection, entry: float, stop_loss: float, take_profit: float
    ) -> str | None:
        """Return a rejection reason, or None when the levels are placeable."""
        sign = 1 if direction is SignalDirection.LONG else -1
        stop_points = self.instrument.to_points(sign * (entry - stop_loss))
        target_points = self.instrument.to_points(sign * (take_profit - entry))
        min_points = self.instrument.to_points(self.min_distance)
        if stop_points <= 0:
            return PlanRejection.INVALID_STOP
        if target_points <= 0:
            return PlanRejection.INVALID_TARGET
        if stop_points < min_points:
            return PlanRejection.STOP_TOO_CLOSE
        if target_points < min_points:
            return PlanRejection.TARGET_TOO_CLOSE
        return None

    def plan(self, direction: SignalDirection, quote: Quote, balance: float) -> PlanResult:
        if direction is SignalDirection.NONE:
            return PlanResult(intent=None, reason=PlanRejection.NO_DIRECTION)

        entry = quote.ask if direction is SignalDirection.LONG else quote.bid
        stop_loss, take_profit = self.protective_levels(direction, entry)
        details = {
            "direction": direction.value,
            "entry": entry,
            "stop_loss": stop_loss,
            "take_profit": take_profit,
            "min_distance": self.min_distance,
        }
        reason = self.validate_levels(direction, entry, stop_loss, take_profit)
        if reason is not None:
            return PlanResult(intent=None, reason=reason, details=details)

        stop_pips = self.instrument.to_pips(abs(entry - stop_loss))
        target_pips = self.instrument.to_pips(abs(take_profit - entry))
        size = self.sizer.calculate_size(balance, stop_pips)
        details.update(size=size, balance=balance, stop_loss_pips=stop_pips)
        if size <= 0:
            return PlanResult(intent=None, reason=PlanRejection.ZERO_SIZE, details=details)

        return PlanResult(
            intent=TradeIntent(
                direction=direction,
                entry_price=entry,
                stop_loss=stop_loss,
                take_profit=take_profit,
                size=size,
                stop_loss_pips=stop_pips,
                take_profit_pips=target_pips,
            ),
            details=details,
        )

    def build_request(self, intent: TradeIntent) -> TradeRequest:
        return TradeRequest(
            symbol=self.symbol,
            side=intent.side,
            volume=intent.size,
            price=intent.entry_price,
            stop_loss=intent.stop_loss,
            take_profit=intent.take_profit,
            magic_number=self.magic_number,
            comment="range entry",
        )
