from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from range_trader.config.constants import (
    DEFAULT_TRAILING_ACTIVATION_PIPS,
    DEFAULT_TRAILING_MIN_DISTANCE_PIPS,
    DEFAULT_TRAILING_PERCENT,
)
from range_trader.config.settings import StrategySettings
from range_trader.data_providers.exchange_interface import (
    ExecutionVenue,
    OrderSide,
    VenuePosition,
    VenueTransportError,
)
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import Quote
from range_trader.infrastructure.logging.events import log_risk_event
from range_trader.position_management.ledger import PositionTrackingRecord
from range_trader.position_management.pnl import exit_price, unrealized_pips

logger = logging.getLogger(__name__)


def tightens(side: OrderSide, candidate: float, existing_stop: float | None) -> bool:
    """True when ``candidate`` locks in more profit than ``existing_stop``.

    Longs only move up; shorts only move down. A missing stop can always be set.
    """
    if existing_stop is None or existing_stop <= 0:
        return True
    if side is OrderSide.BUY:
        return candidate > existing_stop
    return candidate < existing_stop


@dataclass
class TrailingStopPolicy:
    """Profit-proportional trailing stop.

    Pip inputs are in conventional pips. Once open profit first reaches
    ``activation_pips`` the stop trails the current price at
    ``profit * trailing_percent / 100`` pips, never closer than
    ``min_distance_pips``.
    """

    activation_pips: float = DEFAULT_TRAILING_ACTIVATION_PIPS
    trailing_percent: float = DEFAULT_TRAILING_PERCENT
    min_distance_pips: float = DEFAULT_TRAILING_MIN_DISTANCE_PIPS

    def compute_distance(self, profit_pips: float) -> float:
        """Trail distance in pips for the given open profit."""
        return max(profit_pips * self.trailing_percent / 100.0, self.min_distance_pips)

    def update_trailing_stop(
        self,
        *,
        side: OrderSide,
        current_price: float,
        profit_pips: float,
        existing_stop: float | None,
        instrument: InstrumentSpec,
        trailing_activated: bool = False,
    ) -> tuple[float | None, bool]:
        """Return (new_stop, trailing_activated).

        ``new_stop`` is None when the stop should stay where it is; it is only
        ever a level that tightens ``existing_stop``.
        """
        if not trailing_activated and profit_pips >= self.activation_pips:
            trailing_activated = True

        if not trailing_activated or profit_pips <= 0:
            return None, trailing_activated

        distance = max(
            instrument.pips_to_price(self.compute_distance(profit_pips)),
            instrument.min_stop_distance,
        )
        if side is OrderSide.BUY:
            candidate = instrument.round_price(current_price - distance)
        else:
            candidate = instrument.round_price(current_price + distance)

        if not tightens(side, candidate, existing_stop):
            return None, trailing_activated
        return candidate, trailing_activated


@dataclass(frozen=True)
class TrailingUpdate:
    ticket: int
    profit_pips: float
    activated_now: bool
    previous_stop: float | None = None
    new_stop: float | None = None
    modified: bool = False


class TrailingStopManager:
    """Applies the trailing policy to tracked positions and pushes stops to the venue"""

    def __init__(
        self, policy: TrailingStopPolicy, instrument: InstrumentSpec, venue: ExecutionVenue
    ):
        self.policy = policy
        self.instrument = instrument
        self.venue = venue

    @classmethod
    def from_settings(
        cls, settings: StrategySettings, instrument: InstrumentSpec, venue: ExecutionVenue
    ) -> TrailingStopManager:
        policy = TrailingStopPolicy(
            activation_pips=settings.trailing_activation_pips,
            trailing_percent=settings.trailing_percent,
            min_distance_pips=settings.trailing_min_distance_pips,
        )
        return cls(policy, instrument, venue)

    def update(
        self,
        record: PositionTrackingRecord,
        position: VenuePosition,
        quote: Quote,
        now: datetime,
    ) -> TrailingUpdate:
        profit = unrealized_pips(position, quote, self.instrument)
        new_stop, activated = self.policy.update_trailing_stop(
            side=position.side,
            current_price=exit_price(position.side, quote),
            profit_pips=profit,
            existing_stop=position.stop_loss,
            instrument=self.instrument,
            trailing_activated=record.trail_activated,
        )

        activated_now = activated and not record.trail_activated
        if activated_now:
            record.trail_activated = True
            record.trail_activate_time = now
            record.initial_activation_profit = profit
            log_risk_event(
                "Trailing stop activated",
                ticket=record.ticket,
                profit_pips=profit,
                threshold_pips=self.policy.activation_pips,
            )

        if new_stop is None:
            return TrailingUpdate(
                ticket=record.ticket, profit_pips=profit, activated_now=activated_now
            )

        try:
            modified = self.venue.modify_stop_take_profit(
                record.ticket, new_stop, position.take_profit
            )
        except VenueTransportError as e:
            logger.error("Stop modification for #%s got no response: %s", record.ticket, e)
            modified = False

        if modified:
            log_risk_event(
                "Trailing stop moved",
                ticket=record.ticket,
                side=position.side.value,
                previous_stop=position.stop_loss,
                new_stop=new_stop,
                take_profit=position.take_profit,
                profit_pips=profit,
            )
        else:
            logger.warning(
                "Venue refused trailing stop for #%s: %s -> %s",
                record.ticket,
                position.stop_loss,
                new_stop,
            )
        return TrailingUpdate(
            ticket=record.ticket,
            profit_pips=profit,
            activated_now=activated_now,
            previous_stop=position.stop_loss,
            new_stop=new_stop,
            modified=modified,
        )
