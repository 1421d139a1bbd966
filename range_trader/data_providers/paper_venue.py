"""
Paper execution venue.

In-memory implementation of the venue contract for paper runs and tests:
fills at the current bid/ask, venue-side stop-level and volume validation,
stop/target triggering on ``process_quote`` and balance accounting.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime

from range_trader.data_providers.exchange_interface import (
    ExecutionVenue,
    Fill,
    OrderSide,
    Reject,
    RejectCode,
    TradeRequest,
    VenuePosition,
)
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import MarketDataFeed, Quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosedTrade:
    ticket: int
    side: OrderSide
    volume: float
    open_price: float
    close_price: float
    pnl: float
    reason: str
    close_time: datetime | None = None


class PaperExecutionVenue(ExecutionVenue):
    """Simulated venue holding positions for any number of strategy ids"""

    def __init__(
        self,
        instrument: InstrumentSpec,
        feed: MarketDataFeed,
        initial_balance: float,
        first_ticket: int = 1000,
        clock=None,
    ):
        self.instrument = instrument
        self.feed = feed
        self.balance = float(initial_balance)
        self.clock = clock
        self._next_ticket = first_ticket
        self._positions: dict[int, VenuePosition] = {}
        self.closed_trades: list[ClosedTrade] = []

    def _now(self) -> datetime | None:
        return self.clock.now() if self.clock is not None else None

    def _quote(self) -> Quote:
        return self.feed.get_bid_ask(self.instrument.symbol)

    def _volume_valid(self, volume: float) -> bool:
        spec = self.instrument
        if volume < spec.volume_min - 1e-12 or volume > spec.volume_max + 1e-12:
            return False
        steps = volume / spec.volume_step
        return math.isclose(steps, round(steps), abs_tol=1e-6)

    def _stops_valid(
        self, side: OrderSide, quote: Quote, stop_loss: float | None, take_profit: float | None
    ) -> bool:
        # Long positions close at the bid, shorts at the ask
        reference = quote.bid if side is OrderSide.BUY else quote.ask
        min_points = self.instrument.stops_level
        sign = 1 if side is OrderSide.BUY else -1
        if stop_loss is not None:
            if self.instrument.to_points(sign * (reference - stop_loss)) < max(min_points, 1e-9):
                return False
        if take_profit is not None:
            if self.instrument.to_points(sign * (take_profit - reference)) < max(min_points, 1e-9):
                return False
        return True

    def submit(self, request: TradeRequest) -> Fill | Reject:
        if request.symbol != self.instrument.symbol:
            return Reject(RejectCode.MARKET_CLOSED, f"unknown symbol {request.symbol}")
        if not self._volume_valid(request.volume):
            return Reject(RejectCode.INVALID_VOLUME, f"invalid volume {request.volume}")
        quote = self._quote()
        if not self._stops_valid(request.side, quote, request.stop_loss, request.take_profit):
            return Reject(RejectCode.INVALID_STOPS, "invalid stops")

        price = quote.ask if request.side is OrderSide.BUY else quote.bid
        ticket = self._next_ticket
        self._next_ticket += 1
        now = self._now()
        self._positions[ticket] = VenuePosition(
            ticket=ticket,
            symbol=request.symbol,
            side=request.side,
            volume=request.volume,
            open_price=price,
            stop_loss=request.stop_loss,
            take_profit=request.take_profit,
            magic_number=request.magic_number,
            open_time=now,
        )
        logger.debug("Paper fill #%s %s %.2f @ %s", ticket, request.side.value, request.volume, price)
        return Fill(ticket=ticket, price=price, volume=request.volume, time=now)

    def modify_stop_take_profit(
        self, ticket: int, stop_loss: float | None, take_profit: float | None
    ) -> bool:
        position = self._positions.get(ticket)
        if position is None:
            return False
        if not self._stops_valid(position.side, self._quote(), stop_loss, take_profit):
            return False
        self._positions[ticket] = replace(position, stop_loss=stop_loss, take_profit=take_profit)
        return True

    def _realize(self, position: VenuePosition, price: float, volume: float, reason: str) -> None:
        sign = 1 if position.side is OrderSide.BUY else -1
        pips = self.instrument.to_pips(sign * (price - position.open_price))
        pnl = pips * self.instrument.pip_value_per_lot * volume
        self.balance += pnl
        self.closed_trades.append(
            ClosedTrade(
                ticket=position.ticket,
                side=position.side,
                volume=volume,
                open_price=position.open_price,
                close_price=price,
                pnl=pnl,
                reason=reason,
                close_time=self._now(),
            )
        )

    def close_position(self, ticket: int, volume: float | None = None) -> bool:
        position = self._positions.get(ticket)
        if position is None:
            return False
        quote = self._quote()
        price = quote.bid if position.side is OrderSide.BUY else quote.ask
        close_volume = position.volume if volume is None else min(volume, position.volume)
        self._realize(position, price, close_volume, "market_close")
        remaining = round(position.volume - close_volume, 8)
        if remaining <= 0:
            del self._positions[ticket]
        else:
            self._positions[ticket] = replace(position, volume=remaining)
        return True

    def process_quote(self) -> list[int]:
        """Trigger stops and targets against the current quote; returns closed tickets."""
        quote = self._quote()
        closed: list[int] = []
        for ticket, position in list(self._positions.items()):
            if position.side is OrderSide.BUY:
                price = quote.bid
                stop_hit = position.stop_loss is not None and price <= position.stop_loss
                target_hit = position.take_profit is not None and price >= position.take_profit
            else:
                price = quote.ask
                stop_hit = position.stop_loss is not None and price >= position.stop_loss
                target_hit = position.take_profit is not None and price <= position.take_profit
            if stop_hit:
                self._realize(position, position.stop_loss, position.volume, "stop_loss")
            elif target_hit:
                self._realize(position, position.take_profit, position.volume, "take_profit")
            else:
                continue
            del self._positions[ticket]
            closed.append(ticket)
        return closed

    def list_open_positions(self, symbol: str, magic_number: int) -> list[VenuePosition]:
        return [
            p
            for p in self._positions.values()
            if p.symbol == symbol and p.magic_number == magic_number
        ]

    def get_account_balance(self) -> float:
        return self.balance
