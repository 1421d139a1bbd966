"""
Time-based exits.

Two rules close positions on the clock rather than on price:

- the loss time limit force-closes a position that has been losing for longer
  than its time budget, at most once per position;
- end-of-day liquidation closes everything still open from the configured close
  time of the day until midnight.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time

from range_trader.data_providers.exchange_interface import (
    ExecutionVenue,
    VenuePosition,
    VenueTransportError,
)
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import Quote
from range_trader.infrastructure.logging.events import log_risk_error, log_risk_event
from range_trader.position_management.ledger import PositionTrackingRecord
from range_trader.position_management.pnl import unrealized_pips

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForcedClose:
    ticket: int
    elapsed_seconds: float
    loss_pips: float
    succeeded: bool


def close_at_market(venue: ExecutionVenue, position: VenuePosition) -> bool:
    """Close the full volume; a transport failure counts as a failed close."""
    try:
        return bool(venue.close_position(position.ticket, position.volume))
    except VenueTransportError as e:
        logger.error("Close request for #%s got no response: %s", position.ticket, e)
        return False


class LossTimeLimitMonitor:
    """Force-closes positions that stay in loss past their time budget"""

    def __init__(self, limit_seconds: int, instrument: InstrumentSpec, venue: ExecutionVenue):
        self.limit_seconds = limit_seconds
        self.instrument = instrument
        self.venue = venue

    @property
    def enabled(self) -> bool:
        return self.limit_seconds > 0

    def check(
        self,
        record: PositionTrackingRecord,
        position: VenuePosition,
        quote: Quote,
        now: datetime,
    ) -> ForcedClose | None:
        """Return the forced close performed for this position, if any.

        The record latches ``loss_time_limit_checked`` before the close is sent,
        so a failed close is never retried.
        """
        if not self.enabled or record.loss_time_limit_checked:
            return None
        profit = unrealized_pips(position, quote, self.instrument)
        if profit >= 0:
            return None
        elapsed = (now - record.open_time).total_seconds()
        if elapsed < self.limit_seconds:
            return None

        record.loss_time_limit_checked = True
        succeeded = close_at_market(self.venue, position)
        fields = {
            "ticket": record.ticket,
            "elapsed_seconds": elapsed,
            "limit_seconds": self.limit_seconds,
            "loss_pips": -profit,
            "volume": position.volume,
        }
        if succeeded:
            log_risk_event("Loss time limit reached; position closed", **fields)
        else:
            log_risk_error("Loss time limit close failed; not retrying", **fields)
        return ForcedClose(
            ticket=record.ticket, elapsed_seconds=elapsed, loss_pips=-profit, succeeded=succeeded
        )


class EndOfDayLiquidation:
    """Closes every open position once the day's ``close_time`` is reached.

    Holds no state: every cycle past the close time closes whatever the venue
    still reports open, so a close that failed is retried on the next cycle.
    """

    def __init__(self, close_time: time | None, venue: ExecutionVenue):
        self.close_time = close_time
        self.venue = venue

    @property
    def enabled(self) -> bool:
        return self.close_time is not None

    def past_close(self, now: datetime) -> bool:
        return self.enabled and now.time().replace(tzinfo=None) >= self.close_time

    def liquidate(self, positions: list[VenuePosition], now: datetime) -> list[int]:
        """Close all positions if the close time has passed.

        Returns the tickets that were closed successfully.
        """
        if not self.past_close(now) or not positions:
            return []

        closed = [p.ticket for p in positions if close_at_market(self.venue, p)]
        fields = {
            "close_time": self.close_time.strftime("%H:%M"),
            "requested": len(positions),
            "closed": len(closed),
        }
        if len(closed) == len(positions):
            log_risk_event("End-of-day liquidation", **fields)
        else:
            remaining = [p.ticket for p in positions if p.ticket not in closed]
            log_risk_error(
                "End-of-day liquidation incomplete; retrying", remaining=remaining, **fields
            )
        return closed
