"""
Position ledger.

Holds one tracking record per open position of this strategy, keyed by the
venue ticket. The venue reports no close events; a position closed by its stop,
its target or by hand is detected when its ticket is missing from the live
list, and ``reconcile`` returns that diff explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime

from range_trader.data_providers.exchange_interface import VenuePosition

logger = logging.getLogger(__name__)


@dataclass
class PositionTrackingRecord:
    """Core-owned state for one open position"""

    ticket: int
    open_time: datetime
    trail_activated: bool = False
    trail_activate_time: datetime | None = None
    initial_activation_profit: float | None = None
    loss_time_limit_checked: bool = False


@dataclass(frozen=True)
class ReconcileResult:
    removed: tuple[int, ...] = ()
    adopted: tuple[int, ...] = ()
    live: dict[int, VenuePosition] = field(default_factory=dict)


class PositionLedger:
    """Tracking records keyed by ticket, unique per open position"""

    def __init__(self) -> None:
        self._records: dict[int, PositionTrackingRecord] = {}

    def __contains__(self, ticket: object) -> bool:
        return ticket in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PositionTrackingRecord]:
        return iter(list(self._records.values()))

    def get(self, ticket: int) -> PositionTrackingRecord | None:
        return self._records.get(ticket)

    @property
    def tickets(self) -> list[int]:
        return list(self._records)

    def add(self, ticket: int, open_time: datetime) -> PositionTrackingRecord:
        """Start tracking a confirmed fill."""
        if ticket in self._records:
            raise ValueError(f"Ticket {ticket} is already tracked")
        record = PositionTrackingRecord(ticket=ticket, open_time=open_time)
        self._records[ticket] = record
        return record

    def remove(self, ticket: int) -> PositionTrackingRecord | None:
        return self._records.pop(ticket, None)

    def reconcile(self, live_positions: Iterable[VenuePosition], now: datetime) -> ReconcileResult:
        """
        Align tracked records with the venue's live positions.

        Records whose ticket is no longer live are dropped. Live positions of
        this strategy without a record (for example after a restart) are
        adopted, using the venue open time when it is known.

        Returns:
            ReconcileResult with removed and adopted tickets and the live
            positions keyed by ticket
        """
        live = {p.ticket: p for p in live_positions}
        removed = tuple(t for t in self._records if t not in live)
        for ticket in removed:
            del self._records[ticket]
            logger.info("Position #%s no longer open at venue; tracking removed", ticket)

        adopted = []
        for ticket, position in live.items():
            if ticket not in self._records:
                self._records[ticket] = PositionTrackingRecord(
                    ticket=ticket, open_time=position.open_time or now
                )
                adopted.append(ticket)
                logger.warning("Adopted untracked position #%s from venue", ticket)

        return ReconcileResult(removed=removed, adopted=tuple(adopted), live=live)
