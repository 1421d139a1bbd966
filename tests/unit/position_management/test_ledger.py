from datetime import UTC, datetime, timedelta

import pytest

from range_trader.data_providers.exchange_interface import OrderSide, VenuePosition
from range_trader.data_providers.market_data import Quote
from range_trader.position_management.ledger import PositionLedger
from range_trader.position_management.pnl import exit_price, unrealized_pips

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 11, 10, 0, tzinfo=UTC)


def live(ticket, open_time=None, side=OrderSide.BUY):
    return VenuePosition(
        ticket=ticket,
        symbol="EURUSD",
        side=side,
        volume=0.1,
        open_price=1.1000,
        stop_loss=None,
        take_profit=None,
        magic_number=1,
        open_time=open_time,
    )


def test_add_rejects_duplicate_tickets():
    ledger = PositionLedger()
    ledger.add(1, NOW)

    with pytest.raises(ValueError):
        ledger.add(1, NOW)


def test_reconcile_drops_positions_missing_at_venue():
    ledger = PositionLedger()
    ledger.add(1, NOW)
    ledger.add(2, NOW)

    result = ledger.reconcile([live(2)], NOW + timedelta(minutes=1))

    assert result.removed == (1,)
    assert result.adopted == ()
    assert 1 not in ledger
    assert ledger.tickets == [2]


def test_reconcile_keeps_existing_record_state():
    ledger = PositionLedger()
    record = ledger.add(1, NOW)
    record.trail_activated = True

    ledger.reconcile([live(1)], NOW + timedelta(minutes=1))

    assert ledger.get(1).trail_activated is True


def test_reconcile_adopts_untracked_positions():
    ledger = PositionLedger()
    opened = NOW - timedelta(hours=1)

    result = ledger.reconcile([live(5, open_time=opened), live(6)], NOW)

    assert result.adopted == (5, 6)
    assert ledger.get(5).open_time == opened
    assert ledger.get(6).open_time == NOW
    assert set(result.live) == {5, 6}


def test_empty_venue_clears_the_ledger():
    ledger = PositionLedger()
    ledger.add(1, NOW)

    result = ledger.reconcile([], NOW)

    assert result.removed == (1,)
    assert len(ledger) == 0


def test_unrealized_pips_uses_the_closing_side(instrument):
    quote = Quote(bid=1.1010, ask=1.1012)

    assert exit_price(OrderSide.BUY, quote) == 1.1010
    assert exit_price(OrderSide.SELL, quote) == 1.1012
    assert unrealized_pips(live(1), quote, instrument) == pytest.approx(10.0)
    assert unrealized_pips(live(1, side=OrderSide.SELL), quote, instrument) == pytest.approx(-12.0)
