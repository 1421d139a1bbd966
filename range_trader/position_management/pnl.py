from __future__ import annotations

from range_trader.data_providers.exchange_interface import OrderSide, VenuePosition
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import Quote


def exit_price(side: OrderSide, quote: Quote) -> float:
    """Price a position would close at: bid for longs, ask for shorts."""
    return quote.bid if side is OrderSide.BUY else quote.ask


def unrealized_pips(position: VenuePosition, quote: Quote, instrument: InstrumentSpec) -> float:
    """Open profit in pips, positive when the position is winning."""
    price = exit_price(position.side, quote)
    sign = 1 if position.side is OrderSide.BUY else -1
    return instrument.to_pips(sign * (price - position.open_price))
