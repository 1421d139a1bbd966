from .exchange_interface import (
    ExecutionVenue,
    Fill,
    OrderSide,
    Reject,
    RejectCode,
    TradeRequest,
    VenuePosition,
    VenueTransportError,
)
from .instrument import InstrumentSpec
from .market_data import MarketDataFeed, PriceBar, Quote, bars_from_frame

__all__ = [
    "ExecutionVenue",
    "Fill",
    "InstrumentSpec",
    "MarketDataFeed",
    "OrderSide",
    "PriceBar",
    "Quote",
    "Reject",
    "RejectCode",
    "TradeRequest",
    "VenuePosition",
    "VenueTransportError",
    "bars_from_frame",
]
