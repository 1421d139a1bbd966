"""
Execution venue contract.

The venue owns positions; the trading core only submits requests, modifies
protective levels and lists the positions attributed to its strategy id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class OrderSide(Enum):
    BUY = "buy"
    SELL = "sell"


class RejectCode:
    """Venue rejection codes"""

    INVALID_STOPS = 130
    INVALID_VOLUME = 131
    MARKET_CLOSED = 132


@dataclass(frozen=True)
class TradeRequest:
    """A market order with protective levels, tagged with the strategy id"""

    symbol: str
    side: OrderSide
    volume: float
    price: float
    stop_loss: float | None
    take_profit: float | None
    magic_number: int
    comment: str = ""


@dataclass(frozen=True)
class Fill:
    ticket: int
    price: float
    volume: float
    time: datetime | None = None


@dataclass(frozen=True)
class Reject:
    code: int
    message: str


@dataclass(frozen=True)
class VenuePosition:
    """An open position as reported by the venue"""

    ticket: int
    symbol: str
    side: OrderSide
    volume: float
    open_price: float
    stop_loss: float | None
    take_profit: float | None
    magic_number: int
    open_time: datetime | None = None


class VenueTransportError(Exception):
    """Raised when the venue does not answer a request"""


class ExecutionVenue(ABC):
    """
    Abstract execution venue.

    ``submit`` returns a Fill or Reject, or raises VenueTransportError when no
    definite answer was received.
    """

    @abstractmethod
    def submit(self, request: TradeRequest) -> Fill | Reject:
        pass

    @abstractmethod
    def modify_stop_take_profit(
        self, ticket: int, stop_loss: float | None, take_profit: float | None
    ) -> bool:
        pass

    @abstractmethod
    def close_position(self, ticket: int, volume: float | None = None) -> bool:
        """Close by a market order in the opposing direction (full volume when None)."""
        pass

    @abstractmethod
    def list_open_positions(self, symbol: str, magic_number: int) -> list[VenuePosition]:
        """Positions opened under ``magic_number`` on ``symbol`` only."""
        pass

    @abstractmethod
    def get_account_balance(self) -> float:
        pass
