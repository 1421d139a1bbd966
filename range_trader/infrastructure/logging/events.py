from __future__ import annotations

import logging
from typing import Any

from range_trader.infrastructure.logging.context import get_context

_logger = logging.getLogger(__name__)


def _emit(event_type: str, level: int, message: str, **fields: Any) -> None:
    payload: dict[str, Any] = {"event_type": event_type}
    # Merge context then explicit fields (explicit wins)
    payload.update(get_context())
    payload.update(fields)
    _logger.log(level, message, extra=payload)


# Engine lifecycle / control


def log_engine_event(message: str, **fields: Any) -> None:
    _emit("engine_event", logging.INFO, message, **fields)


def log_engine_warning(message: str, **fields: Any) -> None:
    _emit("engine_event", logging.WARNING, message, **fields)


def log_engine_error(message: str, **fields: Any) -> None:
    _emit("engine_event", logging.ERROR, message, **fields)


# Decision and order-related


def log_decision_event(message: str, **fields: Any) -> None:
    _emit("decision_event", logging.INFO, message, **fields)


def log_order_event(message: str, **fields: Any) -> None:
    _emit("order_event", logging.INFO, message, **fields)


def log_order_rejection(message: str, **fields: Any) -> None:
    _emit("order_event", logging.WARNING, message, **fields)


# Risk management


def log_risk_event(message: str, **fields: Any) -> None:
    _emit("risk_event", logging.INFO, message, **fields)


def log_risk_error(message: str, **fields: Any) -> None:
    _emit("risk_event", logging.ERROR, message, **fields)


# Data provider events


def log_data_event(message: str, **fields: Any) -> None:
    _emit("data_event", logging.WARNING, message, **fields)
