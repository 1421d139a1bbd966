from .config import configure_logging
from .context import (
    clear_context,
    get_context,
    new_request_id,
    set_context,
    update_context,
    use_context,
)
from .events import (
    log_data_event,
    log_decision_event,
    log_engine_error,
    log_engine_event,
    log_engine_warning,
    log_order_event,
    log_order_rejection,
    log_risk_error,
    log_risk_event,
)

__all__ = [
    "configure_logging",
    "clear_context",
    "get_context",
    "new_request_id",
    "set_context",
    "update_context",
    "use_context",
    "log_data_event",
    "log_decision_event",
    "log_engine_error",
    "log_engine_event",
    "log_engine_warning",
    "log_order_event",
    "log_order_rejection",
    "log_risk_error",
    "log_risk_event",
]
