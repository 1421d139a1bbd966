"""Per-cycle logging context.

Fields set here are attached to every record emitted while a trading cycle
runs, so a single cycle can be followed through the log by its ``cycle_id``.
"""

from __future__ import annotations

import contextlib
import contextvars
import uuid
from collections.abc import Iterator
from typing import Any

_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "rt_log_context", default=None
)


def get_context() -> dict[str, Any]:
    """Return a shallow copy of the current logging context."""
    ctx = _LOG_CONTEXT.get()
    return dict(ctx) if ctx is not None else {}


def set_context(**kwargs: Any) -> None:
    """Extend the current context; keys with value None are ignored."""
    current = get_context()
    current.update({k: v for k, v in kwargs.items() if v is not None})
    _LOG_CONTEXT.set(current)


update_context = set_context


def clear_context(*keys: str) -> None:
    """Clear context entirely or specific keys if provided."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    current = get_context()
    for key in keys:
        current.pop(key, None)
    _LOG_CONTEXT.set(current)


@contextlib.contextmanager
def use_context(**kwargs: Any) -> Iterator[None]:
    """Temporarily extend the logging context, restoring it on exit."""
    token = _LOG_CONTEXT.set(get_context())
    try:
        set_context(**kwargs)
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def new_request_id() -> str:
    """Generate a new cycle identifier."""
    return uuid.uuid4().hex[:12]
