"""Bounded polling with randomized backoff.

External collaborators (indicator provider, bar feed) may answer "not ready"
for a while. Every wait in the trading cycle goes through ``bounded_poll`` so it
has a hard attempt ceiling and gives up deterministically. Sleep and random
source are injectable so tests run without real delays.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PollResult(Generic[T]):
    """Outcome of a bounded poll."""

    ready: bool
    value: T | None
    attempts: int
    waited_seconds: float = 0.0


def backoff_delay(
    rng: np.random.Generator | None, min_delay: float, max_delay: float
) -> float:
    """Draw a delay uniformly from [min_delay, max_delay] seconds."""
    if max_delay <= min_delay:
        return max(0.0, float(min_delay))
    if rng is None:
        return float(min_delay)
    return float(rng.uniform(min_delay, max_delay))


def bounded_poll(
    probe: Callable[[], T],
    *,
    is_ready: Callable[[T], bool] = bool,
    max_attempts: int,
    min_delay: float = 0.1,
    max_delay: float = 0.5,
    rng: np.random.Generator | None = None,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "poll",
) -> PollResult[T]:
    """
    Call ``probe`` until ``is_ready(result)`` holds or attempts run out.

    Args:
        probe: Zero-argument callable returning the polled value
        is_ready: Predicate deciding whether the value is usable
        max_attempts: Hard ceiling on probe calls (>= 1)
        min_delay: Minimum backoff between attempts, seconds
        max_delay: Maximum backoff between attempts, seconds
        rng: Random source for the backoff draw (min_delay is used when None)
        sleep: Sleep function, replaced by a no-op in tests
        description: Label used in log messages

    Returns:
        PollResult with the last probed value; ``ready`` is False when exhausted
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    waited = 0.0
    value: T | None = None
    for attempt in range(1, max_attempts + 1):
        value = probe()
        if is_ready(value):
            return PollResult(ready=True, value=value, attempts=attempt, waited_seconds=waited)
        if attempt < max_attempts:
            delay = backoff_delay(rng, min_delay, max_delay)
            logger.debug(
                "%s not ready. Retrying in %.3fs (attempt %d/%d)",
                description,
                delay,
                attempt,
                max_attempts,
            )
            sleep(delay)
            waited += delay

    logger.warning("%s still not ready after %d attempts", description, max_attempts)
    return PollResult(ready=False, value=value, attempts=max_attempts, waited_seconds=waited)
