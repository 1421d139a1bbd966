"""
Low-volatility range detection.

A cycle qualifies for entry when the recent one-minute range is narrow, its
extremes are not fresh (a breakout candle in the last few bars disqualifies the
window) and the bid sits inside the middle part of the range.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from range_trader.config.constants import MIN_EXTREME_AGE_BARS
from range_trader.config.settings import StrategySettings
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.data_providers.market_data import PriceBar


class RejectReason:
    NO_BARS = "no_bars"
    EXTREME_TOO_RECENT = "extreme_too_recent"
    DEGENERATE_RANGE = "degenerate_range"
    RANGE_TOO_WIDE = "range_too_wide"
    OUTSIDE_ENTRY_ZONE = "outside_entry_zone"


@dataclass(frozen=True)
class VolatilityWindow:
    """High/low of the consumed bars; ages index into them (0 = most recent)"""

    range_high: float
    range_high_age: int
    range_low: float
    range_low_age: int

    @property
    def range_width(self) -> float:
        return self.range_high - self.range_low


@dataclass(frozen=True)
class VolatilityAnalysis:
    """Accept/reject decision plus the levels it was computed from"""

    accepted: bool
    reason: str | None
    window: VolatilityWindow | None = None
    range_pips: float | None = None
    lower_boundary: float | None = None
    upper_boundary: float | None = None
    bid: float | None = None
    bar_count: int = 0

    def to_log_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "accepted": self.accepted,
            "reason": self.reason,
            "bars": self.bar_count,
            "bid": self.bid,
            "range_pips": self.range_pips,
            "lower_boundary": self.lower_boundary,
            "upper_boundary": self.upper_boundary,
        }
        if self.window is not None:
            fields.update(
                range_high=self.window.range_high,
                range_high_age=self.window.range_high_age,
                range_low=self.window.range_low,
                range_low_age=self.window.range_low_age,
            )
        return fields


def trim_idle_bars(bars: Sequence[PriceBar]) -> Sequence[PriceBar]:
    """Drop zero-volume bars padding either end of the sequence.

    Sequences without any volume information (all zero) are returned as is.
    """
    active = [i for i, bar in enumerate(bars) if bar.volume > 0]
    if not active:
        return bars
    return bars[active[0] : active[-1] + 1]


def scan_extremes(bars: Sequence[PriceBar]) -> tuple[float, int, float, int]:
    """Single pass over most-recent-first bars.

    Returns (high, high_index, low, low_index). Comparisons are strict, so on
    ties the first (most recent) occurrence wins. With no bars the sentinels
    high=0, low=+inf and indices -1 are returned.
    """
    high, high_index = 0.0, -1
    low, low_index = math.inf, -1
    for i, bar in enumerate(bars):
        if bar.high > high:
            high, high_index = bar.high, i
        if bar.low < low:
            low, low_index = bar.low, i
    return high, high_index, low, low_index


def entry_zone(window: VolatilityWindow, margin_fraction: float) -> tuple[float, float]:
    """Inner band of the range, ``margin_fraction`` of the width in from each side."""
    margin = window.range_width * margin_fraction
    return window.range_low + margin, window.range_high - margin


def analyze_volatility(
    bars: Sequence[PriceBar],
    bid: float,
    instrument: InstrumentSpec,
    threshold_pips: float,
    margin_fraction: float,
    min_extreme_age: int = MIN_EXTREME_AGE_BARS,
) -> VolatilityAnalysis:
    """
    Decide whether the recent range is quiet enough to trade from.

    Args:
        bars: Recent one-minute bars, most recent first; zero-volume padding
            at either end is ignored
        bid: Current bid price
        instrument: Instrument metadata for pip conversion
        threshold_pips: Widest acceptable range, in pips
        margin_fraction: Share of the range excluded at each edge
        min_extreme_age: Bars an extreme must have aged to count

    Returns:
        VolatilityAnalysis; boundaries and pips are diagnostics only
    """
    bars = trim_idle_bars(bars)
    high, high_index, low, low_index = scan_extremes(bars)
    if not bars or high_index < 0 or low_index < 0:
        return VolatilityAnalysis(
            accepted=False, reason=RejectReason.NO_BARS, bid=bid, bar_count=len(bars)
        )

    window = VolatilityWindow(
        range_high=high, range_high_age=high_index, range_low=low, range_low_age=low_index
    )
    width = window.range_width
    range_pips = instrument.to_pips(width) if width > 0 else 0.0
    lower, upper = entry_zone(window, margin_fraction)
    diagnostics = {
        "window": window,
        "range_pips": range_pips,
        "lower_boundary": lower,
        "upper_boundary": upper,
        "bid": bid,
        "bar_count": len(bars),
    }

    if high_index < min_extreme_age or low_index < min_extreme_age:
        return VolatilityAnalysis(
            accepted=False, reason=RejectReason.EXTREME_TOO_RECENT, **diagnostics
        )
    if width <= 0:
        return VolatilityAnalysis(accepted=False, reason=RejectReason.DEGENERATE_RANGE, **diagnostics)
    if range_pips > threshold_pips:
        return VolatilityAnalysis(accepted=False, reason=RejectReason.RANGE_TOO_WIDE, **diagnostics)
    if not lower <= bid <= upper:
        return VolatilityAnalysis(
            accepted=False, reason=RejectReason.OUTSIDE_ENTRY_ZONE, **diagnostics
        )
    return VolatilityAnalysis(accepted=True, reason=None, **diagnostics)


class VolatilityWindowAnalyzer:
    """Binds the range rules to one instrument and strategy configuration"""

    def __init__(self, instrument: InstrumentSpec, settings: StrategySettings):
        self.instrument = instrument
        self.period_minutes = settings.volatility_period_minutes
        self.threshold_pips = settings.volatility_threshold_pips
        self.margin_fraction = settings.entry_margin_fraction
        self.min_extreme_age = settings.min_extreme_age_bars

    def analyze(self, bars: Sequence[PriceBar], bid: float) -> VolatilityAnalysis:
        return analyze_volatility(
            trim_idle_bars(bars)[: self.period_minutes],
            bid,
            self.instrument,
            self.threshold_pips,
            self.margin_fraction,
            self.min_extreme_age,
        )
