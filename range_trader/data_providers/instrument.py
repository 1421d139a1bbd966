"""
Instrument metadata.

Prices, stop distances and volumes are all expressed against the instrument's
point (smallest price increment). For 3- and 5-digit quotes a conventional pip
is ten points; for every other precision a pip and a point coincide.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

# Ratios are rounded to this many decimals before comparison so that
# (1.1015 - 1.1000) / 0.00001 reads as 150 points, not 150.0000000000057
_RATIO_DECIMALS = 6


@dataclass(frozen=True)
class InstrumentSpec:
    """Venue-provided trading metadata for one symbol"""

    symbol: str
    digits: int
    point: float
    stops_level: int = 0  # minimum stop distance from price, in points
    tick_size: float | None = None
    tick_value: float = 1.0  # account-currency value of one tick per lot
    volume_min: float = 0.01
    volume_max: float = 100.0
    volume_step: float = 0.01

    def __post_init__(self):
        if self.digits < 0:
            raise ValueError("digits must be non-negative")
        if self.point <= 0:
            raise ValueError("point must be positive")
        if self.stops_level < 0:
            raise ValueError("stops_level must be non-negative")
        if self.volume_min <= 0 or self.volume_max < self.volume_min:
            raise ValueError("volume bounds must satisfy 0 < min <= max")
        if self.volume_step <= 0:
            raise ValueError("volume_step must be positive")

    @classmethod
    def forex(cls, symbol: str, digits: int = 5, **kwargs) -> InstrumentSpec:
        """Build a spec whose point follows from the quote precision."""
        return cls(symbol=symbol, digits=digits, point=10.0**-digits, **kwargs)

    @property
    def is_fractional_pip(self) -> bool:
        return self.digits in (3, 5)

    @property
    def pip_size(self) -> float:
        """Price distance of one conventional pip."""
        return self.point * 10 if self.is_fractional_pip else self.point

    @property
    def effective_tick_size(self) -> float:
        return self.tick_size if self.tick_size else self.point

    @property
    def pip_value_per_lot(self) -> float:
        """Account-currency value of a one-pip move for one lot."""
        return self.tick_value * self.pip_size / self.effective_tick_size

    @property
    def min_stop_distance(self) -> float:
        """Venue minimum stop distance as a price distance."""
        return self.stops_level * self.point

    def to_points(self, distance: float) -> float:
        return round(distance / self.point, _RATIO_DECIMALS)

    def to_pips(self, distance: float) -> float:
        """Convert a price distance to pips."""
        points = self.to_points(distance)
        return points / 10 if self.is_fractional_pip else points

    def pips_to_price(self, pips: float) -> float:
        return pips * self.pip_size

    def round_price(self, price: float) -> float:
        return round(price, self.digits)

    def normalize_volume(self, volume: float) -> float:
        """Quantize a volume down to the venue step and clamp to [min, max]."""
        steps = math.floor(volume / self.volume_step + 1e-9)
        quantized = steps * self.volume_step
        clamped = min(max(quantized, self.volume_min), self.volume_max)
        step_decimals = max(0, -int(math.floor(math.log10(self.volume_step))))
        return round(clamped, step_decimals)
