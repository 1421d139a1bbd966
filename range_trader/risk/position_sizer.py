"""
Position Sizer Components

Lot size is either fixed or derived from the share of the account balance
risked between entry and stop.
"""

from abc import ABC, abstractmethod
from typing import Any

from range_trader.config.settings import SizingMode, StrategySettings
from range_trader.data_providers.instrument import InstrumentSpec


class PositionSizer(ABC):
    """Abstract base class for position sizers"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def calculate_size(self, balance: float, stop_loss_pips: float) -> float:
        """
        Calculate the order volume in lots

        Args:
            balance: Account balance in account currency
            stop_loss_pips: Distance from entry to stop, in pips

        Returns:
            Volume in lots, 0.0 when no position should be opened
        """
        pass

    def get_parameters(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.__class__.__name__}


class FixedLotSizer(PositionSizer):
    """Uses the configured lot size as-is"""

    def __init__(self, lot: float):
        super().__init__("fixed_lot_sizer")
        if lot <= 0:
            raise ValueError(f"lot must be positive, got {lot}")
        self.lot = lot

    def calculate_size(self, balance: float, stop_loss_pips: float) -> float:
        return self.lot

    def get_parameters(self) -> dict[str, Any]:
        params = super().get_parameters()
        params["lot"] = self.lot
        return params


class RiskPercentSizer(PositionSizer):
    """
    Risk-percentage sizer

    ``lots = (balance * risk_percent / 100) / (stop_loss_pips * pip_value_per_lot)``,
    quantized down to the venue volume step and clamped to its volume bounds.
    """

    def __init__(self, risk_percent: float, instrument: InstrumentSpec):
        super().__init__("risk_percent_sizer")
        if not 0.0 < risk_percent <= 100.0:
            raise ValueError(f"risk_percent must be in (0, 100], got {risk_percent}")
        self.risk_percent = risk_percent
        self.instrument = instrument

    def calculate_size(self, balance: float, stop_loss_pips: float) -> float:
        if balance <= 0 or stop_loss_pips <= 0:
            return 0.0
        pip_value = self.instrument.pip_value_per_lot
        if pip_value <= 0:
            return 0.0
        risk_amount = balance * self.risk_percent / 100.0
        raw = risk_amount / (stop_loss_pips * pip_value)
        return self.instrument.normalize_volume(raw)

    def get_parameters(self) -> dict[str, Any]:
        params = super().get_parameters()
        params["risk_percent"] = self.risk_percent
        return params


def create_position_sizer(settings: StrategySettings, instrument: InstrumentSpec) -> PositionSizer:
    if settings.sizing_mode is SizingMode.RISK_PERCENT:
        return RiskPercentSizer(settings.risk_percent, instrument)
    return FixedLotSizer(settings.fixed_lot)
