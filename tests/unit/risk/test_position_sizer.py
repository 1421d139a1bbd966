import pytest

from range_trader.config.settings import SizingMode
from range_trader.data_providers.instrument import InstrumentSpec
from range_trader.risk.position_sizer import (
    FixedLotSizer,
    RiskPercentSizer,
    create_position_sizer,
)

pytestmark = pytest.mark.unit


def test_fixed_lot_ignores_balance_and_stop():
    sizer = FixedLotSizer(0.2)

    assert sizer.calculate_size(10_000, 20) == 0.2
    assert sizer.calculate_size(1, 500) == 0.2


def test_fixed_lot_must_be_positive():
    with pytest.raises(ValueError):
        FixedLotSizer(0)


def test_risk_percent_sizing(instrument):
    # 1% of 10k = 100; 20 pips at 10 per pip per lot = 200 per lot
    assert RiskPercentSizer(1.0, instrument).calculate_size(10_000, 20) == pytest.approx(0.5)


def test_risk_percent_quantizes_down_to_the_step(instrument):
    # 100 / (30 * 10) = 0.333.. lots
    assert RiskPercentSizer(1.0, instrument).calculate_size(10_000, 30) == pytest.approx(0.33)


def test_risk_percent_clamps_to_volume_bounds():
    spec = InstrumentSpec.forex("EURUSD", volume_min=0.1, volume_max=2.0, volume_step=0.1)
    sizer = RiskPercentSizer(5.0, spec)

    assert sizer.calculate_size(1_000_000, 10) == 2.0
    assert sizer.calculate_size(100, 50) == 0.1


def test_risk_percent_returns_zero_for_unusable_inputs(instrument):
    sizer = RiskPercentSizer(1.0, instrument)

    assert sizer.calculate_size(0, 20) == 0.0
    assert sizer.calculate_size(10_000, 0) == 0.0


def test_factory_follows_sizing_mode(settings_factory, instrument):
    fixed = create_position_sizer(settings_factory(fixed_lot=0.3), instrument)
    risk = create_position_sizer(
        settings_factory(sizing_mode=SizingMode.RISK_PERCENT, risk_percent=2.0), instrument
    )

    assert isinstance(fixed, FixedLotSizer) and fixed.lot == 0.3
    assert isinstance(risk, RiskPercentSizer) and risk.risk_percent == 2.0
