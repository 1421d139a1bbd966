import pytest

from range_trader.data_providers.instrument import InstrumentSpec

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "digits,pip_size",
    [(5, 0.0001), (3, 0.01), (4, 0.0001), (2, 0.01)],
)
def test_pip_size_follows_quote_precision(digits, pip_size):
    assert InstrumentSpec.forex("X", digits=digits).pip_size == pytest.approx(pip_size)


def test_pip_conversion_is_free_of_float_noise(instrument):
    assert instrument.to_points(1.1015 - 1.1000) == 150.0
    assert instrument.to_pips(1.1015 - 1.1000) == 15.0


def test_pips_to_price_round_trip(instrument):
    assert instrument.pips_to_price(5) == pytest.approx(0.0005)


def test_pip_value_per_lot_scales_with_tick_value():
    spec = InstrumentSpec.forex("EURUSD", tick_value=1.0)
    jpy = InstrumentSpec.forex("USDJPY", digits=3, tick_value=0.67)

    assert spec.pip_value_per_lot == pytest.approx(10.0)
    assert jpy.pip_value_per_lot == pytest.approx(6.7)


def test_min_stop_distance_from_stops_level():
    assert InstrumentSpec.forex("EURUSD", stops_level=35).min_stop_distance == pytest.approx(0.00035)


@pytest.mark.parametrize(
    "raw,expected",
    [(0.337, 0.33), (0.5, 0.5), (0.001, 0.01), (250.0, 100.0), (0.07, 0.07)],
)
def test_normalize_volume(instrument, raw, expected):
    assert instrument.normalize_volume(raw) == expected


def test_invalid_metadata_is_rejected():
    with pytest.raises(ValueError):
        InstrumentSpec("EURUSD", digits=5, point=0)
    with pytest.raises(ValueError):
        InstrumentSpec.forex("EURUSD", volume_min=1.0, volume_max=0.5)
