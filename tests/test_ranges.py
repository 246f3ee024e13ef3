import pytest

from smartagri.errors import RangeParseInvalid
from smartagri.measurements import Measurement
from smartagri.ranges import FavorableRange, RangeStatus, classify, parse_range


@pytest.mark.parametrize(
    "spec, low, high",
    [
        ("21~37°C", 21.0, 37.0),
        ("60~80%", 60.0, 80.0),
        ("60 ~ 80 %", 60.0, 80.0),
        ("70-100", 70.0, 100.0),
        ("10~50 mg/kg", 10.0, 50.0),
        ("1.5~2.5", 1.5, 2.5),
    ],
)
def test_parse_range(spec, low, high):
    assert parse_range(spec) == FavorableRange(low, high)


@pytest.mark.parametrize("spec", ["", None, "abc", "10", "1~2~3", "a~b", "~10", "-5~10", 42])
def test_parse_range_rejects(spec):
    with pytest.raises(RangeParseInvalid):
        parse_range(spec)


def test_bounds_are_inclusive():
    assert classify(Measurement.TEMPERATURE, 21, "21~37°C") is RangeStatus.WITHIN
    assert classify(Measurement.TEMPERATURE, 37, "21~37°C") is RangeStatus.WITHIN
    assert classify(Measurement.TEMPERATURE, 20.9, "21~37°C") is RangeStatus.BELOW
    assert classify(Measurement.TEMPERATURE, 37.1, "21~37°C") is RangeStatus.ABOVE


def test_soil_moisture_compared_after_scaling():
    # raw 850 -> 85.0 %
    assert classify(Measurement.SOIL_MOISTURE, 850, "70-100") is RangeStatus.WITHIN
    assert classify(Measurement.SOIL_MOISTURE, 500, "70-100") is RangeStatus.BELOW
    # other readings are not scaled
    assert classify(Measurement.NITROGEN, 850, "10~50") is RangeStatus.ABOVE


def test_invalid_range_has_no_status():
    assert classify(Measurement.HUMIDITY, 50, "sixty to eighty") is RangeStatus.INVALID
    assert classify(Measurement.HUMIDITY, 50, "") is RangeStatus.INVALID


def test_reversed_range_is_not_sorted(caplog):
    assert classify(Measurement.TEMPERATURE, 30, "37~21") is RangeStatus.BELOW
    assert classify(Measurement.TEMPERATURE, 10, "37~21") is RangeStatus.BELOW
    assert "min > max" in caplog.text


@pytest.mark.parametrize(
    "measurement, value, spec, expected",
    [
        (Measurement.TEMPERATURE, -5, "21~37°C", RangeStatus.BELOW),
        (Measurement.TEMPERATURE, -0.0, "0~10", RangeStatus.WITHIN),
        (Measurement.TEMPERATURE, -0.1, "0~10", RangeStatus.BELOW),
        # raw -50 scales to -5.0 %
        (Measurement.SOIL_MOISTURE, -50, "70-100", RangeStatus.BELOW),
        (Measurement.NITROGEN, -1, "0~50", RangeStatus.BELOW),
    ],
)
def test_negative_readings(measurement, value, spec, expected):
    assert classify(measurement, value, spec) is expected
