import math
from datetime import datetime

import pytest

from smartagri.measurements import (
    Measurement,
    SensorReadings,
    describe,
    format_value,
    parse_reading,
    scale_soil_moisture,
)


def test_from_payload_maps_datastore_fields():
    stamp = datetime(2024, 5, 1, 12, 0, 0)
    r = SensorReadings.from_payload(
        {"temperature": "26.5", "humidity": 70, "sms": 812, "nitro": 33, "phospho": 41, "potas": 130},
        received_at=stamp,
    )
    assert r == SensorReadings(26.5, 70.0, 812.0, 33.0, 41.0, 130.0)
    assert r.received_at == stamp


def test_from_payload_missing_or_bad_fields_become_zero():
    r = SensorReadings.from_payload({"temperature": "hot", "humidity": None, "sms": True})
    assert r.temperature == 0.0
    assert r.humidity == 0.0
    assert r.soil_moisture == 0.0
    assert r.potassium == 0.0
    assert r.received_at is not None


@pytest.mark.parametrize("raw, expected", [(None, 0.0), ("12", 12.0), (" 7.5 ", 7.5), ("nan", 0.0), ([], 0.0), (3, 3.0)])
def test_parse_reading(raw, expected):
    value = parse_reading(raw)
    assert not math.isnan(value)
    assert value == expected


def test_soil_moisture_scaling():
    assert scale_soil_moisture(853) == 85.3
    assert format_value(Measurement.SOIL_MOISTURE, 850) == "85.0"
    assert SensorReadings(soil_moisture=700).display_value(Measurement.SOIL_MOISTURE) == 70.0
    assert SensorReadings(temperature=25).display_value(Measurement.TEMPERATURE) == 25


def test_format_value_drops_trailing_zero():
    assert format_value(Measurement.TEMPERATURE, 25.0) == "25"
    assert format_value(Measurement.TEMPERATURE, 25.4) == "25.4"


@pytest.mark.parametrize(
    "value, member",
    [
        (Measurement.NITROGEN, Measurement.NITROGEN),
        ("soil_moisture", Measurement.SOIL_MOISTURE),
        ("Soil Moisture", Measurement.SOIL_MOISTURE),
        ("soilMoisture", Measurement.SOIL_MOISTURE),
        ("TEMPERATURE", Measurement.TEMPERATURE),
        ("wind", None),
        (3, None),
    ],
)
def test_coerce(value, member):
    assert Measurement.coerce(value) is member


def test_describe():
    assert describe(Measurement.POTASSIUM).startswith("Potassium")
    assert describe("humidity").startswith("Humidity")
    assert describe("wind") == "Information not available."


def test_units():
    assert [m.unit for m in Measurement] == ["°C", "%", "%", "mg/kg", "mg/kg", "mg/kg"]
