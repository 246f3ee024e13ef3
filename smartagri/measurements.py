"""Sensor measurements, units and the snapshot pushed by the field unit."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

# Soil moisture arrives as a raw ADC-style integer; x0.1 gives percent.
SOIL_MOISTURE_SCALE = 0.1


class Measurement(Enum):
    """The six readings, as (label, unit, datastore field)."""

    TEMPERATURE = ("Temperature", "°C", "temperature")
    HUMIDITY = ("Humidity", "%", "humidity")
    SOIL_MOISTURE = ("Soil Moisture", "%", "sms")
    NITROGEN = ("Nitrogen", "mg/kg", "nitro")
    PHOSPHORUS = ("Phosphorus", "mg/kg", "phospho")
    POTASSIUM = ("Potassium", "mg/kg", "potas")

    def __init__(self, label, unit, payload_key):
        self.label = label
        self.unit = unit
        self.payload_key = payload_key

    @property
    def field_name(self) -> str:
        return self.name.lower()

    @classmethod
    def coerce(cls, value) -> Optional["Measurement"]:
        """Accept a member, its enum name, its field name or its display label."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = value.strip().lower().replace(" ", "_")
        for member in cls:
            if wanted in (member.field_name, member.label.lower().replace(" ", "_")):
                return member
        # camelCase keys such as "soilMoisture"
        for member in cls:
            if wanted == member.field_name.replace("_", ""):
                return member
        return None


def scale_soil_moisture(raw: float) -> float:
    return round(raw * SOIL_MOISTURE_SCALE, 1)


def comparison_value(measurement, value: float) -> float:
    """Value as shown and compared: soil moisture scaled, everything else raw."""
    if Measurement.coerce(measurement) is Measurement.SOIL_MOISTURE:
        return scale_soil_moisture(value)
    return value


def format_value(measurement: Measurement, value: float) -> str:
    if measurement is Measurement.SOIL_MOISTURE:
        return f"{scale_soil_moisture(value):.1f}"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def parse_reading(raw: Any) -> float:
    """Parse one pushed field as float; absent or unparseable values become 0."""
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        value = float(str(raw).strip())
    except ValueError:
        return 0.0
    if math.isnan(value):
        return 0.0
    return value


@dataclass(frozen=True)
class SensorReadings:
    temperature: float = 0.0
    humidity: float = 0.0
    soil_moisture: float = 0.0
    nitrogen: float = 0.0
    phosphorus: float = 0.0
    potassium: float = 0.0
    received_at: Optional[datetime] = field(default=None, compare=False)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], received_at: Optional[datetime] = None) -> "SensorReadings":
        values = {m.field_name: parse_reading(payload.get(m.payload_key)) for m in Measurement}
        return cls(received_at=received_at or datetime.now(), **values)

    def value(self, measurement: Measurement) -> float:
        return getattr(self, measurement.field_name)

    def display_value(self, measurement: Measurement) -> float:
        return comparison_value(measurement, self.value(measurement))

    def as_dict(self) -> Dict[Measurement, float]:
        return {m: self.value(m) for m in Measurement}


PARAMETER_INFO = {
    Measurement.TEMPERATURE: (
        "Temperature drives plant growth, metabolic rate and nutrient uptake. "
        "Every crop has an optimal band; running outside it stresses the plant, "
        "cuts yield and in the extreme kills it. Watching temperature matters most "
        "in controlled environments such as greenhouses."
    ),
    Measurement.HUMIDITY: (
        "Humidity, the moisture held in the air, shapes transpiration and plant health. "
        "High humidity favours fungal disease while low humidity causes excessive water "
        "loss and wilting. Keeping it in range lets plants take up water and nutrients "
        "efficiently."
    ),
    Measurement.SOIL_MOISTURE: (
        "Soil moisture is the water content of the soil and carries nutrients to the roots. "
        "Enough of it keeps photosynthesis and other processes running. Over-watering leads "
        "to root rot and under-watering to drought stress, and both hurt yield."
    ),
    Measurement.NITROGEN: (
        "Nitrogen is the building block of chlorophyll and plant proteins. Crops with enough "
        "nitrogen develop strong stalks, green leaves and full grain or fruit. Too much "
        "pollutes waterways and adds to greenhouse emissions; too little stunts growth. "
        "Balanced fertilisation and cover crops keep it in check."
    ),
    Measurement.PHOSPHORUS: (
        "Phosphorus moves energy through the plant and supports photosynthesis, nutrient "
        "transport and root development. It is especially important for flowering, fruiting "
        "and seed set. A deficiency shows up as stunted growth and poor crop quality."
    ),
    Measurement.POTASSIUM: (
        "Potassium underpins plant vigour, disease resistance and water regulation. It "
        "activates enzymes, improves nutrient uptake and strengthens cell walls, giving "
        "better fruit quality and tolerance to drought and pests."
    ),
}


def describe(measurement) -> str:
    member = Measurement.coerce(measurement)
    return PARAMETER_INFO.get(member, "Information not available.")
