"""Favorable-range profiles per crop, plus the user-editable Manual profile."""

from dataclasses import dataclass, field
from typing import Dict

from .measurements import Measurement

MANUAL = "Manual"

T, H, SM, N, P, K = (
    Measurement.TEMPERATURE,
    Measurement.HUMIDITY,
    Measurement.SOIL_MOISTURE,
    Measurement.NITROGEN,
    Measurement.PHOSPHORUS,
    Measurement.POTASSIUM,
)

# Soil moisture ranges are in scaled percent, not raw sensor units.
CROP_RANGES = {
    MANUAL: {T: "21~37°C", H: "60~80%", SM: "70-100", N: "10~50", P: "15~73", K: "101~150"},
    "Wheat": {T: "18~24°C", H: "50~70%", SM: "40-60", N: "50~100", P: "20~40", K: "80~120"},
    "Corn": {T: "21~32°C", H: "60~85%", SM: "50-75", N: "80~150", P: "30~60", K: "120~200"},
    "Rice": {T: "25~35°C", H: "70~90%", SM: "80-100", N: "60~120", P: "25~50", K: "100~180"},
    "Soybean": {T: "20~30°C", H: "60~80%", SM: "45-65", N: "40~80", P: "25~55", K: "90~160"},
    "Cotton": {T: "25~35°C", H: "55~75%", SM: "50-70", N: "70~130", P: "20~45", K: "110~190"},
}


@dataclass
class CropProfile:
    name: str
    ranges: Dict[Measurement, str] = field(default_factory=dict)

    @property
    def editable(self) -> bool:
        return self.name == MANUAL

    def range_for(self, measurement: Measurement) -> str:
        return self.ranges.get(measurement, "")

    def with_range(self, measurement: Measurement, spec: str) -> "CropProfile":
        if not self.editable:
            raise ValueError(f"{self.name} profile is fixed")
        ranges = dict(self.ranges)
        ranges[measurement] = spec
        return CropProfile(self.name, ranges)


def crop_names():
    return list(CROP_RANGES)


def manual_profile() -> CropProfile:
    """A fresh Manual profile seeded with the default ranges."""
    return CropProfile(MANUAL, dict(CROP_RANGES[MANUAL]))


def get_profile(name: str) -> CropProfile:
    if name not in CROP_RANGES:
        raise KeyError(f"Unknown crop: {name}")
    return CropProfile(name, dict(CROP_RANGES[name]))
