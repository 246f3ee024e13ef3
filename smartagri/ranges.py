"""
Favorable-range evaluation.

A favorable range is typed by people, e.g. ``"21~37°C"``, ``"60~80 %"`` or
``"70-100"``. After stripping the unit it must split into exactly two numbers;
anything else is INVALID and the reading is shown without a color.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum

from .errors import RangeParseInvalid
from .measurements import comparison_value

logger = logging.getLogger(__name__)

_UNIT_RE = re.compile(r"°C|%|mg/kg", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[~-]")


class RangeStatus(Enum):
    BELOW = "below"
    WITHIN = "within"
    ABOVE = "above"
    INVALID = "invalid"


@dataclass(frozen=True)
class FavorableRange:
    low: float
    high: float

    @property
    def is_reversed(self) -> bool:
        return self.low > self.high

    def evaluate(self, value: float) -> RangeStatus:
        # Bounds are inclusive and taken in the order written.
        if value < self.low:
            return RangeStatus.BELOW
        if value > self.high:
            return RangeStatus.ABOVE
        return RangeStatus.WITHIN


def parse_range(spec) -> FavorableRange:
    if not spec or not isinstance(spec, str):
        raise RangeParseInvalid(f"empty range: {spec!r}")
    tokens = _SEPARATOR_RE.split(_UNIT_RE.sub("", spec).strip())
    if len(tokens) != 2:
        raise RangeParseInvalid(f"expected two numbers in {spec!r}")
    try:
        low, high = (float(token.strip()) for token in tokens)
    except ValueError as exc:
        raise RangeParseInvalid(f"non-numeric bound in {spec!r}") from exc
    if math.isnan(low) or math.isnan(high):
        raise RangeParseInvalid(f"non-numeric bound in {spec!r}")
    return FavorableRange(low, high)


def classify(measurement, value: float, range_spec) -> RangeStatus:
    """Place a raw reading relative to its favorable range."""
    try:
        favorable = parse_range(range_spec)
    except RangeParseInvalid as exc:
        logger.debug("No color for %s: %s", measurement, exc)
        return RangeStatus.INVALID
    if favorable.is_reversed:
        logger.warning("Favorable range %r for %s has min > max", range_spec, measurement)
    return favorable.evaluate(comparison_value(measurement, value))
