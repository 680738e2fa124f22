# src/flexmesh/model/CircularValues.py
import math
from enum import Enum


class CircularValueType(Enum):
    """Value type, for interpolation of angular quantities"""
    NORMAL = "normal"  # ordinary scalar, no wrapping
    DEGREES180 = "degrees180"  # degrees in [-180, 180]
    DEGREES360 = "degrees360"  # degrees in [0, 360]
    RADIANS_PI = "radians_pi"  # radians in [-pi, pi]
    RADIANS_2PI = "radians_2pi"  # radians in [0, 2pi]


_PERIODS = {
    CircularValueType.DEGREES180: 360.0,
    CircularValueType.DEGREES360: 360.0,
    CircularValueType.RADIANS_PI: 2 * math.pi,
    CircularValueType.RADIANS_2PI: 2 * math.pi,
}

# canonical (lower, upper) range of each circular type
_RANGES = {
    CircularValueType.DEGREES180: (-180.0, 180.0),
    CircularValueType.DEGREES360: (0.0, 360.0),
    CircularValueType.RADIANS_PI: (-math.pi, math.pi),
    CircularValueType.RADIANS_2PI: (0.0, 2 * math.pi),
}


def to_reference(circular_type, value, ref_value):
    """
    Translate `value` by one period so it is within half a period of `ref_value`.

    Values of NORMAL type are returned unchanged.
    """
    full = _PERIODS.get(circular_type)
    if full is None:
        return value
    half = 0.5 * full
    if value - ref_value > half:
        return value - full
    if value - ref_value < -half:
        return value + full
    return value


def to_circular(circular_type, value):
    """Wrap `value` (at most one period off) back into the canonical range."""
    value_range = _RANGES.get(circular_type)
    if value_range is None:
        return value
    lower, upper = value_range
    full = upper - lower
    if value > upper:
        return value - full
    if value < lower:
        return value + full
    return value


def first_valid_value(values, delete_value):
    """The first value differing from `delete_value`, or None."""
    for value in values:
        if value != delete_value:
            return value
    return None

