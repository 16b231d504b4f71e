"""
Utility functions

Angle helpers shared by the layout, projection and link modules.
"""

from __future__ import annotations
from typing import Tuple, Union

import numpy as np

FULL_CIRCLE: float = 360.0

ANGLE_TOLERANCE: float = FULL_CIRCLE * 1e-6
"""Absolute tolerance (degrees) for the 360° partition check: 1e-6 of a full turn"""

RADIUS_TOLERANCE: float = 1e-9
"""Absolute tolerance for radial budget checks"""


def normalize_degree(degree: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Wrap an angle (or array of angles) into [0, 360)"""
    return np.mod(degree, FULL_CIRCLE)


def as_range(value, name: str = "range") -> Tuple[float, float]:
    """
    Coerce a 2-sequence into a (low, high) float tuple

    Args:
        value: Any 2-element sequence of numbers
        name: Label used in the error message

    Returns:
        (first, second) as floats, order preserved

    Raises:
        ValueError: If value does not hold exactly two numbers
    """
    try:
        low, high = value
        return float(low), float(high)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a pair of numbers, got {value!r}") from e


def polar_to_cartesian(degree, radius):
    """Standard polar to Cartesian conversion (degrees, counter-clockwise from +x)"""
    theta = np.radians(degree)
    return radius * np.cos(theta), radius * np.sin(theta)


def cartesian_to_polar(x, y):
    """Inverse of polar_to_cartesian; angle returned in [0, 360)"""
    radius = np.hypot(x, y)
    degree = normalize_degree(np.degrees(np.arctan2(y, x)))
    return degree, radius


def unwrap_near(degree, reference: float):
    """
    Shift an angle by whole turns into [reference - 180, reference + 180)

    Sector spans are kept unnormalised (e.g. 350° to 420°), so inverting a
    canvas angle means picking the turn closest to the sector midpoint.
    """
    half = FULL_CIRCLE / 2
    return reference + np.mod(np.asarray(degree, dtype=float) - reference + half, FULL_CIRCLE) - half


def to_scalar_or_array(value):
    """Return a Python float for 0-d input, ndarray otherwise"""
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        return float(arr)
    return arr
