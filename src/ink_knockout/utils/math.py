"""Numeric helpers shared by the knockout stages."""

import numpy as np
from typing import Union

ArrayLike = Union[np.ndarray, float, int]


def round_half_up(values: ArrayLike) -> ArrayLike:
    """Round to nearest integer with .5 going up (not banker's rounding)."""
    if isinstance(values, np.ndarray):
        return np.floor(values + 0.5)
    return int(np.floor(values + 0.5))


def clamp_value(value: float, min_val: float, max_val: float) -> float:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def to_byte(values: np.ndarray) -> np.ndarray:
    """Round half-up and clamp a float buffer into uint8."""
    return np.clip(round_half_up(values), 0, 255).astype(np.uint8)
