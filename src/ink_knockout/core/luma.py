"""RGBA to 8-bit luma conversion."""

import numpy as np

from ..utils.math import to_byte

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


def to_gray(rgba: np.ndarray) -> np.ndarray:
    """Convert an (H, W, 4) RGBA buffer to an (H, W) uint8 luma buffer.

    The alpha channel is ignored.
    """
    rgb = rgba[..., :3].astype(np.float64)
    return to_byte(rgb @ LUMA_WEIGHTS)
