"""Sobel gradient magnitude and edge masks."""

import numpy as np
from scipy import ndimage

from ..utils.math import to_byte
from .morphology import dilate

DEFAULT_EDGE_THRESHOLD = 18

SOBEL_X = np.array([[-1, 0, 1],
                    [-2, 0, 2],
                    [-1, 0, 1]], dtype=np.int32)
SOBEL_Y = SOBEL_X.T.copy()


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """Gradient magnitude clamped to uint8, sampling edge-replicated borders."""
    g = gray.astype(np.int32)
    gx = ndimage.correlate(g, SOBEL_X, mode="nearest")
    gy = ndimage.correlate(g, SOBEL_Y, mode="nearest")
    return to_byte(np.hypot(gx, gy))


def edge_mask(gray: np.ndarray, threshold: int = DEFAULT_EDGE_THRESHOLD,
              dilation: int = 1) -> np.ndarray:
    """Binary mask of strong gradients, thickened by ``dilation`` rings."""
    return dilate(sobel_magnitude(gray) >= threshold, dilation)
