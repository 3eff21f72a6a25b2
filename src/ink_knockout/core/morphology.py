"""Binary morphology with a full 3x3 structuring element.

Pixels outside the image are treated as 0 for both operations, so erosion
eats in from the image border and dilation never grows from it.
"""

import numpy as np
from scipy import ndimage

STRUCTURE = np.ones((3, 3), dtype=bool)

# Iterations of the despeckling opening applied after ink shaping.
CLEAN_ITERATIONS = 1


def dilate(mask: np.ndarray, iterations: int = 1) -> np.ndarray:
    """Grow the mask by ``iterations`` 8-connected rings."""
    if iterations <= 0:
        # scipy treats iterations < 1 as "repeat until stable"
        return mask.astype(bool, copy=True)
    return ndimage.binary_dilation(
        mask, structure=STRUCTURE, iterations=iterations, border_value=0
    )


def erode(mask: np.ndarray, iterations: int = 1) -> np.ndarray:
    """Shrink the mask by ``iterations`` 8-connected rings."""
    if iterations <= 0:
        return mask.astype(bool, copy=True)
    return ndimage.binary_erosion(
        mask, structure=STRUCTURE, iterations=iterations, border_value=0
    )


def shape_ink(mask: np.ndarray, gap: int) -> np.ndarray:
    """Apply the signed gap: dilate ``gap`` times, or erode ``-gap`` times."""
    if gap >= 0:
        return dilate(mask, gap)
    return erode(mask, -gap)


def open_mask(mask: np.ndarray, iterations: int = CLEAN_ITERATIONS) -> np.ndarray:
    """Erode then dilate to drop isolated specks."""
    return dilate(erode(mask, iterations), iterations)
