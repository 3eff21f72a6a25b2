"""Border-seeded background flood fill bounded by a wall mask."""

import logging
from typing import Callable, Optional

import numpy as np
from scipy import ndimage

logger = logging.getLogger(__name__)

# predicate(flat_index, rgba) -> bool; flat_index is y * width + x
AdmissibilityPredicate = Callable[[int, np.ndarray], bool]

FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


def admissible_mask(barrier: np.ndarray,
                    predicate: Optional[AdmissibilityPredicate] = None,
                    rgba: Optional[np.ndarray] = None) -> np.ndarray:
    """Pixels the fill may enter: off the wall and accepted by ``predicate``."""
    open_pixels = ~barrier
    if predicate is None:
        return open_pixels

    if rgba is None:
        raise ValueError("An admissibility predicate needs the rgba buffer")

    flat = open_pixels.ravel().copy()
    for index in np.flatnonzero(flat):
        if not predicate(int(index), rgba):
            flat[index] = False
    return flat.reshape(barrier.shape)


def flood_background(barrier: np.ndarray,
                     predicate: Optional[AdmissibilityPredicate] = None,
                     rgba: Optional[np.ndarray] = None) -> np.ndarray:
    """Mark every pixel 4-connected to the image border without crossing the wall.

    Seeds are all border pixels that are admissible. Growing a breadth-first
    front from those seeds reaches exactly the admissible 4-connected
    components that touch the border, so the fill is computed by labelling
    those components.

    Args:
        barrier: Wall mask; wall pixels are never background
        predicate: Optional extra per-pixel gate, see AdmissibilityPredicate
        rgba: Source pixels handed to ``predicate``

    Returns:
        Boolean background mask
    """
    admissible = admissible_mask(barrier, predicate, rgba)
    labels, count = ndimage.label(admissible, structure=FOUR_CONNECTED)
    if count == 0:
        return np.zeros(barrier.shape, dtype=bool)

    border = np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]))
    seeded = np.unique(border[border > 0])
    background = np.isin(labels, seeded)

    logger.debug(f"Flood fill: {count} open components, {seeded.size} touch the border, "
                 f"{int(background.sum())} background pixels")
    return background
