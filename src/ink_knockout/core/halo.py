"""Halo peeling: strip anti-aliased fringe pixels off the foreground."""

import numpy as np

PEEL_ITERATIONS = 5


def peel_halo(foreground: np.ndarray, protect: np.ndarray,
              iterations: int = PEEL_ITERATIONS) -> np.ndarray:
    """Repeatedly remove foreground pixels that touch background.

    A pixel is removed when one of its 4-neighbours inside the image is
    background in the current pass. Each pass reads the previous pass's
    mask only, so removals never cascade within a pass. Pixels in
    ``protect`` are never removed.
    """
    current = foreground.astype(bool, copy=True)
    removable = ~protect

    for _ in range(iterations):
        # Out-of-image neighbours count as foreground
        padded = np.pad(current, 1, mode="constant", constant_values=True)
        touches_background = (
            ~padded[:-2, 1:-1] | ~padded[2:, 1:-1] | ~padded[1:-1, :-2] | ~padded[1:-1, 2:]
        )
        current = current & ~(touches_background & removable)

    return current
