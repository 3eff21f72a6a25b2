"""Alpha mask construction, feathering and destination-in compositing."""

import numpy as np
from skimage.filters import gaussian

from ..utils.math import to_byte

OPAQUE = 255


def build_alpha(foreground: np.ndarray, ink_shaped: np.ndarray) -> np.ndarray:
    """Binary alpha: opaque where peeled foreground or shaped ink is set."""
    return np.where(foreground | ink_shaped, OPAQUE, 0).astype(np.uint8)


def feather_alpha(alpha: np.ndarray, radius: float) -> np.ndarray:
    """Soften alpha edges with a Gaussian blur of standard deviation ``radius``.

    Pixels beyond the image count as transparent, like blurring a canvas.
    A radius of 0 returns an unchanged copy.
    """
    if radius <= 0:
        return alpha.copy()
    blurred = gaussian(
        alpha.astype(np.float64) / OPAQUE,
        sigma=radius,
        mode="constant",
        cval=0.0,
        preserve_range=True,
    )
    return to_byte(blurred * OPAQUE)


def composite(rgba: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Keep source pixels only where ``alpha`` is opaque (destination-in).

    Output alpha is the source alpha scaled by the mask; colour channels are
    copied from the source wherever the result is visible and zeroed
    elsewhere.
    """
    out_alpha = to_byte(rgba[..., 3].astype(np.float64) * alpha / OPAQUE)
    out = np.zeros_like(rgba)
    visible = out_alpha > 0
    out[visible, :3] = rgba[visible, :3]
    out[..., 3] = out_alpha
    return out
