"""Global thresholding: Otsu's method and the blended ink threshold."""

import logging
import numpy as np

from ..utils.math import round_half_up, clamp_value

logger = logging.getLogger(__name__)

# Returned unchanged when the histogram never splits into two classes.
DEFAULT_OTSU_THRESHOLD = 96

OTSU_WEIGHT = 0.8
BLEND = 0.5


def otsu_threshold(gray: np.ndarray) -> int:
    """Pick the threshold maximising between-class variance.

    Sweeps t over 0..255 with pixels <= t as the background class. The
    first t reaching the strict maximum wins, so ties resolve toward the
    lower threshold. Single-valued images keep DEFAULT_OTSU_THRESHOLD.
    """
    hist = np.bincount(gray.ravel(), minlength=256).astype(np.float64)
    total = float(gray.size)
    weighted_sum = float(np.dot(np.arange(256), hist))

    sum_b = 0.0
    w_b = 0.0
    var_max = 0.0
    threshold = DEFAULT_OTSU_THRESHOLD

    for t in range(256):
        w_b += hist[t]
        if w_b == 0:
            continue
        w_f = total - w_b
        if w_f == 0:
            break
        sum_b += t * hist[t]
        mean_b = sum_b / w_b
        mean_f = (weighted_sum - sum_b) / w_f
        between = w_b * w_f * (mean_b - mean_f) ** 2
        if between > var_max:
            var_max = between
            threshold = t

    logger.debug(f"Otsu threshold: {threshold}")
    return threshold


def ink_threshold(otsu: int, ink: float) -> int:
    """Blend a damped Otsu threshold with the user's base ink level."""
    value = round_half_up(BLEND * (OTSU_WEIGHT * otsu) + BLEND * ink)
    return int(clamp_value(value, 0, 255))


def ink_mask(gray: np.ndarray, threshold: int) -> np.ndarray:
    """Pixels dark enough to count as drawn ink."""
    return gray <= threshold
