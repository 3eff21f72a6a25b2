"""Wall mask construction for the background flood fill.

The wall is the union of three parts:

* the raw ink mask, dilated one ring wider than any requested ink growth;
* dilated Sobel edges found outside the subject's bounding region;
* a short seam strip under the region that closes gaps beneath the
  subject (between legs, under a base line). The seam footprint is fixed,
  only covers the bottom side and is left out when there is no ink.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .morphology import dilate

logger = logging.getLogger(__name__)

EDGE_CLEAR_MARGIN = 1
SEAM_HEIGHT = 2
SEAM_PADDING = 2


@dataclass(frozen=True)
class Region:
    """Axis-aligned pixel rectangle (x, y, width, height)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass
class BarrierResult:
    """Wall mask plus the region it was built around."""

    barrier: np.ndarray
    region: Region


def bounding_region(mask: np.ndarray) -> Region:
    """Tight bounding box of the set pixels; the whole image if none are set."""
    height, width = mask.shape
    rows = np.flatnonzero(mask.any(axis=1))
    if rows.size == 0:
        return Region(0, 0, width, height)
    cols = np.flatnonzero(mask.any(axis=0))
    return Region(
        int(cols[0]),
        int(rows[0]),
        int(cols[-1] - cols[0] + 1),
        int(rows[-1] - rows[0] + 1),
    )


def guard_iterations(gap: int) -> int:
    """Dilation rings for the ink wall: one more than any positive gap, at least 2."""
    return max(1, gap if gap > 0 else 0) + 1


def filter_edges(edges: np.ndarray, region: Region) -> np.ndarray:
    """Drop edges in and around ``region``; only outside edges may wall.

    The cleared span starts EDGE_CLEAR_MARGIN before the region and ends
    EDGE_CLEAR_MARGIN past its exclusive far edge, inclusive.
    """
    height, width = edges.shape
    x0 = max(0, region.x - EDGE_CLEAR_MARGIN)
    y0 = max(0, region.y - EDGE_CLEAR_MARGIN)
    x1 = min(width - 1, region.right + EDGE_CLEAR_MARGIN)
    y1 = min(height - 1, region.bottom + EDGE_CLEAR_MARGIN)

    filtered = edges.copy()
    filtered[y0:y1 + 1, x0:x1 + 1] = False
    return filtered


def seam_strip(shape: Tuple[int, int], region: Region) -> np.ndarray:
    """SEAM_HEIGHT rows directly below ``region``, SEAM_PADDING wider each side.

    A region reaching the bottom border gets its seam on the last row.
    """
    height, width = shape
    seam = np.zeros(shape, dtype=bool)
    if height == 0 or width == 0:
        return seam

    y0 = min(height - 1, region.bottom)
    y1 = min(height, y0 + SEAM_HEIGHT)
    x0 = max(0, region.x - SEAM_PADDING)
    x1 = min(width - 1, region.right + SEAM_PADDING)

    seam[y0:y1, x0:x1 + 1] = True
    return seam


def build_barrier(ink: np.ndarray, ink_shaped: np.ndarray, edges: np.ndarray,
                  gap: int) -> BarrierResult:
    """Fuse guarded ink, filtered edges and the seam into one wall mask.

    Args:
        ink: Raw thresholded ink mask, before gap shaping
        ink_shaped: Gap-shaped and opened ink mask; defines the region
        edges: Dilated Sobel edge mask
        gap: Signed gap used to shape ``ink_shaped``

    Returns:
        BarrierResult with the wall mask and the subject region
    """
    region = bounding_region(ink_shaped)
    guard = guard_iterations(gap)

    ink_wall = dilate(ink, guard)
    edge_wall = filter_edges(edges, region)
    # No subject, no seam: a blank page floods completely
    if ink_shaped.any():
        seam = seam_strip(ink.shape, region)
    else:
        seam = np.zeros(ink.shape, dtype=bool)

    barrier = ink_wall | edge_wall | seam
    logger.debug(
        f"Barrier: region={region.as_tuple()} guard={guard} "
        f"ink={int(ink_wall.sum())} edges={int(edge_wall.sum())} "
        f"seam={int(seam.sum())}"
    )
    return BarrierResult(barrier=barrier, region=region)
