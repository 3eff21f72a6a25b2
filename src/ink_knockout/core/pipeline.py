"""Knockout pipeline: transparent background around a drawn subject.

Stages, each a pure function over fresh buffers:

1. luma conversion
2. Otsu threshold blended with the ink level -> ink mask
3. gap shaping and despeckling of the ink mask
4. Sobel edge mask
5. wall mask (guarded ink, outside edges, seam strip)
6. border-seeded background flood fill
7. halo peeling of the foreground, ink protected
8. alpha build, feather and destination-in composite

Known limitation: regions fully enclosed by the wall stay opaque even when
they match the background colour.
"""

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional, Union

import numpy as np
from PIL import Image

from ..utils.image import to_rgba
from ..utils.profiler import StageProfiler
from .alpha import build_alpha, composite, feather_alpha
from .barrier import Region, build_barrier
from .edges import edge_mask
from .flood import AdmissibilityPredicate, flood_background
from .halo import PEEL_ITERATIONS, peel_halo
from .luma import to_gray
from .morphology import CLEAN_ITERATIONS, open_mask, shape_ink
from .threshold import DEFAULT_OTSU_THRESHOLD, ink_mask, ink_threshold, otsu_threshold

logger = logging.getLogger(__name__)

ImageInput = Union[np.ndarray, Image.Image]


@dataclass(frozen=True)
class KnockoutOptions:
    """Tunable knockout parameters."""

    ink: float = 64            # Base ink level blended with the Otsu threshold
    gap: int = -1              # >0 dilates the ink mask, <0 erodes it
    edge: int = 18             # Sobel magnitude threshold for edge walls
    bg_tol: int = 24           # Reserved; accepted for compatibility, no effect
    feather: float = 1.2       # Alpha blur radius in px, 0 disables
    padding: int = 24          # Reserved; accepted for compatibility, no effect

    def __post_init__(self):
        """Validate configuration parameters."""
        gap = self.gap
        if isinstance(gap, float) and gap.is_integer():
            object.__setattr__(self, "gap", int(gap))
        elif isinstance(gap, bool) or not isinstance(gap, (int, np.integer)):
            raise ValueError(f"gap must be an integer, got {gap!r}")

        if not (0 <= self.edge <= 255):
            raise ValueError(f"edge must be in [0, 255], got {self.edge}")

        if self.feather < 0:
            raise ValueError(f"feather must be non-negative, got {self.feather}")

        if self.bg_tol < 0:
            raise ValueError(f"bg_tol must be non-negative, got {self.bg_tol}")

        if self.padding < 0:
            raise ValueError(f"padding must be non-negative, got {self.padding}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "KnockoutOptions":
        """Build options from a plain dict, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown knockout options: {', '.join(unknown)}")
        return cls(**values)

    @classmethod
    def coerce(cls, options: Union["KnockoutOptions", Mapping[str, Any], None] = None,
               **overrides: Any) -> "KnockoutOptions":
        """Accept options as an instance, a mapping or None, plus overrides."""
        if options is None:
            base = cls()
        elif isinstance(options, cls):
            base = options
        elif isinstance(options, Mapping):
            base = cls.from_mapping(options)
        else:
            raise ValueError(f"Unsupported options type: {type(options).__name__}")

        if overrides:
            base = cls.from_mapping({**dataclasses.asdict(base), **overrides})
        return base

    def warn_reserved(self) -> None:
        """Log reserved options that were changed but still do nothing."""
        defaults = KnockoutOptions()
        for name in ("bg_tol", "padding"):
            if getattr(self, name) != getattr(defaults, name):
                logger.warning(f"Option '{name}' is reserved and has no effect")


class KnockoutResult(NamedTuple):
    """Output RGBA buffer with the echoed input dimensions."""

    image: np.ndarray
    width: int
    height: int


@dataclass
class KnockoutStages:
    """Every intermediate buffer from a single pipeline run."""

    gray: np.ndarray
    otsu: int
    ink_threshold: int
    ink: np.ndarray
    ink_shaped: np.ndarray
    edges: np.ndarray
    region: Region
    barrier: np.ndarray
    background: np.ndarray
    foreground: np.ndarray
    peeled: np.ndarray
    alpha: np.ndarray
    output: np.ndarray

    @property
    def height(self) -> int:
        return self.output.shape[0]

    @property
    def width(self) -> int:
        return self.output.shape[1]

    @classmethod
    def empty(cls, height: int, width: int) -> "KnockoutStages":
        """Stages for a zero-area image; no stage is executed."""
        mask = np.zeros((height, width), dtype=bool)
        byte = np.zeros((height, width), dtype=np.uint8)
        return cls(
            gray=byte, otsu=DEFAULT_OTSU_THRESHOLD, ink_threshold=0,
            ink=mask, ink_shaped=mask.copy(), edges=mask.copy(),
            region=Region(0, 0, width, height), barrier=mask.copy(),
            background=mask.copy(), foreground=mask.copy(), peeled=mask.copy(),
            alpha=byte.copy(), output=np.zeros((height, width, 4), dtype=np.uint8),
        )


class KnockoutPipeline:
    """Run the knockout stages in order over one image at a time."""

    def __init__(self, options: Optional[KnockoutOptions] = None,
                 profiler: Optional[StageProfiler] = None,
                 predicate: Optional[AdmissibilityPredicate] = None):
        """
        Initialize the pipeline.

        Args:
            options: Tunables; defaults when omitted
            profiler: Optional per-stage timing collector
            predicate: Optional extra flood-fill gate, unused by default
        """
        self.options = options or KnockoutOptions()
        self.profiler = profiler
        self.predicate = predicate
        self.options.warn_reserved()

    def _stage(self, name: str):
        if self.profiler is None:
            return nullcontext()
        return self.profiler.measure(name)

    def run(self, image: ImageInput) -> KnockoutResult:
        """Knock out the background of ``image``."""
        stages = self.run_stages(image)
        return KnockoutResult(stages.output, stages.width, stages.height)

    def run_stages(self, image: ImageInput) -> KnockoutStages:
        """Knock out the background and keep every intermediate buffer."""
        rgba = to_rgba(image)
        height, width = rgba.shape[:2]
        if height == 0 or width == 0:
            logger.debug(f"Empty {width}x{height} image, skipping knockout")
            return KnockoutStages.empty(height, width)

        opts = self.options

        with self._stage("luma"):
            gray = to_gray(rgba)

        with self._stage("threshold"):
            otsu = otsu_threshold(gray)
            threshold = ink_threshold(otsu, opts.ink)
            ink = ink_mask(gray, threshold)

        with self._stage("morphology"):
            ink_shaped = open_mask(shape_ink(ink, opts.gap), CLEAN_ITERATIONS)

        with self._stage("edges"):
            edges = edge_mask(gray, opts.edge)

        with self._stage("barrier"):
            walls = build_barrier(ink, ink_shaped, edges, opts.gap)

        with self._stage("flood"):
            background = flood_background(walls.barrier, self.predicate, rgba)
            foreground = ~background

        with self._stage("peel"):
            peeled = peel_halo(foreground, ink_shaped, PEEL_ITERATIONS)

        with self._stage("composite"):
            alpha = feather_alpha(build_alpha(peeled, ink_shaped), opts.feather)
            output = composite(rgba, alpha)

        logger.info(
            f"Knockout {width}x{height}: otsu={otsu} ink<={threshold} "
            f"region={walls.region.as_tuple()} background={int(background.sum())} "
            f"foreground={int(peeled.sum())}"
        )

        return KnockoutStages(
            gray=gray, otsu=otsu, ink_threshold=threshold, ink=ink,
            ink_shaped=ink_shaped, edges=edges, region=walls.region,
            barrier=walls.barrier, background=background, foreground=foreground,
            peeled=peeled, alpha=alpha, output=output,
        )


def knockout(image: ImageInput,
             options: Union[KnockoutOptions, Mapping[str, Any], None] = None,
             **overrides: Any) -> KnockoutResult:
    """Return ``image`` with its background made transparent.

    Args:
        image: Decoded RGBA/RGB/grayscale uint8 array or PIL image
        options: KnockoutOptions, a dict of option values, or None
        **overrides: Individual option values applied on top of ``options``

    Returns:
        KnockoutResult(image, width, height); the output is always the
        same size as the input
    """
    opts = KnockoutOptions.coerce(options, **overrides)
    return KnockoutPipeline(opts).run(image)


def knockout_many(images: Iterable[ImageInput],
                  options: Union[KnockoutOptions, Mapping[str, Any], None] = None,
                  max_workers: Optional[int] = None,
                  profiler: Optional[StageProfiler] = None) -> List[KnockoutResult]:
    """Knock out several independent images on a thread pool, keeping order."""
    opts = KnockoutOptions.coerce(options)
    pipeline = KnockoutPipeline(opts, profiler=profiler)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(pipeline.run, images))
