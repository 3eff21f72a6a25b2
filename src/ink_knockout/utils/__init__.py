"""Utility modules for ink-knockout."""

from .image import (
    load_image,
    save_image,
    save_mask,
    to_rgba,
    ImageLoader,
    validate_image_dimensions,
)
from .math import round_half_up, clamp_value, to_byte
from .profiler import StageProfiler

__all__ = [
    "load_image",
    "save_image",
    "save_mask",
    "to_rgba",
    "ImageLoader",
    "validate_image_dimensions",
    "round_half_up",
    "clamp_value",
    "to_byte",
    "StageProfiler",
]
