"""ink-knockout - Cut drawn subjects out of their background."""

__version__ = "0.1.0"
__author__ = "ink-knockout Team"
__description__ = "Classical background knockout for line art and doodles"

from .core.pipeline import (
    KnockoutOptions,
    KnockoutPipeline,
    KnockoutResult,
    KnockoutStages,
    knockout,
    knockout_many,
)
from .recolor import LayerIndex, RenderNode, tag_layers
from .utils.image import load_image, save_image

__all__ = [
    "KnockoutOptions",
    "KnockoutPipeline",
    "KnockoutResult",
    "KnockoutStages",
    "knockout",
    "knockout_many",
    "LayerIndex",
    "RenderNode",
    "tag_layers",
    "load_image",
    "save_image",
]
