"""Knockout stages and the pipeline that chains them."""

from .pipeline import (
    KnockoutOptions,
    KnockoutPipeline,
    KnockoutResult,
    KnockoutStages,
    knockout,
    knockout_many,
)
from .barrier import Region, BarrierResult

__all__ = [
    "KnockoutOptions",
    "KnockoutPipeline",
    "KnockoutResult",
    "KnockoutStages",
    "knockout",
    "knockout_many",
    "Region",
    "BarrierResult",
]
