"""Composition of budgeted llms outputs."""

from .composer import (
    AdaptiveComposer,
    BatchCompositionResult,
    BatchError,
    CompositionError,
    CompositionStats,
)
from .packing import PackingCandidate, PackingUnit, PriorityFirstFit

__all__ = [
    "AdaptiveComposer",
    "BatchCompositionResult",
    "BatchError",
    "CompositionError",
    "CompositionStats",
    "PackingCandidate",
    "PackingUnit",
    "PriorityFirstFit",
]
