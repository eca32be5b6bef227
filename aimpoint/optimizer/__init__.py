"""Aim-point search strategies.

Strategies are a closed set keyed by :class:`Strategy`; callers resolve one
with :func:`get_optimizer` and call ``run(inp, cancel)``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Type

from .base import SearchStrategy
from .cancel import CancelToken, OptimizationCancelled
from .cem import CEMOptimizer, CEMParameters
from .full_grid import FullGridOptimizer, FullGridParameters
from .ring_grid import RingGridOptimizer, RingGridParameters
from .selection import SelectionParameters
from .types import (
    Candidate,
    Constraints,
    EvaluationBudget,
    EvaluationResult,
    OptimizerInput,
    OptimizerResult,
    SKILL_PRESETS,
    SkillProfile,
)


class Strategy(str, Enum):
    CEM = "CEM"
    RING_GRID = "RingGrid"
    FULL_GRID = "FullGrid"


OPTIMIZERS: Dict[Strategy, Type[SearchStrategy]] = {
    Strategy.CEM: CEMOptimizer,
    Strategy.RING_GRID: RingGridOptimizer,
    Strategy.FULL_GRID: FullGridOptimizer,
}


def get_optimizer(
    strategy: Strategy | str, selection: SelectionParameters | None = None
) -> SearchStrategy:
    """Instantiate the optimizer registered for ``strategy``."""

    try:
        key = Strategy(strategy)
    except ValueError as exc:
        raise ValueError(f"unknown optimizer strategy: {strategy}") from exc
    return OPTIMIZERS[key](selection=selection)


__all__ = [
    "CEMOptimizer",
    "CEMParameters",
    "CancelToken",
    "Candidate",
    "Constraints",
    "EvaluationBudget",
    "EvaluationResult",
    "FullGridOptimizer",
    "FullGridParameters",
    "OPTIMIZERS",
    "OptimizationCancelled",
    "OptimizerInput",
    "OptimizerResult",
    "RingGridOptimizer",
    "RingGridParameters",
    "SKILL_PRESETS",
    "SearchStrategy",
    "SelectionParameters",
    "SkillProfile",
    "Strategy",
    "get_optimizer",
]
