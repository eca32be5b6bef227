"""Exhaustive square-grid sweep of the forward half-disc."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from aimpoint.geo import Point

from .base import Progress, SearchOutcome, SearchStrategy
from .cancel import CancelToken
from .constraints import ForwardDisc, Legality
from .evaluator import Evaluator
from .selection import SelectionParameters
from .types import EvaluationPool, OptimizerInput


@dataclass(frozen=True)
class FullGridParameters:
    spacing_m: float = 5.0

    def __post_init__(self) -> None:
        if self.spacing_m <= 0:
            raise ValueError("spacing_m must be positive")


class FullGridOptimizer(SearchStrategy):
    name = "FullGrid"

    def __init__(
        self,
        params: Optional[FullGridParameters] = None,
        selection: Optional[SelectionParameters] = None,
    ) -> None:
        super().__init__(selection)
        self.params = params or FullGridParameters()

    def grid_rows(self, disc: ForwardDisc) -> List[List[Point]]:
        spacing = self.params.spacing_m
        n = int(disc.radius // spacing)
        rows = []
        for j in range(-n, n + 1):
            row = []
            for i in range(-n, n + 1):
                x, y = i * spacing, j * spacing
                if disc.contains_xy(x, y):
                    row.append(disc.frame.to_point(x, y))
            if row:
                rows.append(row)
        return rows

    def search(
        self,
        inp: OptimizerInput,
        evaluator: Evaluator,
        cancel: CancelToken,
        progress: Progress,
    ) -> SearchOutcome:
        budget = inp.budget
        disc = ForwardDisc(inp)
        legality = Legality(inp)
        pool = EvaluationPool()
        rows = self.grid_rows(disc)
        nodes = 0
        for idx, row in enumerate(rows):
            for point in row:
                cancel.raise_if_cancelled()
                nodes += 1
                if legality.is_legal(point):
                    pool.add(point, evaluator.evaluate(point, budget.n_early, budget.ci95_stop))
            progress(90.0 * (idx + 1) / len(rows), f"row {idx + 1}/{len(rows)}")
        return SearchOutcome(
            pool=pool,
            iterations=len(rows),
            diagnostics={"full_grid": {"nodes": nodes, "evaluations": len(pool)}},
        )


__all__ = ["FullGridOptimizer", "FullGridParameters"]
