"""Final candidate selection with spatial de-duplication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from aimpoint.geo import haversine_m

from .cancel import CancelToken, check
from .evaluator import Evaluator
from .types import Candidate, EvaluatedPoint, EvaluationPool, OptimizerInput

DEFAULT_MAX_CANDIDATES = 8


@dataclass(frozen=True)
class SelectionParameters:
    max_candidates: int = DEFAULT_MAX_CANDIDATES

    def __post_init__(self) -> None:
        if self.max_candidates <= 0:
            raise ValueError("max_candidates must be positive")


def spread_out(
    ranked: List[EvaluatedPoint], min_separation_m: float, limit: int
) -> List[EvaluatedPoint]:
    """Greedy pick in rank order, skipping points too close to an accepted one.

    The best point is always accepted, so a non-empty pool never yields an
    empty pick.
    """
    accepted: List[EvaluatedPoint] = []
    for item in ranked:
        if len(accepted) >= limit:
            break
        if any(haversine_m(item.point, a.point) < min_separation_m for a in accepted):
            continue
        accepted.append(item)
    return accepted


def select(
    pool: EvaluationPool,
    inp: OptimizerInput,
    evaluator: Evaluator,
    params: Optional[SelectionParameters] = None,
    cancel: Optional[CancelToken] = None,
) -> List[Candidate]:
    """Re-score the spread-out top of ``pool`` at the final sample cap."""

    params = params or SelectionParameters()
    picked = spread_out(pool.ranked(), inp.constraints.min_separation_m, params.max_candidates)

    candidates: List[Candidate] = []
    for item in picked:
        check(cancel)
        result = evaluator.evaluate(item.point, inp.budget.n_final, 0.0)
        candidates.append(
            Candidate(
                point=item.point,
                es=result.mean,
                es_ci95=result.ci95,
                samples=result.samples,
                counts_by_class=result.counts_by_class,
            )
        )
    candidates.sort(key=lambda c: c.es)
    return candidates


__all__ = ["DEFAULT_MAX_CANDIDATES", "SelectionParameters", "select", "spread_out"]
