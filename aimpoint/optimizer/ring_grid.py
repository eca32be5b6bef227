"""Deterministic half-ring sweep with local refinement and random infill."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import ceil, pi
from typing import List, Optional

import numpy as np

from aimpoint.geo import Point

from .base import Progress, SearchOutcome, SearchStrategy
from .cancel import CancelToken
from .constraints import ForwardDisc, Legality
from .evaluator import Evaluator
from .selection import SelectionParameters
from .types import EvaluationPool, OptimizerInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RingGridParameters:
    ring_spacing_m: float = 10.0
    arc_spacing_m: float = 10.0
    min_points_per_ring: int = 16
    top_seeds: int = 12
    refine_radius_fraction: float = 0.03
    min_refine_radius_m: float = 9.0
    refine_steps: int = 7
    random_cover: int = 200

    def __post_init__(self) -> None:
        if self.ring_spacing_m <= 0 or self.arc_spacing_m <= 0:
            raise ValueError("ring and arc spacing must be positive")
        if self.min_points_per_ring < 2:
            raise ValueError("min_points_per_ring must be at least 2")
        if self.refine_steps < 3 or self.refine_steps % 2 == 0:
            raise ValueError("refine_steps must be an odd number >= 3")


def ring_angles(radius: float, arc_spacing_m: float, min_points: int) -> List[float]:
    """Evenly spaced angles across -pi/2..pi/2 for one ring."""

    count = max(min_points, int(ceil(pi * radius / arc_spacing_m)))
    step = pi / (count - 1)
    return [-pi / 2 + i * step for i in range(count)]


class RingGridOptimizer(SearchStrategy):
    name = "RingGrid"

    def __init__(
        self,
        params: Optional[RingGridParameters] = None,
        selection: Optional[SelectionParameters] = None,
    ) -> None:
        super().__init__(selection)
        self.params = params or RingGridParameters()

    def ring_points(self, disc: ForwardDisc) -> List[List[Point]]:
        p = self.params
        rings = []
        k = 1
        while k * p.ring_spacing_m <= disc.radius:
            r = k * p.ring_spacing_m
            angles = ring_angles(r, p.arc_spacing_m, p.min_points_per_ring)
            rings.append([disc.point(r, theta) for theta in angles])
            k += 1
        return rings

    def refinement_points(self, disc: ForwardDisc, seed: Point) -> List[Point]:
        """Square grid centred on ``seed``, the centre itself excluded."""

        p = self.params
        half_width = max(p.refine_radius_fraction * disc.radius, p.min_refine_radius_m)
        half = p.refine_steps // 2
        step = half_width / half
        sx, sy = disc.frame.to_xy(seed)
        points = []
        for i in range(-half, half + 1):
            for j in range(-half, half + 1):
                if i == 0 and j == 0:
                    continue
                points.append(disc.frame.to_point(sx + i * step, sy + j * step))
        return points

    def search(
        self,
        inp: OptimizerInput,
        evaluator: Evaluator,
        cancel: CancelToken,
        progress: Progress,
    ) -> SearchOutcome:
        p = self.params
        budget = inp.budget
        disc = ForwardDisc(inp)
        legality = Legality(inp)
        rng = np.random.default_rng(inp.seed)

        def score(points: List[Point], pool: EvaluationPool) -> None:
            for point in points:
                cancel.raise_if_cancelled()
                if not legality.is_legal(point):
                    continue
                pool.add(point, evaluator.evaluate(point, budget.n_early, budget.ci95_stop))

        rings = self.ring_points(disc)
        ring_pool = EvaluationPool()
        for idx, ring in enumerate(rings):
            cancel.raise_if_cancelled()
            score(ring, ring_pool)
            progress(60.0 * (idx + 1) / len(rings), f"ring {idx + 1}/{len(rings)}")

        refine_pool = EvaluationPool()
        seeds = ring_pool.ranked()[: p.top_seeds]
        for idx, seed in enumerate(seeds):
            cancel.raise_if_cancelled()
            score(self.refinement_points(disc, seed.point), refine_pool)
            progress(60.0 + 25.0 * (idx + 1) / len(seeds), f"refine {idx + 1}/{len(seeds)}")

        cover_pool = EvaluationPool()
        cancel.raise_if_cancelled()
        score(disc.random_points(rng, p.random_cover), cover_pool)
        progress(90.0, "random coverage")

        phases = {
            "rings": len(rings),
            "ring_evaluations": len(ring_pool),
            "refine_seeds": len(seeds),
            "refine_evaluations": len(refine_pool),
            "cover_evaluations": len(cover_pool),
        }
        logger.debug("ring grid phases", extra=phases)
        pool = ring_pool.merge(refine_pool).merge(cover_pool)
        return SearchOutcome(pool=pool, iterations=len(rings), diagnostics={"ring_grid": phases})


__all__ = ["RingGridOptimizer", "RingGridParameters", "ring_angles"]
