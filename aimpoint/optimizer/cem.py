"""Cross-entropy (elite-shrinking) aim search.

Works in a local east/north frame around the start. Each iteration draws a
population from a 2-D Gaussian, scores it at the early sample cap and refits
the Gaussian to the elite fraction. Every scored point is kept for the final
selection, not just the last mean.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import ceil, cos, hypot, pi, sin, sqrt
from typing import List, Optional, Tuple

import numpy as np

from aimpoint.geo import LocalFrame, Point

from .base import Progress, SearchOutcome, SearchStrategy
from .cancel import CancelToken
from .constraints import Legality
from .evaluator import Evaluator
from .selection import SelectionParameters
from .types import EvaluationPool, OptimizerInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CEMParameters:
    max_iterations: int = 8
    population_size: int = 50
    elite_ratio: float = 0.2
    # per-axis variance floor in m^2; the search stops once every axis is
    # within collapse_factor of it
    variance_floor: float = 0.25
    collapse_factor: float = 10.0
    convergence_threshold: float = 1e-4
    stagnation_limit: int = 2
    # initial mean sits this fraction of the way to the pin
    initial_mean_fraction: float = 0.65
    # pulled back to this fraction of the radius if it falls outside the disk
    initial_mean_clip: float = 0.8
    initial_sigma_fraction: float = 0.4
    rejection_attempts_factor: int = 5
    uniform_fallback_draws: int = 10

    def __post_init__(self) -> None:
        if self.max_iterations <= 0 or self.population_size <= 0:
            raise ValueError("max_iterations and population_size must be positive")
        if not 0 < self.elite_ratio <= 1:
            raise ValueError("elite_ratio must be in (0, 1]")
        if self.variance_floor <= 0:
            raise ValueError("variance_floor must be positive")


class CEMOptimizer(SearchStrategy):
    name = "CEM"

    def __init__(
        self,
        params: Optional[CEMParameters] = None,
        selection: Optional[SelectionParameters] = None,
    ) -> None:
        super().__init__(selection)
        self.params = params or CEMParameters()

    def initial_distribution(
        self, inp: OptimizerInput, frame: LocalFrame
    ) -> Tuple[np.ndarray, np.ndarray]:
        p = self.params
        radius = inp.max_distance_m
        px, py = frame.to_xy(inp.pin)
        mean = np.array([px, py], dtype=float) * p.initial_mean_fraction
        norm = hypot(mean[0], mean[1])
        if norm > radius:
            mean *= p.initial_mean_clip * radius / norm
        sigma = p.initial_sigma_fraction * radius
        cov = np.eye(2) * max(sigma * sigma, p.variance_floor)
        return mean, cov

    def propose(
        self,
        rng: np.random.Generator,
        mean: np.ndarray,
        cov: np.ndarray,
        frame: LocalFrame,
        legality: Legality,
        radius: float,
    ) -> List[Point]:
        """Rejection-sample a legal population, topping up with uniform disk draws."""

        p = self.params
        target = p.population_size
        max_attempts = p.rejection_attempts_factor * target
        proposals: List[Point] = []
        attempts = 0
        while len(proposals) < target and attempts < max_attempts:
            batch = rng.multivariate_normal(mean, cov, size=target, method="eigh")
            for x, y in batch.tolist():
                attempts += 1
                if hypot(x, y) <= radius:
                    point = frame.to_point(x, y)
                    if legality.is_legal(point):
                        proposals.append(point)
                        if len(proposals) >= target:
                            break
                if attempts >= max_attempts:
                    break

        shortfall = min(target - len(proposals), p.uniform_fallback_draws)
        if shortfall > 0:
            u = rng.random(shortfall)
            v = rng.random(shortfall)
            for uu, vv in zip(u.tolist(), v.tolist()):
                r = radius * sqrt(uu)
                theta = 2.0 * pi * vv
                point = frame.to_point(r * sin(theta), r * cos(theta))
                if legality.is_legal(point):
                    proposals.append(point)
        return proposals

    def search(
        self,
        inp: OptimizerInput,
        evaluator: Evaluator,
        cancel: CancelToken,
        progress: Progress,
    ) -> SearchOutcome:
        p = self.params
        rng = np.random.default_rng(inp.seed)
        frame = LocalFrame(inp.start)
        legality = Legality(inp)
        radius = inp.max_distance_m
        budget = inp.budget

        mean, cov = self.initial_distribution(inp, frame)
        pool = EvaluationPool()
        best_es = float("inf")
        stagnation = 0
        iterations = 0
        history = []
        stop_reason = "max_iterations"

        for it in range(p.max_iterations):
            cancel.raise_if_cancelled()
            population = self.propose(rng, mean, cov, frame, legality, radius)
            if not population:
                stop_reason = "empty_population"
                break

            scored = []
            for point in population:
                result = evaluator.evaluate(point, budget.n_early, budget.ci95_stop)
                pool.add(point, result)
                scored.append((result.mean, frame.to_xy(point)))
            iterations += 1

            scored.sort(key=lambda item: item[0])
            n_elite = max(2, int(ceil(len(scored) * p.elite_ratio)))
            elites = np.array([xy for _, xy in scored[:n_elite]], dtype=float)
            mean = elites.mean(axis=0)
            if len(elites) > 1:
                cov = np.cov(elites, rowvar=False, bias=True)
            else:
                cov = np.zeros((2, 2))
            cov[0, 0] = max(cov[0, 0], p.variance_floor)
            cov[1, 1] = max(cov[1, 1], p.variance_floor)

            iteration_best = scored[0][0]
            improvement = best_es - iteration_best
            if improvement < p.convergence_threshold:
                stagnation += 1
            else:
                stagnation = 0
            best_es = min(best_es, iteration_best)

            history.append(
                {
                    "iteration": it + 1,
                    "population": len(population),
                    "best_es": round(iteration_best, 4),
                    "improvement": None if improvement == float("inf") else round(improvement, 6),
                    "mean_distance_m": round(float(hypot(mean[0], mean[1])), 2),
                }
            )
            logger.debug(
                "cem iteration",
                extra={"iteration": it + 1, "best_es": iteration_best, "stagnation": stagnation},
            )
            progress(90.0 * (it + 1) / p.max_iterations, f"iteration {it + 1}")

            if stagnation >= p.stagnation_limit:
                stop_reason = "stagnation"
                break
            if max(cov[0, 0], cov[1, 1]) < p.variance_floor * p.collapse_factor:
                stop_reason = "collapsed"
                break

        return SearchOutcome(
            pool=pool,
            iterations=iterations,
            diagnostics={"cem": {"stop_reason": stop_reason, "iterations": history}},
        )


__all__ = ["CEMOptimizer", "CEMParameters"]
