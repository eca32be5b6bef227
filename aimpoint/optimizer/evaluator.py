"""Monte Carlo aim-point evaluator.

Each call draws landing points from the dispersion ellipse around the aim,
classifies and prices every landing via the ES model, and stops early once
the 95% confidence half-width is tight enough.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from aimpoint.es.curves import ExpectedStrokesModel
from aimpoint.geo import Point, bearing_rad, haversine_m, m_to_yards
from aimpoint.playslike import PlaysLikeAdjuster
from aimpoint.raster.mask import CLASS_PRICING, ConditionClass
from aimpoint.sampling.dispersion import (
    FIRST_INDEX,
    DispersionSampler,
    ellipse_axes,
    unit_disk_table,
)
from aimpoint.sampling.stats import ProgressiveStats

from .cancel import CancelToken
from .types import ElevationLookup, EvaluationResult, OptimizerInput

logger = logging.getLogger(__name__)

WARMUP_SAMPLES = 30

_PRICING_BY_CODE = tuple(CLASS_PRICING[cls] for cls in ConditionClass)
_CLASSES = tuple(ConditionClass)


class Evaluator:
    """Scores aim points for one optimization run.

    Owns the run's ES model, the precomputed Halton disk table and the
    plays-like adjuster, so nothing is shared with concurrent runs.
    """

    def __init__(
        self,
        inp: OptimizerInput,
        *,
        model: Optional[ExpectedStrokesModel] = None,
        cancel: Optional[CancelToken] = None,
        elevation: Optional[ElevationLookup] = None,
        warmup: int = WARMUP_SAMPLES,
    ) -> None:
        self.inp = inp
        self.model = model if model is not None else ExpectedStrokesModel()
        self.cancel = cancel
        self.warmup = warmup
        self.plays_like = PlaysLikeAdjuster(elevation, inp.pin) if elevation else None
        self.evaluations = 0
        self.samples_drawn = 0
        self._disk: List[Tuple[float, float]] = []
        self._ensure_disk(max(inp.budget.n_early, inp.budget.n_final))

    def _ensure_disk(self, count: int) -> None:
        if count > len(self._disk):
            self._disk = [tuple(row) for row in unit_disk_table(count, FIRST_INDEX).tolist()]

    def evaluate(self, aim: Point, sample_cap: int, ci_stop: float) -> EvaluationResult:
        """Mean ES at ``aim`` over at most ``sample_cap`` dispersion samples.

        ``ci_stop <= 0`` disables early stopping. Raises
        ``OptimizationCancelled`` if the run's token fires mid-evaluation.
        """
        inp = self.inp
        start = inp.start
        pin = inp.pin
        mask = inp.mask
        cost = self.model.cost
        cancel = self.cancel

        shot_m = haversine_m(start, aim)
        semi_major, semi_minor = ellipse_axes(
            shot_m, inp.skill.offline_deg, inp.skill.dist_pct
        )
        sampler = DispersionSampler(aim, semi_major, semi_minor, bearing_rad(start, aim))
        factor = self.plays_like.factor_for(aim) if self.plays_like else 1.0

        self._ensure_disk(sample_cap)
        disk = self._disk
        stats = ProgressiveStats()
        counts = [0] * len(_CLASSES)
        warmup = self.warmup

        for i in range(sample_cap):
            if cancel is not None:
                cancel.raise_if_cancelled()
            dx, dy = disk[i]
            landing = sampler.from_disk(dx, dy)
            cls = mask.classify(landing)
            condition, penalty = _PRICING_BY_CODE[cls]
            remaining_yds = m_to_yards(haversine_m(landing, pin)) * factor
            stats.add(cost(remaining_yds, condition) + penalty)
            counts[cls] += 1
            if ci_stop > 0 and stats.count > warmup and stats.ci95() <= ci_stop:
                break

        self.evaluations += 1
        self.samples_drawn += stats.count
        return EvaluationResult(
            mean=stats.mean(),
            ci95=stats.ci95(),
            samples=stats.count,
            counts_by_class={cls: counts[cls] for cls in _CLASSES if counts[cls]},
        )

    def diagnostics(self) -> dict:
        hits, misses = self.model.stats()
        payload = {
            "evaluations": self.evaluations,
            "samples": self.samples_drawn,
            "es_cache_hits": hits,
            "es_cache_misses": misses,
        }
        if self.plays_like is not None:
            payload["plays_like"] = {
                "enabled": self.plays_like.enabled,
                "lookup_failures": self.plays_like.failures,
            }
        return payload


def evaluate(
    aim_point: Point,
    inp: OptimizerInput,
    sample_cap: int,
    ci_stop: float,
    cancel: Optional[CancelToken] = None,
    *,
    model: Optional[ExpectedStrokesModel] = None,
    elevation: Optional[ElevationLookup] = None,
) -> EvaluationResult:
    """One-off evaluation with a fresh evaluator."""

    evaluator = Evaluator(inp, model=model, cancel=cancel, elevation=elevation)
    return evaluator.evaluate(aim_point, sample_cap, ci_stop)


__all__ = ["Evaluator", "WARMUP_SAMPLES", "evaluate"]
