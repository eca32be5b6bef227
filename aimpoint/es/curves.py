"""Expected strokes regression curves per pricing condition.

Distances are yards. Each condition carries a 6th-degree regression fitted to
tour baselines, valid between a lead-in distance and a ceiling. The regression
is sampled onto a dense table and made monotone so small wiggles of the
polynomial never reward a longer remaining distance. Beyond the ceiling the
curve continues linearly from the last table value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

MIN_STROKES = 1.0
TABLE_STEP_YDS = 0.5
DISTANCE_RESOLUTION_YDS = 0.1
DEFAULT_CACHE_SIZE = 50_000


class PricingCondition(str, Enum):
    GREEN = "green"
    FAIRWAY = "fairway"
    ROUGH = "rough"
    SAND = "sand"
    RECOVERY = "recovery"
    WATER = "water"


_ALIASES: Dict[str, PricingCondition] = {
    "bunker": PricingCondition.SAND,
    "tee": PricingCondition.FAIRWAY,
}


@dataclass(frozen=True)
class CurveSpec:
    """Regression coefficients (ascending powers) and validity window."""

    coefficients: Tuple[float, ...]
    start_yds: float
    ceiling_yds: float
    intercept: float
    tail_slope: Optional[float] = None
    tail_to: Optional[Tuple[float, float]] = None


CURVE_SPECS: Dict[PricingCondition, CurveSpec] = {
    PricingCondition.FAIRWAY: CurveSpec(
        coefficients=(
            1.87505684,
            3.44179367e-02,
            -5.63306650e-04,
            4.70425536e-06,
            -2.02041273e-08,
            4.38015739e-11,
            -3.78163505e-14,
        ),
        start_yds=7.43,
        ceiling_yds=348.9,
        intercept=1.0,
        tail_to=(600.0, 5.25),
    ),
    PricingCondition.ROUGH: CurveSpec(
        coefficients=(
            2.01325284,
            3.73834464e-02,
            -6.08542541e-04,
            5.01193038e-06,
            -2.08847962e-08,
            4.32228049e-11,
            -3.53899274e-14,
        ),
        start_yds=7.76,
        ceiling_yds=348.9,
        intercept=1.5,
        tail_to=(600.0, 5.4),
    ),
    PricingCondition.SAND: CurveSpec(
        coefficients=(
            2.14601649,
            2.61044155e-02,
            -2.69537153e-04,
            1.48010114e-06,
            -3.99813977e-09,
            5.24740763e-12,
            -2.67577455e-15,
        ),
        start_yds=7.96,
        ceiling_yds=600.0,
        intercept=2.0,
        tail_slope=0.004,
    ),
    PricingCondition.RECOVERY: CurveSpec(
        coefficients=(
            1.34932958,
            6.39685426e-02,
            -6.38754410e-04,
            3.09148159e-06,
            -7.60396073e-09,
            9.28546297e-12,
            -4.46945896e-15,
        ),
        start_yds=100.0,
        ceiling_yds=600.0,
        intercept=3.0,
        tail_slope=0.004,
    ),
}

GREEN_SPEC = CurveSpec(
    coefficients=(
        8.22701978e-01,
        3.48808959e-01,
        -4.45111801e-02,
        3.05771434e-03,
        -1.12243654e-04,
        2.09685358e-06,
        -1.57305673e-08,
    ),
    start_yds=0.333,
    ceiling_yds=33.39,
    intercept=1.0,
)
# Putts longer than the ceiling blend linearly into the fairway curve here.
GREEN_HANDOFF_YDS = 100.0


class _Curve:
    """Monotone lead-in / table / linear-tail evaluation of one regression."""

    __slots__ = ("start", "ceiling", "intercept", "xs", "ys", "tail_slope")

    def __init__(self, spec: CurveSpec, tail_slope: Optional[float] = None) -> None:
        if spec.ceiling_yds <= spec.start_yds:
            raise ValueError("curve ceiling must exceed its start distance")

        xs = np.arange(spec.start_yds, spec.ceiling_yds, TABLE_STEP_YDS)
        xs = np.append(xs, spec.ceiling_yds)
        raw = np.polynomial.polynomial.polyval(xs, np.asarray(spec.coefficients))
        ys = np.maximum.accumulate(np.maximum(raw, max(MIN_STROKES, spec.intercept)))
        xs.flags.writeable = False
        ys.flags.writeable = False

        self.start = spec.start_yds
        self.ceiling = spec.ceiling_yds
        self.intercept = spec.intercept
        self.xs = xs
        self.ys = ys

        if tail_slope is None:
            tail_slope = spec.tail_slope
        if tail_slope is None and spec.tail_to is not None:
            target_x, target_y = spec.tail_to
            tail_slope = (target_y - float(ys[-1])) / (target_x - spec.ceiling_yds)
        if tail_slope is None or tail_slope <= 0:
            raise ValueError("curve tail slope must be positive")
        self.tail_slope = tail_slope

    @property
    def ceiling_value(self) -> float:
        return float(self.ys[-1])

    def __call__(self, distance: float) -> float:
        if distance <= 0:
            return MIN_STROKES
        if distance < self.start:
            first = float(self.ys[0])
            return self.intercept + (first - self.intercept) * distance / self.start
        if distance <= self.ceiling:
            return float(np.interp(distance, self.xs, self.ys))
        return self.ceiling_value + self.tail_slope * (distance - self.ceiling)


def _build_curves() -> Dict[PricingCondition, _Curve]:
    curves = {cond: _Curve(spec) for cond, spec in CURVE_SPECS.items()}
    probe = _Curve(GREEN_SPEC, tail_slope=1.0)
    handoff = curves[PricingCondition.FAIRWAY](GREEN_HANDOFF_YDS)
    slope = (handoff - probe.ceiling_value) / (GREEN_HANDOFF_YDS - GREEN_SPEC.ceiling_yds)
    curves[PricingCondition.GREEN] = _Curve(GREEN_SPEC, tail_slope=slope)
    return curves


_CURVES = _build_curves()


def normalise_condition(condition: PricingCondition | str | None) -> PricingCondition:
    """Map free-form lie names onto a pricing condition; unknown lies price as rough."""

    if isinstance(condition, PricingCondition):
        return condition
    value = (condition or "").strip().lower()
    if not value:
        return PricingCondition.ROUGH
    if value in _ALIASES:
        return _ALIASES[value]
    try:
        return PricingCondition(value)
    except ValueError:
        return PricingCondition.ROUGH


def quantize_yards(distance_yards: float) -> float:
    d = max(0.0, float(distance_yards))
    return round(d / DISTANCE_RESOLUTION_YDS) * DISTANCE_RESOLUTION_YDS


def _evaluate(distance_yards: float, condition: PricingCondition) -> float:
    if condition is PricingCondition.WATER:
        return _evaluate(distance_yards, PricingCondition.ROUGH) + 1.0
    return max(MIN_STROKES, _CURVES[condition](distance_yards))


def expected_strokes(distance_yards: float, condition: PricingCondition | str) -> float:
    """Uncached expected strokes for ``distance_yards`` from ``condition``."""

    return _evaluate(quantize_yards(distance_yards), normalise_condition(condition))


def curve_window(condition: PricingCondition | str) -> Tuple[float, float]:
    """Return the (start, ceiling) yards of the regression segment."""

    cond = normalise_condition(condition)
    if cond is PricingCondition.WATER:
        cond = PricingCondition.ROUGH
    curve = _CURVES[cond]
    return curve.start, curve.ceiling


class ExpectedStrokesModel:
    """Expected strokes with a per-instance memo keyed by (quantized yards, condition).

    Instances are cheap; each optimization run owns one so concurrent runs
    never share a cache. ``cache_size=0`` disables memoization.
    """

    def __init__(self, cache_size: int = DEFAULT_CACHE_SIZE) -> None:
        self._cache_size = max(0, int(cache_size))
        self._cache: Dict[Tuple[float, PricingCondition], float] = {}
        self.hit_count = 0
        self.miss_count = 0

    @property
    def caching(self) -> bool:
        return self._cache_size > 0

    def cost(self, distance_yards: float, condition: PricingCondition | str) -> float:
        cond = normalise_condition(condition)
        d = quantize_yards(distance_yards)
        if not self._cache_size:
            return _evaluate(d, cond)

        key = (d, cond)
        cached = self._cache.get(key)
        if cached is not None:
            self.hit_count += 1
            return cached

        self.miss_count += 1
        value = _evaluate(d, cond)
        if len(self._cache) >= self._cache_size:
            self._cache.pop(next(iter(self._cache)))
        self._cache[key] = value
        return value

    def costs(
        self, distances_yards: Sequence[float], condition: PricingCondition | str
    ) -> list[float]:
        return [self.cost(d, condition) for d in distances_yards]

    def stats(self) -> tuple[int, int]:
        return self.hit_count, self.miss_count

    def clear_cache(self) -> None:
        self._cache.clear()
        self.hit_count = 0
        self.miss_count = 0


__all__ = [
    "CURVE_SPECS",
    "DISTANCE_RESOLUTION_YDS",
    "ExpectedStrokesModel",
    "GREEN_SPEC",
    "MIN_STROKES",
    "PricingCondition",
    "curve_window",
    "expected_strokes",
    "normalise_condition",
    "quantize_yards",
]
