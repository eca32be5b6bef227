"""Value objects exchanged by the aim-point optimizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional

from aimpoint.geo import Point
from aimpoint.raster.mask import ConditionClass, RasterMask

ProgressCallback = Callable[[float, Optional[str]], None]
ElevationLookup = Callable[[Point], float]


@dataclass(frozen=True, slots=True)
class SkillProfile:
    """Dispersion half-angle (degrees) and distance error (percent of carry)."""

    offline_deg: float
    dist_pct: float

    def __post_init__(self) -> None:
        if not (self.offline_deg > 0 and self.dist_pct > 0):
            raise ValueError("skill offline_deg and dist_pct must be positive")

    @classmethod
    def from_preset(cls, name: str) -> "SkillProfile":
        key = name.strip().lower()
        for preset_name, profile in SKILL_PRESETS.items():
            if preset_name.lower() == key:
                return profile
        raise ValueError(f"unknown skill preset: {name}")


SKILL_PRESETS: Dict[str, SkillProfile] = {
    "Robot": SkillProfile(2.5, 2.5),
    "Pro": SkillProfile(5.9, 6.75),
    "Elite Am": SkillProfile(6.45, 6.95),
    "Scratch": SkillProfile(6.9, 7.3),
    "Good Golfer": SkillProfile(7.45, 8.0),
    "Average Golfer": SkillProfile(8.2, 8.75),
    "Bad Golfer": SkillProfile(9.4, 10.0),
    "Terrible Golfer": SkillProfile(12.5, 14.0),
}


@dataclass(frozen=True, slots=True)
class EvaluationBudget:
    n_early: int = 200
    n_final: int = 600
    ci95_stop: float = 0.03

    def __post_init__(self) -> None:
        if self.n_early <= 0 or self.n_final <= 0:
            raise ValueError("sample caps must be positive")
        if self.ci95_stop < 0:
            raise ValueError("ci95_stop must be non-negative")


@dataclass(frozen=True, slots=True)
class Constraints:
    disallow_farther_than_pin: bool = False
    min_separation_m: float = 2.74

    def __post_init__(self) -> None:
        if self.min_separation_m < 0:
            raise ValueError("min_separation_m must be non-negative")


@dataclass(frozen=True, slots=True)
class OptimizerInput:
    start: Point
    pin: Point
    max_distance_m: float
    skill: SkillProfile
    mask: RasterMask
    budget: EvaluationBudget = field(default_factory=EvaluationBudget)
    constraints: Constraints = field(default_factory=Constraints)
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.max_distance_m > 0:
            raise ValueError("max_distance_m must be positive")


def landing_breakdown(counts: Mapping[ConditionClass, int]) -> Dict[str, int]:
    """Class-name keyed sample counts, zero entries dropped."""

    return {ConditionClass(cls).name.lower(): int(n) for cls, n in counts.items() if n}


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    mean: float
    ci95: float
    samples: int
    counts_by_class: Mapping[ConditionClass, int] = field(default_factory=dict)

    def landing_breakdown(self) -> Dict[str, int]:
        return landing_breakdown(self.counts_by_class)


@dataclass(frozen=True, slots=True)
class EvaluatedPoint:
    point: Point
    es: float
    ci95: float = 0.0


class EvaluationPool:
    """Every (point, ES) pair a strategy evaluated, in evaluation order."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[EvaluatedPoint] = ()) -> None:
        self._items: List[EvaluatedPoint] = list(items)

    def add(self, point: Point, result: EvaluationResult) -> EvaluatedPoint:
        item = EvaluatedPoint(point, result.mean, result.ci95)
        self._items.append(item)
        return item

    def merge(self, other: "EvaluationPool") -> "EvaluationPool":
        return EvaluationPool([*self._items, *other._items])

    def ranked(self) -> List[EvaluatedPoint]:
        # stable sort keeps evaluation order between equal scores
        return sorted(self._items, key=lambda item: item.es)

    def best(self) -> Optional[EvaluatedPoint]:
        return min(self._items, key=lambda item: item.es, default=None)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EvaluatedPoint]:
        return iter(self._items)


@dataclass(frozen=True, slots=True)
class Candidate:
    point: Point
    es: float
    es_ci95: float
    samples: int = 0
    counts_by_class: Mapping[ConditionClass, int] = field(default_factory=dict)

    def landing_breakdown(self) -> Dict[str, int]:
        return landing_breakdown(self.counts_by_class)

    @property
    def lon(self) -> float:
        return self.point.lon

    @property
    def lat(self) -> float:
        return self.point.lat


@dataclass(frozen=True, slots=True)
class OptimizerResult:
    candidates: List[Candidate]
    iterations: int = 0
    eval_count: int = 0
    strategy: str = ""
    diagnostics: Dict[str, Any] = field(default_factory=dict)

    @property
    def best(self) -> Optional[Candidate]:
        return self.candidates[0] if self.candidates else None


__all__ = [
    "Candidate",
    "Constraints",
    "ElevationLookup",
    "EvaluatedPoint",
    "EvaluationBudget",
    "EvaluationPool",
    "EvaluationResult",
    "OptimizerInput",
    "OptimizerResult",
    "ProgressCallback",
    "SKILL_PRESETS",
    "SkillProfile",
    "landing_breakdown",
]
