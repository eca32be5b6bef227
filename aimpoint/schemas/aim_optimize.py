"""FastAPI schemas for the aim-point optimization endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from aimpoint.config import _Settings
from aimpoint.geo import Point
from aimpoint.optimizer import (
    Constraints,
    EvaluationBudget,
    OptimizerInput,
    OptimizerResult,
    SkillProfile,
    Strategy,
)
from aimpoint.raster.mask import BBox, RasterMask


class PointModel(BaseModel):
    lon: float = Field(ge=-180, le=180, validation_alias=AliasChoices("lon", "lng"))
    lat: float = Field(ge=-90, le=90)

    model_config = ConfigDict(populate_by_name=True)


class SkillModel(BaseModel):
    offline_deg: Optional[float] = Field(default=None, gt=0, alias="offlineDeg")
    dist_pct: Optional[float] = Field(default=None, gt=0, alias="distPct")
    preset: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _require_values_or_preset(self) -> "SkillModel":
        if self.preset is None and (self.offline_deg is None or self.dist_pct is None):
            raise ValueError("skill needs offlineDeg and distPct, or a preset")
        return self

    def to_domain(self) -> SkillProfile:
        if self.offline_deg is not None and self.dist_pct is not None:
            return SkillProfile(self.offline_deg, self.dist_pct)
        return SkillProfile.from_preset(self.preset or "")


class BBoxModel(BaseModel):
    west: float
    south: float
    east: float
    north: float

    @model_validator(mode="before")
    @classmethod
    def _accept_sequence(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 4:
                raise ValueError("bbox list must be [west, south, east, north]")
            west, south, east, north = data
            return {"west": west, "south": south, "east": east, "north": north}
        return data


class MaskModel(BaseModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    bbox: BBoxModel
    classes: Union[str, List[int]]

    def to_domain(self) -> RasterMask:
        bbox = BBox(self.bbox.west, self.bbox.south, self.bbox.east, self.bbox.north)
        if isinstance(self.classes, str):
            return RasterMask.from_base64(self.width, self.height, bbox, self.classes)
        if any(value < 0 or value > 255 for value in self.classes):
            raise ValueError("mask classes must be byte values")
        return RasterMask(self.width, self.height, bbox, bytes(self.classes))


class EvalModel(BaseModel):
    n_early: Optional[int] = Field(default=None, gt=0, alias="nEarly")
    n_final: Optional[int] = Field(default=None, gt=0, alias="nFinal")
    ci95_stop: Optional[float] = Field(default=None, ge=0, alias="ci95Stop")

    model_config = ConfigDict(populate_by_name=True)


class ConstraintsModel(BaseModel):
    disallow_farther_than_pin: bool = Field(default=False, alias="disallowFartherThanPin")
    min_separation_m: Optional[float] = Field(default=None, ge=0, alias="minSeparationMeters")

    model_config = ConfigDict(populate_by_name=True)


class AimOptimizeRequest(BaseModel):
    start: PointModel
    pin: PointModel
    max_distance_m: float = Field(gt=0, alias="maxDistanceMeters")
    skill: SkillModel
    mask: MaskModel
    eval: Optional[EvalModel] = None
    constraints: Optional[ConstraintsModel] = None
    strategy: Optional[Strategy] = None
    seed: Optional[int] = None
    plays_like: bool = Field(default=False, alias="playsLike")

    model_config = ConfigDict(populate_by_name=True)


class CandidateModel(BaseModel):
    lon: float
    lat: float
    es: float
    es_ci95: float = Field(alias="esCi95")
    samples: int
    counts_by_class: Dict[str, int] = Field(default_factory=dict, alias="countsByClass")

    model_config = ConfigDict(populate_by_name=True)


class AimOptimizeResponse(BaseModel):
    candidates: List[CandidateModel]
    strategy: str
    iterations: int
    eval_count: int = Field(alias="evalCount")
    diagnostics: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class ErrorEnvelope(BaseModel):
    error_code: str
    message: str
    details: dict | None = None


def to_domain(payload: AimOptimizeRequest, settings: _Settings) -> OptimizerInput:
    """Build an optimizer input, filling omitted budgets from settings."""

    ev = payload.eval or EvalModel()
    cons = payload.constraints or ConstraintsModel()
    budget = EvaluationBudget(
        n_early=ev.n_early if ev.n_early is not None else settings.n_early,
        n_final=ev.n_final if ev.n_final is not None else settings.n_final,
        ci95_stop=ev.ci95_stop if ev.ci95_stop is not None else settings.ci95_stop,
    )
    constraints = Constraints(
        disallow_farther_than_pin=cons.disallow_farther_than_pin,
        min_separation_m=(
            cons.min_separation_m
            if cons.min_separation_m is not None
            else settings.min_separation_m
        ),
    )
    return OptimizerInput(
        start=Point(payload.start.lon, payload.start.lat),
        pin=Point(payload.pin.lon, payload.pin.lat),
        max_distance_m=payload.max_distance_m,
        skill=payload.skill.to_domain(),
        mask=payload.mask.to_domain(),
        budget=budget,
        constraints=constraints,
        seed=payload.seed,
    )


def from_domain(result: OptimizerResult) -> AimOptimizeResponse:
    return AimOptimizeResponse(
        candidates=[
            CandidateModel(
                lon=c.lon,
                lat=c.lat,
                es=c.es,
                es_ci95=c.es_ci95,
                samples=c.samples,
                counts_by_class=c.landing_breakdown(),
            )
            for c in result.candidates
        ],
        strategy=result.strategy,
        iterations=result.iterations,
        eval_count=result.eval_count,
        diagnostics=result.diagnostics,
    )


__all__ = [
    "AimOptimizeRequest",
    "AimOptimizeResponse",
    "CandidateModel",
    "ErrorEnvelope",
    "from_domain",
    "to_domain",
]
