"""Shared fixtures: synthetic course rasters around a start at (0, 0)."""

from __future__ import annotations

from typing import Callable, Iterable, Tuple

import numpy as np
import pytest
from fastapi.testclient import TestClient

from aimpoint.app import app
from aimpoint.config import reset_settings_cache
from aimpoint.geo import METERS_PER_DEG_LAT, Point, yards_to_m
from aimpoint.optimizer import (
    Constraints,
    EvaluationBudget,
    OptimizerInput,
    SKILL_PRESETS,
)
from aimpoint.raster.mask import BBox, ConditionClass, RasterMask

START = Point(0.0, 0.0)
BBOX = BBox(west=-0.0015, south=-0.0003, east=0.0015, north=0.0030)
GRID_W = 120
GRID_H = 140


def north_of_start(yards: float) -> Point:
    return Point(START.lon, START.lat + yards_to_m(yards) / METERS_PER_DEG_LAT)


def row_northing_m(row: int) -> float:
    """Meters north of the start for the centre of raster row ``row``."""

    lat = BBOX.north - (row + 0.5) * (BBOX.north - BBOX.south) / GRID_H
    return lat * METERS_PER_DEG_LAT


def build_mask(
    fill: ConditionClass = ConditionClass.FAIRWAY,
    bands: Iterable[Tuple[float, float, ConditionClass]] = (),
) -> RasterMask:
    """Uniform raster with optional full-width bands given in yards north of start."""

    grid = np.full((GRID_H, GRID_W), int(fill), dtype=np.uint8)
    for lo_yds, hi_yds, cls in bands:
        lo, hi = yards_to_m(lo_yds), yards_to_m(hi_yds)
        for row in range(GRID_H):
            if lo <= row_northing_m(row) <= hi:
                grid[row, :] = int(cls)
    return RasterMask.from_array(grid, BBOX)


@pytest.fixture
def fairway_mask() -> RasterMask:
    return build_mask()


@pytest.fixture
def water_band_mask() -> RasterMask:
    return build_mask(bands=[(100.0, 130.0, ConditionClass.WATER)])


@pytest.fixture
def make_input() -> Callable[..., OptimizerInput]:
    def _make(
        mask: RasterMask,
        *,
        pin_yards: float = 150.0,
        max_yards: float = 200.0,
        n_early: int = 60,
        n_final: int = 200,
        ci95_stop: float = 0.0,
        min_separation_m: float = 2.74,
        disallow_farther: bool = False,
        max_distance_m: float | None = None,
        seed: int | None = 7,
    ) -> OptimizerInput:
        return OptimizerInput(
            start=START,
            pin=north_of_start(pin_yards),
            max_distance_m=max_distance_m if max_distance_m is not None else yards_to_m(max_yards),
            skill=SKILL_PRESETS["Average Golfer"],
            mask=mask,
            budget=EvaluationBudget(n_early=n_early, n_final=n_final, ci95_stop=ci95_stop),
            constraints=Constraints(
                disallow_farther_than_pin=disallow_farther,
                min_separation_m=min_separation_m,
            ),
            seed=seed,
        )

    return _make


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def client() -> TestClient:
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
