"""Aim-point legality and forward half-disc geometry."""

from __future__ import annotations

from math import pi, sqrt
from typing import List

import numpy as np

from aimpoint.geo import LocalFrame, Point, bearing_rad, haversine_m, offset_xy

from .types import OptimizerInput


class Legality:
    """Distance constraints for one run, with the start→pin distance precomputed."""

    __slots__ = ("start", "pin", "max_distance_m", "disallow_farther", "start_to_pin_m")

    def __init__(self, inp: OptimizerInput) -> None:
        self.start = inp.start
        self.pin = inp.pin
        self.max_distance_m = inp.max_distance_m
        self.disallow_farther = inp.constraints.disallow_farther_than_pin
        self.start_to_pin_m = haversine_m(inp.start, inp.pin)

    def is_legal(self, point: Point) -> bool:
        if haversine_m(self.start, point) > self.max_distance_m:
            return False
        if self.disallow_farther and haversine_m(point, self.pin) > self.start_to_pin_m:
            return False
        return True

    def filter(self, points: List[Point]) -> List[Point]:
        return [p for p in points if self.is_legal(p)]


def is_legal(point: Point, inp: OptimizerInput) -> bool:
    return Legality(inp).is_legal(point)


class ForwardDisc:
    """Half-disc of reachable aim points ahead of the start, facing the pin.

    ``theta`` is measured from the start→pin bearing, clockwise positive,
    and spans -pi/2..pi/2.
    """

    __slots__ = ("frame", "bearing", "radius")

    def __init__(self, inp: OptimizerInput) -> None:
        self.frame = LocalFrame(inp.start)
        self.bearing = bearing_rad(inp.start, inp.pin)
        self.radius = inp.max_distance_m

    def point(self, r: float, theta: float) -> Point:
        east, north = offset_xy(self.bearing + theta, r)
        return self.frame.to_point(east, north)

    def contains_xy(self, x: float, y: float) -> bool:
        """Whether a frame offset lies within the radius on the forward side."""

        if x * x + y * y > self.radius * self.radius:
            return False
        fx, fy = offset_xy(self.bearing, 1.0)
        return x * fx + y * fy >= 0.0

    def random_points(self, rng: np.random.Generator, count: int) -> List[Point]:
        """Area-uniform random points in the half-disc."""

        if count <= 0:
            return []
        u = rng.random(count)
        v = rng.random(count)
        points = []
        for uu, vv in zip(u.tolist(), v.tolist()):
            points.append(self.point(self.radius * sqrt(uu), (vv - 0.5) * pi))
        return points


__all__ = ["ForwardDisc", "Legality", "is_legal"]
