"""Geodesic and local tangent-plane helpers shared by the optimizer."""

from __future__ import annotations

from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt
from typing import Tuple

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEG_LAT = 111_320.0
METERS_PER_YARD = 0.9144


@dataclass(frozen=True, slots=True)
class Point:
    """Geodetic coordinate. Longitude first, matching the raster bbox order."""

    lon: float
    lat: float


def yards_to_m(yards: float) -> float:
    return yards * METERS_PER_YARD


def m_to_yards(meters: float) -> float:
    return meters / METERS_PER_YARD


def haversine_m(a: Point, b: Point) -> float:
    """Great-circle distance between two points in meters."""

    lat1 = radians(a.lat)
    lat2 = radians(b.lat)
    dlat = lat2 - lat1
    dlon = radians(b.lon - a.lon)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * atan2(sqrt(h), sqrt(1 - h))


def bearing_rad(start: Point, end: Point) -> float:
    """Initial bearing from ``start`` to ``end``; 0 is north, clockwise positive."""

    lat1 = radians(start.lat)
    lat2 = radians(end.lat)
    dlon = radians(end.lon - start.lon)

    x = sin(dlon) * cos(lat2)
    y = cos(lat1) * sin(lat2) - sin(lat1) * cos(lat2) * cos(dlon)
    return atan2(x, y)


def meters_per_deg_lon(lat: float) -> float:
    return METERS_PER_DEG_LAT * cos(radians(lat))


class LocalFrame:
    """Flat east/north frame (meters) anchored at ``origin``.

    ``x`` grows east and ``y`` grows north. Accurate to well under a yard over
    the few hundred meters a single shot spans.
    """

    __slots__ = ("origin", "_m_per_deg_lon")

    def __init__(self, origin: Point) -> None:
        self.origin = origin
        self._m_per_deg_lon = meters_per_deg_lon(origin.lat)

    def to_xy(self, point: Point) -> Tuple[float, float]:
        return (
            (point.lon - self.origin.lon) * self._m_per_deg_lon,
            (point.lat - self.origin.lat) * METERS_PER_DEG_LAT,
        )

    def to_point(self, x: float, y: float) -> Point:
        return Point(
            lon=self.origin.lon + x / self._m_per_deg_lon,
            lat=self.origin.lat + y / METERS_PER_DEG_LAT,
        )


def offset_xy(bearing: float, forward_m: float, left_m: float = 0.0) -> Tuple[float, float]:
    """Rotate a (forward, left) offset along ``bearing`` into east/north meters."""

    east = forward_m * sin(bearing) - left_m * cos(bearing)
    north = forward_m * cos(bearing) + left_m * sin(bearing)
    return east, north


__all__ = [
    "EARTH_RADIUS_M",
    "METERS_PER_DEG_LAT",
    "METERS_PER_YARD",
    "LocalFrame",
    "Point",
    "bearing_rad",
    "haversine_m",
    "m_to_yards",
    "meters_per_deg_lon",
    "offset_xy",
    "yards_to_m",
]
