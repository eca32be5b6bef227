"""Low-discrepancy shot dispersion sampling.

Samples come from a 2-D Halton sequence (bases 2 and 3) starting at index 1,
mapped to the unit disk with the area-preserving ``(sqrt(u), 2*pi*v)``
transform, stretched to the dispersion ellipse and rotated onto the shot
bearing. The same index always lands on the same point.
"""

from __future__ import annotations

from math import cos, pi, radians, sin, sqrt, tan
from typing import List, Tuple

import numpy as np

from aimpoint.geo import METERS_PER_DEG_LAT, Point, meters_per_deg_lon

HALTON_BASES = (2, 3)
FIRST_INDEX = 1


def radical_inverse(index: int, base: int) -> float:
    """Digit-reversal of ``index`` in ``base`` mirrored about the radix point."""

    if index < 0:
        raise ValueError("index must be non-negative")
    result = 0.0
    f = 1.0 / base
    i = index
    while i > 0:
        result += f * (i % base)
        i //= base
        f /= base
    return result


def halton_sequence(start: int, count: int, base: int) -> np.ndarray:
    """Vectorised radical inverse for indices ``start .. start+count-1``."""

    if count <= 0:
        return np.zeros(0, dtype=float)
    idx = np.arange(start, start + count, dtype=np.int64)
    out = np.zeros(count, dtype=float)
    f = 1.0 / base
    while np.any(idx > 0):
        out += f * (idx % base)
        idx //= base
        f /= base
    return out


def halton_2d(index: int) -> Tuple[float, float]:
    return radical_inverse(index, HALTON_BASES[0]), radical_inverse(index, HALTON_BASES[1])


def unit_disk(u: float, v: float) -> Tuple[float, float]:
    r = sqrt(u)
    theta = 2.0 * pi * v
    return r * cos(theta), r * sin(theta)


def unit_disk_table(count: int, start: int = FIRST_INDEX) -> np.ndarray:
    """Disk points for ``count`` consecutive Halton indices as a (count, 2) array."""

    u = halton_sequence(start, count, HALTON_BASES[0])
    v = halton_sequence(start, count, HALTON_BASES[1])
    r = np.sqrt(u)
    theta = 2.0 * np.pi * v
    table = np.column_stack((r * np.cos(theta), r * np.sin(theta)))
    table.flags.writeable = False
    return table


def ellipse_axes(distance_m: float, offline_deg: float, dist_pct: float) -> Tuple[float, float]:
    """Return (semi_major, semi_minor) meters for a shot of ``distance_m``.

    The major axis runs along the shot line and scales with distance
    percentage; the minor axis is the lateral miss at the offline half-angle.
    """

    d = max(0.0, distance_m)
    return d * dist_pct / 100.0, d * tan(radians(offline_deg))


class DispersionSampler:
    """Maps Halton indices to landing points around one aim point."""

    __slots__ = (
        "aim",
        "semi_major",
        "semi_minor",
        "bearing",
        "_sin_b",
        "_cos_b",
        "_m_per_deg_lon",
    )

    def __init__(
        self, aim: Point, semi_major_m: float, semi_minor_m: float, bearing: float
    ) -> None:
        self.aim = aim
        self.semi_major = max(0.0, semi_major_m)
        self.semi_minor = max(0.0, semi_minor_m)
        self.bearing = bearing
        self._sin_b = sin(bearing)
        self._cos_b = cos(bearing)
        self._m_per_deg_lon = meters_per_deg_lon(aim.lat)

    def from_disk(self, dx: float, dy: float) -> Point:
        """Project a unit-disk point (dx lateral-left, dy forward) onto the ground."""

        forward = dy * self.semi_major
        left = dx * self.semi_minor
        east = forward * self._sin_b - left * self._cos_b
        north = forward * self._cos_b + left * self._sin_b
        return Point(
            lon=self.aim.lon + east / self._m_per_deg_lon,
            lat=self.aim.lat + north / METERS_PER_DEG_LAT,
        )

    def sample(self, index: int) -> Point:
        dx, dy = unit_disk(*halton_2d(index))
        return self.from_disk(dx, dy)

    def sample_batch(self, start: int, count: int) -> List[Point]:
        table = unit_disk_table(count, start)
        return [self.from_disk(float(dx), float(dy)) for dx, dy in table]

    def sample_arrays(self, start: int, count: int) -> Tuple[np.ndarray, np.ndarray]:
        table = unit_disk_table(count, start)
        forward = table[:, 1] * self.semi_major
        left = table[:, 0] * self.semi_minor
        east = forward * self._sin_b - left * self._cos_b
        north = forward * self._cos_b + left * self._sin_b
        return (
            self.aim.lon + east / self._m_per_deg_lon,
            self.aim.lat + north / METERS_PER_DEG_LAT,
        )


def sample(
    aim_point: Point, semi_major_m: float, semi_minor_m: float, bearing: float, index: int
) -> Point:
    return DispersionSampler(aim_point, semi_major_m, semi_minor_m, bearing).sample(index)


def sample_batch(
    aim_point: Point,
    semi_major_m: float,
    semi_minor_m: float,
    bearing: float,
    count: int,
    start: int = FIRST_INDEX,
) -> List[Point]:
    sampler = DispersionSampler(aim_point, semi_major_m, semi_minor_m, bearing)
    return sampler.sample_batch(start, count)


__all__ = [
    "DispersionSampler",
    "FIRST_INDEX",
    "HALTON_BASES",
    "ellipse_axes",
    "halton_2d",
    "halton_sequence",
    "radical_inverse",
    "sample",
    "sample_batch",
    "unit_disk",
    "unit_disk_table",
]
