"""Classified course raster and point lookups.

The raster is a north-up grid of condition bytes, row-major from the north
edge. Lookups clamp to the nearest edge cell and treat unexpected bytes as
rough, so a sparse or slightly misaligned raster never fails a run.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import IntEnum
from math import floor
from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np

from aimpoint.es.curves import PricingCondition
from aimpoint.geo import Point


class ConditionClass(IntEnum):
    UNKNOWN = 0
    OB = 1
    WATER = 2
    HAZARD = 3
    BUNKER = 4
    GREEN = 5
    FAIRWAY = 6
    RECOVERY = 7
    ROUGH = 8
    TEE = 9


# class -> (pricing condition, additive penalty strokes)
CLASS_PRICING: Dict[ConditionClass, Tuple[PricingCondition, float]] = {
    ConditionClass.UNKNOWN: (PricingCondition.ROUGH, 0.0),
    ConditionClass.OB: (PricingCondition.ROUGH, 2.0),
    ConditionClass.WATER: (PricingCondition.WATER, 0.0),
    ConditionClass.HAZARD: (PricingCondition.ROUGH, 1.0),
    ConditionClass.BUNKER: (PricingCondition.SAND, 0.0),
    ConditionClass.GREEN: (PricingCondition.GREEN, 0.0),
    ConditionClass.FAIRWAY: (PricingCondition.FAIRWAY, 0.0),
    ConditionClass.RECOVERY: (PricingCondition.RECOVERY, 0.0),
    ConditionClass.ROUGH: (PricingCondition.ROUGH, 0.0),
    ConditionClass.TEE: (PricingCondition.FAIRWAY, 0.0),
}

# Indexed by raw byte for the hot path; bytes past the table read as rough.
_CLASS_BY_BYTE: Tuple[ConditionClass, ...] = tuple(ConditionClass)


@dataclass(frozen=True, slots=True)
class BBox:
    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        if not (self.east > self.west and self.north > self.south):
            raise ValueError("bbox must have east > west and north > south")


class RasterMask:
    """Read-only classified grid. Safe to share between concurrent runs."""

    __slots__ = ("width", "height", "bbox", "_classes", "_sx", "_sy", "_max_x", "_max_y")

    def __init__(
        self,
        width: int,
        height: int,
        bbox: BBox,
        classes: bytes | bytearray | memoryview | Sequence[int],
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("raster width and height must be positive")
        data = bytes(classes)
        if len(data) != width * height:
            raise ValueError(
                f"raster buffer has {len(data)} cells, expected {width * height}"
            )
        self.width = int(width)
        self.height = int(height)
        self.bbox = bbox
        self._classes = data
        self._sx = self.width / (bbox.east - bbox.west)
        self._sy = self.height / (bbox.north - bbox.south)
        self._max_x = self.width - 1
        self._max_y = self.height - 1

    @classmethod
    def from_array(cls, grid: np.ndarray, bbox: BBox) -> "RasterMask":
        """Build a mask from a (height, width) array whose row 0 is the north edge."""

        arr = np.asarray(grid)
        if arr.ndim != 2:
            raise ValueError("raster grid must be two-dimensional")
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("raster values must fit in a byte")
        height, width = arr.shape
        return cls(width, height, bbox, arr.astype(np.uint8).tobytes())

    @classmethod
    def from_base64(cls, width: int, height: int, bbox: BBox, encoded: str) -> "RasterMask":
        try:
            data = base64.b64decode(encoded, validate=True)
        except ValueError as exc:
            raise ValueError("raster classes are not valid base64") from exc
        return cls(width, height, bbox, data)

    @property
    def classes(self) -> bytes:
        return self._classes

    def as_array(self) -> np.ndarray:
        return np.frombuffer(self._classes, dtype=np.uint8).reshape(self.height, self.width)

    def cell_index(self, point: Point) -> Tuple[int, int]:
        x = floor((point.lon - self.bbox.west) * self._sx)
        y = floor((self.bbox.north - point.lat) * self._sy)
        if x < 0:
            x = 0
        elif x > self._max_x:
            x = self._max_x
        if y < 0:
            y = 0
        elif y > self._max_y:
            y = self._max_y
        return x, y

    def classify(self, point: Point) -> ConditionClass:
        x, y = self.cell_index(point)
        raw = self._classes[y * self.width + x]
        if raw < len(_CLASS_BY_BYTE):
            return _CLASS_BY_BYTE[raw]
        return ConditionClass.ROUGH

    def unknown_byte_count(self) -> int:
        """Cells holding bytes outside the class set (a data-quality signal)."""

        limit = len(_CLASS_BY_BYTE)
        return sum(1 for raw in self._classes if raw >= limit)


def classify(point: Point, mask: RasterMask) -> ConditionClass:
    return mask.classify(point)


def classify_many(points: Iterable[Point], mask: RasterMask) -> List[ConditionClass]:
    lookup = mask.classify
    return [lookup(p) for p in points]


def classify_lonlat(lons: np.ndarray, lats: np.ndarray, mask: RasterMask) -> np.ndarray:
    """Vectorised lookup returning class codes (uint8) for coordinate arrays."""

    bbox = mask.bbox
    sx = mask.width / (bbox.east - bbox.west)
    sy = mask.height / (bbox.north - bbox.south)
    xs = np.floor((np.asarray(lons, dtype=float) - bbox.west) * sx)
    ys = np.floor((bbox.north - np.asarray(lats, dtype=float)) * sy)
    xs = np.clip(xs, 0, mask.width - 1).astype(np.intp)
    ys = np.clip(ys, 0, mask.height - 1).astype(np.intp)
    raw = mask.as_array()[ys, xs]
    return np.where(raw < len(_CLASS_BY_BYTE), raw, int(ConditionClass.ROUGH)).astype(np.uint8)


__all__ = [
    "BBox",
    "CLASS_PRICING",
    "ConditionClass",
    "PricingCondition",
    "RasterMask",
    "classify",
    "classify_lonlat",
    "classify_many",
]
