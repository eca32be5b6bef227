"""Elevation-based plays-like distance adjustment."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from aimpoint.geo import Point

logger = logging.getLogger(__name__)

ELEVATION_PCT_PER_M = 0.009  # ±0.9% per meter of elevation change


def elevation_factor(elev_delta_m: float) -> float:
    return max(0.0, 1.0 + ELEVATION_PCT_PER_M * elev_delta_m)


class PlaysLikeAdjuster:
    """Distance multipliers for the remaining shot from each aim point to the pin.

    The pin elevation is looked up once; each aim point is looked up once and
    memoized. Lookup failures fall back to the unadjusted distance.
    """

    def __init__(self, lookup: Callable[[Point], float], pin: Point) -> None:
        self._lookup = lookup
        self._factors: Dict[Point, float] = {}
        self.failures = 0
        self._pin_elevation: Optional[float] = self._safe_lookup(pin, "pin")

    @property
    def enabled(self) -> bool:
        return self._pin_elevation is not None

    def _safe_lookup(self, point: Point, role: str) -> Optional[float]:
        try:
            return float(self._lookup(point))
        except Exception as exc:  # any collaborator failure degrades to surface distance
            self.failures += 1
            logger.warning(
                "elevation lookup failed; using surface distance",
                extra={"role": role, "lon": point.lon, "lat": point.lat, "error": str(exc)},
            )
            return None

    def factor_for(self, aim: Point) -> float:
        if self._pin_elevation is None:
            return 1.0
        cached = self._factors.get(aim)
        if cached is not None:
            return cached
        aim_elevation = self._safe_lookup(aim, "aim")
        if aim_elevation is None:
            factor = 1.0
        else:
            factor = elevation_factor(self._pin_elevation - aim_elevation)
        self._factors[aim] = factor
        return factor


__all__ = [
    "ELEVATION_PCT_PER_M",
    "PlaysLikeAdjuster",
    "elevation_factor",
]
