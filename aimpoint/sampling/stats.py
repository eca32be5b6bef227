"""Online mean / variance accumulator (Welford)."""

from __future__ import annotations

from math import sqrt

Z_95 = 1.96


class ProgressiveStats:
    __slots__ = ("count", "_mean", "_m2")

    def __init__(self) -> None:
        self.count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        delta = value - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (value - self._mean)

    def mean(self) -> float:
        return self._mean

    def variance(self) -> float:
        """Unbiased sample variance; 0.0 until two values have been seen."""

        if self.count < 2:
            return 0.0
        return max(0.0, self._m2 / (self.count - 1))

    def std(self) -> float:
        return sqrt(self.variance())

    def ci95(self) -> float:
        if self.count < 2:
            return 0.0
        return Z_95 * sqrt(self.variance() / self.count)

    def reset(self) -> None:
        self.count = 0
        self._mean = 0.0
        self._m2 = 0.0


__all__ = ["ProgressiveStats", "Z_95"]
