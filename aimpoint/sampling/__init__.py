"""Dispersion sampling and running statistics."""

from .dispersion import DispersionSampler, ellipse_axes, sample, sample_batch  # noqa: F401
from .stats import ProgressiveStats  # noqa: F401
