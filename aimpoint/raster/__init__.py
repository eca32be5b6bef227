"""Course raster classification."""

from .mask import (  # noqa: F401
    BBox,
    CLASS_PRICING,
    ConditionClass,
    RasterMask,
    classify,
    classify_many,
)
