"""Expected strokes cost model."""

from .curves import (  # noqa: F401
    ExpectedStrokesModel,
    PricingCondition,
    expected_strokes,
    normalise_condition,
)
