from __future__ import annotations

import base64

import numpy as np
import pytest

from aimpoint.es.curves import PricingCondition
from aimpoint.geo import Point
from aimpoint.raster.mask import (
    CLASS_PRICING,
    BBox,
    ConditionClass,
    RasterMask,
    classify,
    classify_lonlat,
    classify_many,
)

BBOX = BBox(west=10.0, south=50.0, east=10.004, north=50.002)


def _quadrant_mask() -> RasterMask:
    # row 0 is the north edge
    grid = np.array(
        [
            [ConditionClass.GREEN, ConditionClass.FAIRWAY],
            [ConditionClass.BUNKER, ConditionClass.WATER],
        ],
        dtype=np.uint8,
    )
    return RasterMask.from_array(grid, BBOX)


def test_classify_reads_row_major_from_north():
    mask = _quadrant_mask()
    assert classify(Point(10.001, 50.0015), mask) is ConditionClass.GREEN
    assert classify(Point(10.003, 50.0015), mask) is ConditionClass.FAIRWAY
    assert classify(Point(10.001, 50.0005), mask) is ConditionClass.BUNKER
    assert classify(Point(10.003, 50.0005), mask) is ConditionClass.WATER


@pytest.mark.parametrize(
    "point, expected",
    [
        (Point(9.0, 51.0), ConditionClass.GREEN),
        (Point(11.0, 51.0), ConditionClass.FAIRWAY),
        (Point(9.0, 49.0), ConditionClass.BUNKER),
        (Point(11.0, 49.0), ConditionClass.WATER),
        (Point(10.004, 50.0), ConditionClass.WATER),
    ],
)
def test_out_of_range_points_clamp_to_edge(point: Point, expected: ConditionClass):
    assert classify(point, _quadrant_mask()) is expected


def test_unknown_bytes_read_as_rough():
    mask = RasterMask(2, 1, BBOX, bytes([200, 9]))
    assert mask.classify(Point(10.001, 50.001)) is ConditionClass.ROUGH
    assert mask.classify(Point(10.003, 50.001)) is ConditionClass.TEE
    assert mask.unknown_byte_count() == 1


def test_pricing_table_matches_byte_contract():
    assert CLASS_PRICING[ConditionClass.UNKNOWN] == (PricingCondition.ROUGH, 0.0)
    assert CLASS_PRICING[ConditionClass.OB] == (PricingCondition.ROUGH, 2.0)
    assert CLASS_PRICING[ConditionClass.HAZARD] == (PricingCondition.ROUGH, 1.0)
    assert CLASS_PRICING[ConditionClass.BUNKER][0] is PricingCondition.SAND
    assert CLASS_PRICING[ConditionClass.TEE][0] is PricingCondition.FAIRWAY
    assert [int(c) for c in ConditionClass] == list(range(10))


def test_buffer_length_must_match_dimensions():
    with pytest.raises(ValueError):
        RasterMask(3, 3, BBOX, bytes(8))


def test_bbox_must_be_non_empty():
    with pytest.raises(ValueError):
        BBox(west=1.0, south=1.0, east=1.0, north=2.0)


def test_base64_round_trip_and_rejection():
    raw = bytes([6, 6, 5, 2])
    mask = RasterMask.from_base64(2, 2, BBOX, base64.b64encode(raw).decode())
    assert mask.classes == raw
    with pytest.raises(ValueError):
        RasterMask.from_base64(2, 2, BBOX, "not base64!!")


def test_vectorised_lookup_agrees_with_scalar():
    mask = RasterMask(3, 2, BBOX, bytes([1, 2, 3, 4, 250, 6]))
    rng = np.random.default_rng(3)
    lons = rng.uniform(9.999, 10.005, size=200)
    lats = rng.uniform(49.999, 50.003, size=200)
    codes = classify_lonlat(lons, lats, mask)
    scalar = classify_many([Point(lo, la) for lo, la in zip(lons, lats)], mask)
    assert [ConditionClass(c) for c in codes] == scalar
