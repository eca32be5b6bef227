from __future__ import annotations

import numpy as np

from aimpoint.geo import LocalFrame, haversine_m
from aimpoint.optimizer.constraints import ForwardDisc, Legality, is_legal
from aimpoint.tests.conftest import START, north_of_start


def test_max_distance_is_enforced(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=100)
    assert is_legal(north_of_start(99), inp)
    assert not is_legal(north_of_start(101), inp)


def test_disallow_farther_than_pin(fairway_mask, make_input):
    inp = make_input(fairway_mask, pin_yards=150, disallow_farther=True)
    legality = Legality(inp)
    behind = LocalFrame(START).to_point(0.0, -5.0)
    assert not legality.is_legal(behind)
    assert legality.is_legal(north_of_start(50))

    relaxed = Legality(make_input(fairway_mask, pin_yards=150))
    assert relaxed.is_legal(behind)


def test_random_points_fill_forward_half_disc(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=80)
    disc = ForwardDisc(inp)
    points = disc.random_points(np.random.default_rng(1), 300)
    assert len(points) == 300
    for p in points:
        assert haversine_m(START, p) <= inp.max_distance_m
        x, y = disc.frame.to_xy(p)
        assert y >= -1e-9  # pin is due north


def test_half_disc_membership(fairway_mask, make_input):
    disc = ForwardDisc(make_input(fairway_mask, max_yards=50))
    assert disc.contains_xy(0.0, 10.0)
    assert disc.contains_xy(20.0, 0.0)
    assert not disc.contains_xy(0.0, -1.0)
    assert not disc.contains_xy(0.0, 60.0)
