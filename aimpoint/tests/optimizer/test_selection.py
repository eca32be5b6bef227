from __future__ import annotations

from aimpoint.geo import LocalFrame, haversine_m
from aimpoint.optimizer.evaluator import Evaluator
from aimpoint.optimizer.selection import SelectionParameters, select, spread_out
from aimpoint.optimizer.types import EvaluatedPoint, EvaluationPool
from aimpoint.tests.conftest import START


def _line_pool(count: int, spacing_m: float) -> EvaluationPool:
    frame = LocalFrame(START)
    items = [
        EvaluatedPoint(frame.to_point(0.0, 100.0 + i * spacing_m), es=3.0 + 0.01 * ((i * 7) % 11))
        for i in range(count)
    ]
    return EvaluationPool(items)


def test_empty_pool_selects_nothing(fairway_mask, make_input):
    inp = make_input(fairway_mask)
    assert select(EvaluationPool(), inp, Evaluator(inp)) == []


def test_selected_candidates_respect_separation(fairway_mask, make_input):
    inp = make_input(fairway_mask, min_separation_m=2.74, n_final=80)
    candidates = select(_line_pool(40, 1.0), inp, Evaluator(inp))
    assert 1 <= len(candidates) <= 8
    for i, a in enumerate(candidates):
        for b in candidates[i + 1:]:
            assert haversine_m(a.point, b.point) >= 2.74
    assert [c.es for c in candidates] == sorted(c.es for c in candidates)
    assert all(c.samples == 80 for c in candidates)


def test_wide_separation_keeps_only_the_best(fairway_mask, make_input):
    inp = make_input(fairway_mask, min_separation_m=500.0)
    pool = _line_pool(10, 1.0)
    candidates = select(pool, inp, Evaluator(inp))
    assert len(candidates) == 1
    assert candidates[0].point == pool.best().point


def test_cap_limits_candidate_count(fairway_mask, make_input):
    inp = make_input(fairway_mask, min_separation_m=0.0, n_final=40)
    candidates = select(_line_pool(20, 5.0), inp, Evaluator(inp), SelectionParameters(max_candidates=3))
    assert len(candidates) == 3


def test_spread_out_walks_in_rank_order():
    pool = _line_pool(12, 1.0)
    picked = spread_out(pool.ranked(), 2.0, 8)
    assert picked[0] == pool.best()
    assert [p.es for p in picked] == sorted(p.es for p in picked)
