"""End-to-end strategy runs on synthetic rasters."""

from __future__ import annotations

import pytest

from aimpoint.es.curves import ExpectedStrokesModel, expected_strokes
from aimpoint.geo import haversine_m, m_to_yards
from aimpoint.optimizer import (
    CEMOptimizer,
    FullGridOptimizer,
    FullGridParameters,
    OptimizationCancelled,
    RingGridOptimizer,
    Strategy,
    get_optimizer,
)
from aimpoint.optimizer.cancel import CancelToken
from aimpoint.optimizer.evaluator import evaluate
from aimpoint.raster.mask import ConditionClass
from aimpoint.tests.conftest import START, north_of_start


class CountingModel(ExpectedStrokesModel):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def cost(self, distance_yards, condition):
        self.calls += 1
        return super().cost(distance_yards, condition)


def _assert_legal(result, inp):
    start_to_pin = haversine_m(inp.start, inp.pin)
    for c in result.candidates:
        assert haversine_m(inp.start, c.point) <= inp.max_distance_m
        if inp.constraints.disallow_farther_than_pin:
            assert haversine_m(c.point, inp.pin) <= start_to_pin


def test_registry_resolves_every_strategy():
    assert isinstance(get_optimizer("CEM"), CEMOptimizer)
    assert isinstance(get_optimizer(Strategy.RING_GRID), RingGridOptimizer)
    assert isinstance(get_optimizer("FullGrid"), FullGridOptimizer)
    with pytest.raises(ValueError):
        get_optimizer("Simplex")


def test_scenario_a_uniform_fairway_aims_at_pin(fairway_mask, make_input):
    inp = make_input(fairway_mask)
    result = RingGridOptimizer().run(inp)

    best = result.best
    assert best is not None
    assert m_to_yards(haversine_m(best.point, inp.pin)) < 10.0
    assert best.es < expected_strokes(150.0, "fairway")
    direct = evaluate(inp.pin, inp, inp.budget.n_final, 0.0)
    assert best.es == pytest.approx(direct.mean, abs=0.25)
    assert [c.es for c in result.candidates] == sorted(c.es for c in result.candidates)
    assert result.eval_count > len(result.candidates)
    assert result.strategy == "RingGrid"


def test_scenario_a_with_cem(fairway_mask, make_input):
    inp = make_input(fairway_mask)
    result = CEMOptimizer().run(inp)
    assert result.best is not None
    assert m_to_yards(haversine_m(result.best.point, inp.pin)) < 15.0
    assert result.best.es < expected_strokes(150.0, "fairway")
    assert 1 <= result.iterations <= 8
    assert result.diagnostics["cem"]["stop_reason"] in {
        "max_iterations",
        "stagnation",
        "collapsed",
    }


def test_scenario_b_routes_around_water(water_band_mask, make_input):
    inp = make_input(water_band_mask)
    result = RingGridOptimizer().run(inp)
    best = result.best
    assert best is not None

    through_hazard = evaluate(north_of_start(115), inp, inp.budget.n_final, 0.0)
    at_pin = evaluate(inp.pin, inp, inp.budget.n_final, 0.0)
    assert best.es < through_hazard.mean
    assert best.es <= at_pin.mean + 0.25
    assert inp.mask.classify(best.point) is not ConditionClass.WATER


@pytest.mark.parametrize("optimizer_cls", [RingGridOptimizer, CEMOptimizer, FullGridOptimizer])
def test_scenario_c_tiny_reach_returns_single_candidate(fairway_mask, make_input, optimizer_cls):
    inp = make_input(fairway_mask, max_distance_m=4.572, min_separation_m=10.0)
    result = optimizer_cls().run(inp)
    assert len(result.candidates) == 1
    _assert_legal(result, inp)


def test_scenario_c_default_separation_is_legal(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_distance_m=4.572)
    result = RingGridOptimizer().run(inp)
    assert result.candidates
    _assert_legal(result, inp)
    assert result.diagnostics["ring_grid"]["rings"] == 0


def test_scenario_d_cancel_after_first_iteration(fairway_mask, make_input):
    inp = make_input(fairway_mask)
    token = CancelToken()
    model = CountingModel()
    seen = []

    def progress(pct, note):
        seen.append((pct, note, model.calls))
        token.cancel("user")

    with pytest.raises(OptimizationCancelled):
        CEMOptimizer().run(inp, token, progress=progress, model=model)

    assert len(seen) == 1
    assert seen[0][1] == "iteration 1"
    assert model.calls == seen[0][2]


def test_cancel_before_start_raises_immediately(fairway_mask, make_input):
    token = CancelToken()
    token.cancel()
    model = CountingModel()
    with pytest.raises(OptimizationCancelled):
        RingGridOptimizer().run(make_input(fairway_mask), token, model=model)
    assert model.calls == 0


def test_seeded_cem_runs_are_reproducible(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=120, pin_yards=110, seed=11)
    first = CEMOptimizer().run(inp)
    second = CEMOptimizer().run(inp)
    assert [(c.point, c.es, c.es_ci95) for c in first.candidates] == [
        (c.point, c.es, c.es_ci95) for c in second.candidates
    ]


def test_legality_with_disallow_farther(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=120, disallow_farther=True)
    result = RingGridOptimizer().run(inp)
    assert result.candidates
    _assert_legal(result, inp)
    for i, a in enumerate(result.candidates):
        for b in result.candidates[i + 1:]:
            assert haversine_m(a.point, b.point) >= inp.constraints.min_separation_m


def test_full_grid_covers_forward_half_disc(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=60, pin_yards=50)
    result = FullGridOptimizer(FullGridParameters(spacing_m=5.0)).run(inp)
    grid = result.diagnostics["full_grid"]
    assert grid["evaluations"] == grid["nodes"] > 0
    assert m_to_yards(haversine_m(result.best.point, inp.pin)) < 10.0
    assert haversine_m(START, result.best.point) <= inp.max_distance_m


def test_progress_is_monotonic_and_completes(fairway_mask, make_input):
    inp = make_input(fairway_mask, max_yards=60, pin_yards=50)
    seen = []
    RingGridOptimizer().run(inp, progress=lambda pct, note: seen.append(pct))
    assert seen == sorted(seen)
    assert seen[-1] == 100.0
