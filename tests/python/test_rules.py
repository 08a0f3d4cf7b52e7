from __future__ import annotations

from pytest import approx

from boidsim.sim.core.config import SimulationConfig
from boidsim.sim.systems.rules import (
    alignment,
    cohesion,
    evaluate_neighborhood,
    freeze_population,
    separation,
)


def _config(**kwargs) -> SimulationConfig:
    values = {"visual_range": 10.0, "protected_range": 2.0}
    values.update(kwargs)
    return SimulationConfig(**values)


def test_neighbors_are_split_between_protected_and_visible(make_agent):
    view = freeze_population(
        [
            make_agent(0, 0.0, 0.0),
            make_agent(1, 1.0, 0.0, vx=9.0),
            make_agent(2, 0.0, 5.0, vx=1.0, vy=2.0),
            make_agent(3, -4.0, 0.0, vx=3.0, vy=0.0),
            make_agent(4, 50.0, 50.0, vx=7.0),
        ]
    )
    hood = evaluate_neighborhood(0, view, _config())

    assert hood.close_dx == approx(-1.0)
    assert hood.close_dy == approx(0.0)
    assert hood.neighbor_count == 2
    assert hood.avg_x == approx(-2.0)
    assert hood.avg_y == approx(2.5)
    assert hood.avg_vx == approx(2.0)
    assert hood.avg_vy == approx(1.0)
    assert hood.checks == 4


def test_range_edges_use_strict_comparisons(make_agent):
    # Exactly at the protected radius counts as visible; exactly at the visual radius is ignored.
    view = freeze_population(
        [
            make_agent(0, 0.0, 0.0),
            make_agent(1, 2.0, 0.0),
            make_agent(2, 0.0, 10.0),
        ]
    )
    hood = evaluate_neighborhood(0, view, _config())

    assert hood.close_dx == 0.0
    assert hood.neighbor_count == 1
    assert hood.avg_x == approx(2.0)


def test_lonely_agent_gets_empty_neighborhood(make_agent):
    view = freeze_population([make_agent(0), make_agent(1, 100.0, 100.0)])
    hood = evaluate_neighborhood(0, view, _config())

    assert hood.neighbor_count == 0
    assert (hood.avg_x, hood.avg_y, hood.avg_vx, hood.avg_vy) == (0.0, 0.0, 0.0, 0.0)
    assert (hood.close_dx, hood.close_dy) == (0.0, 0.0)


def test_candidates_restrict_the_scan(make_agent):
    view = freeze_population([make_agent(0), make_agent(1, 1.0, 0.0), make_agent(2, -1.0, 0.0)])
    hood = evaluate_neighborhood(0, view, _config(), candidates=[0, 2])

    assert hood.close_dx == approx(1.0)
    assert hood.checks == 1


def test_single_rule_helpers(make_agent):
    config = _config(centering_factor=0.5, matching_factor=0.25, avoid_factor=2.0)
    view = freeze_population(
        [
            make_agent(0, 0.0, 0.0, vx=1.0, vy=0.0),
            make_agent(1, 4.0, 0.0, vx=3.0, vy=2.0),
            make_agent(2, 0.5, 0.5),
        ]
    )

    assert cohesion(0, view, config) == approx((2.0, 0.0))
    assert alignment(0, view, config) == approx((0.5, 0.5))
    assert separation(0, view, config) == approx((-1.0, -1.0))


def test_rule_helpers_are_zero_without_neighbors(make_agent):
    config = _config(centering_factor=1.0, matching_factor=1.0, avoid_factor=1.0)
    view = freeze_population([make_agent(0, vx=1.0), make_agent(1, 80.0, 80.0)])

    assert cohesion(0, view, config) == (0.0, 0.0)
    assert alignment(0, view, config) == (0.0, 0.0)
    assert separation(0, view, config) == (0.0, 0.0)
