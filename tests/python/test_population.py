from __future__ import annotations

import pytest

from boidsim.sim.core.config import DriverConfig
from boidsim.sim.core.errors import PopulationError
from boidsim.sim.core.population import RANDOM_ID_SPACE, create_population, validate_population
from boidsim.sim.core.rng import DeterministicRng


def test_sequential_ids_and_spawn_square():
    driver = DriverConfig(spawn_extent=50.0, spawn_min_speed=0.3)
    population = create_population(25, DeterministicRng(1), driver)

    assert [agent.id for agent in population] == list(range(25))
    for agent in population:
        assert -50.0 <= agent.position.x <= 50.0
        assert -50.0 <= agent.position.y <= 50.0
        assert agent.velocity.length() >= 0.3 - 1e-9


def test_same_seed_same_population():
    first = create_population(10, DeterministicRng(9))
    second = create_population(10, DeterministicRng(9))
    assert [(a.position.x, a.velocity.y) for a in first] == [(a.position.x, a.velocity.y) for a in second]


def test_random_ids_are_distinct():
    population = create_population(200, DeterministicRng(3), DriverConfig(id_mode="random"))
    ids = [agent.id for agent in population]

    assert len(set(ids)) == 200
    assert all(0 <= agent_id < RANDOM_ID_SPACE for agent_id in ids)


def test_random_ids_cannot_exceed_id_space():
    with pytest.raises(PopulationError):
        create_population(RANDOM_ID_SPACE + 1, DeterministicRng(3), DriverConfig(id_mode="random"))


def test_zero_population_is_rejected():
    with pytest.raises(PopulationError):
        create_population(0, DeterministicRng(3))


def test_validate_population(make_agent):
    validate_population([make_agent(1), make_agent(2)])
    with pytest.raises(PopulationError):
        validate_population([])
    with pytest.raises(PopulationError):
        validate_population([make_agent(1), make_agent(1)])
