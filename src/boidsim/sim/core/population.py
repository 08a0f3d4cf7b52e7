from __future__ import annotations

import logging
import math
from typing import List, Sequence

from pygame.math import Vector2

from .agent import Agent
from .config import DriverConfig
from .errors import PopulationError
from .rng import DeterministicRng
from ..utils.math2d import _floor_length_xy_f

logger = logging.getLogger(__name__)

RANDOM_ID_SPACE = 1000


def validate_population(population: Sequence[Agent]) -> None:
    if not population:
        raise PopulationError("population must contain at least one agent")
    seen: set[int] = set()
    for agent in population:
        if agent.id in seen:
            raise PopulationError(f"duplicate agent id: {agent.id}")
        seen.add(agent.id)
        state = (agent.position.x, agent.position.y, agent.velocity.x, agent.velocity.y)
        if not all(math.isfinite(value) for value in state):
            raise PopulationError(f"agent {agent.id} has a non-finite position or velocity: {state}")


def create_agent(agent_id: int, rng: DeterministicRng, extent: float, min_speed: float) -> Agent:
    x = rng.next_range(-extent, extent)
    y = rng.next_range(-extent, extent)
    vx = rng.next_range(-1.0, 1.0)
    vy = rng.next_range(-1.0, 1.0)
    vx, vy = _floor_length_xy_f(vx, vy, min_speed)
    return Agent(id=agent_id, position=Vector2(x, y), velocity=Vector2(vx, vy))


def create_population(count: int, rng: DeterministicRng, driver: DriverConfig | None = None) -> List[Agent]:
    """Spawn ``count`` agents uniformly in a square centred on the origin.

    Velocity components are drawn from ``[-1, 1]`` and their magnitude is
    floored to ``driver.spawn_min_speed`` so nobody starts (nearly) still.
    """

    driver = driver or DriverConfig()
    if count < 1:
        raise PopulationError(f"population size must be >= 1, got {count}")
    if driver.id_mode == "random":
        if count > RANDOM_ID_SPACE:
            raise PopulationError(f"cannot draw {count} distinct ids from {RANDOM_ID_SPACE}")
        ids = rng.sample_distinct(range(RANDOM_ID_SPACE), count)
    else:
        ids = list(range(count))
    population = [create_agent(agent_id, rng, driver.spawn_extent, driver.spawn_min_speed) for agent_id in ids]
    logger.debug("created population of %d agents (id_mode=%s)", count, driver.id_mode)
    return population
