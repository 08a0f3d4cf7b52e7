from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Protocol, Sequence

from pygame.math import Vector2

from .agent import Agent
from .config import SimulationConfig
from .population import validate_population
from .step import compute_step
from ..systems.boundary import advance_and_contain
from ..systems.integrator import clamp_speed
from ..systems.rules import alignment, cohesion, freeze_population, separation

logger = logging.getLogger(__name__)


class FlockModel(Protocol):
    last_neighbor_checks: int

    @property
    def config(self) -> SimulationConfig: ...

    def update(self, population: Sequence[Agent]) -> List[Agent]: ...

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None: ...

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None: ...


class ConfigCell:
    """Holds the active config and swaps it atomically.

    Readers take one reference per step; writers build a fully validated
    replacement before publishing it, so a reader never sees a half-applied
    change.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self._config = config
        self._lock = threading.Lock()

    @property
    def current(self) -> SimulationConfig:
        return self._config

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        with self._lock:
            self._config = self._config.with_weights(cohesion, separation, alignment)
        logger.info("weights updated: cohesion=%s separation=%s alignment=%s", cohesion, separation, alignment)

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        with self._lock:
            self._config = self._config.with_boundaries(x_min, y_min, x_max, y_max)
        logger.info("boundaries updated: (%s, %s) - (%s, %s)", x_min, y_min, x_max, y_max)


class BoidModel:
    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._cell = ConfigCell(config or SimulationConfig())
        self.last_neighbor_checks = 0

    @property
    def config(self) -> SimulationConfig:
        return self._cell.current

    def update(self, population: Sequence[Agent]) -> List[Agent]:
        result = compute_step(population, self._cell.current)
        self.last_neighbor_checks = result.neighbor_checks
        return result.agents

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        self._cell.update_weights(cohesion, separation, alignment)

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        self._cell.update_boundaries(x_min, y_min, x_max, y_max)


class DecomposedBoidModel:
    """Boids with each rule evaluated in its own pass over the snapshot.

    Slower than :class:`BoidModel` (three scans per agent, no grid or
    worker support) but each rule can be read and tested on its own.
    """

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._cell = ConfigCell(config or SimulationConfig())
        self.last_neighbor_checks = 0

    @property
    def config(self) -> SimulationConfig:
        return self._cell.current

    def update(self, population: Sequence[Agent]) -> List[Agent]:
        config = self._cell.current
        validate_population(population)
        view = freeze_population(population)
        result: List[Agent] = []
        for index, agent in enumerate(population):
            x, y, vx, vy = view[index]
            coh_x, coh_y = cohesion(index, view, config)
            align_x, align_y = alignment(index, view, config)
            sep_x, sep_y = separation(index, view, config)
            vx += coh_x + align_x
            vy += coh_y + align_y
            vx += sep_x
            vy += sep_y
            vx, vy = clamp_speed(vx, vy, config)
            x, y, vx, vy = advance_and_contain(x, y, vx, vy, config)
            result.append(Agent(id=agent.id, position=Vector2(x, y), velocity=Vector2(vx, vy)))
        count = len(view)
        self.last_neighbor_checks = 3 * count * (count - 1)
        return result

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        self._cell.update_weights(cohesion, separation, alignment)

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        self._cell.update_boundaries(x_min, y_min, x_max, y_max)


class IdentityModel:
    """Passthrough model: returns copies of the input agents unchanged."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._cell = ConfigCell(config or SimulationConfig())
        self.last_neighbor_checks = 0

    @property
    def config(self) -> SimulationConfig:
        return self._cell.current

    def update(self, population: Sequence[Agent]) -> List[Agent]:
        validate_population(population)
        return [agent.copy() for agent in population]

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        self._cell.update_weights(cohesion, separation, alignment)

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        self._cell.update_boundaries(x_min, y_min, x_max, y_max)


MODEL_FACTORIES: Dict[str, Callable[[SimulationConfig], FlockModel]] = {
    "boids": BoidModel,
    "decomposed": DecomposedBoidModel,
    "identity": IdentityModel,
}


def create_model(config: SimulationConfig) -> FlockModel:
    return MODEL_FACTORIES[config.model](config)
