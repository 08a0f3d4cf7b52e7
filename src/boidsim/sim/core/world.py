from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, List, Optional

from .agent import Agent
from .config import DriverConfig, SimulationConfig
from .models import FlockModel, create_model
from .population import create_population
from .rng import DeterministicRng
from .step import run_step_change
from ..systems import metrics as metrics_system
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import _heading_from_velocity

logger = logging.getLogger(__name__)


class World:
    """Population, model, and step counter for one running simulation."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        driver: Optional[DriverConfig] = None,
        model: Optional[FlockModel] = None,
    ):
        self._driver = driver or DriverConfig()
        self._model = model if model is not None else create_model(config or SimulationConfig())
        self._rng = DeterministicRng(self._driver.seed)
        self._agents: List[Agent] = []
        self._step_count = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population(self._driver.population_size)

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def model(self) -> FlockModel:
        return self._model

    @property
    def config(self) -> SimulationConfig:
        return self._model.config

    @property
    def driver(self) -> DriverConfig:
        return self._driver

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def reset(self, population_size: Optional[int] = None) -> None:
        size = self._driver.population_size if population_size is None else population_size
        self._rng.reset()
        self._bootstrap_population(size)
        self._metrics = None
        self._step_count = 0
        logger.info("world reset with %d agents", size)

    def step(self) -> TickMetrics:
        start = perf_counter()
        agents, count = run_step_change(self._model, self._agents, self._step_count)
        elapsed_ms = (perf_counter() - start) * 1000.0
        self._agents = agents
        self._step_count = count
        metrics = metrics_system.create_metrics(count, agents, self._model.last_neighbor_checks, elapsed_ms)
        self._metrics = metrics
        logger.debug(
            "step %d: %d agents, %d neighbor checks, %.3f ms",
            count,
            metrics.population,
            metrics.neighbor_checks,
            elapsed_ms,
        )
        return metrics

    def update_weights(self, cohesion: float, separation: float, alignment: float) -> None:
        self._model.update_weights(cohesion, separation, alignment)

    def update_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> None:
        self._model.update_boundaries(x_min, y_min, x_max, y_max)

    def snapshot(self) -> Snapshot:
        config = self._model.config
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.create_metrics(self._step_count, self._agents, 0, 0.0)
        boundary = config.boundary
        return Snapshot(
            tick=self._step_count,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._agents],
            world=SnapshotWorld(
                x_min=boundary.x_min,
                y_min=boundary.y_min,
                x_max=boundary.x_max,
                y_max=boundary.y_max,
            ),
            metadata=SnapshotMetadata(
                model=config.model,
                speed_policy=config.speed_policy.value,
                seed=self._driver.seed,
            ),
        )

    def _bootstrap_population(self, size: int) -> None:
        self._agents = create_population(size, self._rng, self._driver)

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": agent.velocity.x,
            "vy": agent.velocity.y,
            "speed": agent.velocity.length(),
            "heading": _heading_from_velocity(agent.velocity),
        }
