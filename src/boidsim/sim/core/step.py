from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from pygame.math import Vector2

from .agent import Agent
from .config import SimulationConfig
from .population import validate_population
from .spatial_grid import SpatialGrid
from ..systems.boundary import advance_and_contain
from ..systems.integrator import integrate
from ..systems.rules import PopulationView, evaluate_neighborhood, freeze_population

if TYPE_CHECKING:
    from .models import FlockModel


@dataclass(frozen=True, slots=True)
class StepResult:
    agents: List[Agent]
    neighbor_checks: int


def _build_grid(view: PopulationView, config: SimulationConfig) -> Optional[SpatialGrid]:
    if config.neighbor_search != "grid" or config.visual_range <= 0.0:
        return None
    grid = SpatialGrid(config.visual_range)
    for index, (x, y, _vx, _vy) in enumerate(view):
        grid.insert(index, x, y)
    return grid


def _update_slice(
    start: int,
    stop: int,
    view: PopulationView,
    ids: Sequence[int],
    config: SimulationConfig,
    grid: Optional[SpatialGrid],
    out: List[Optional[Agent]],
) -> int:
    checks = 0
    candidates: List[int] = []
    cell_offsets = grid.build_neighbor_cell_offsets(config.visual_range) if grid is not None else []
    for index in range(start, stop):
        x, y, vx, vy = view[index]
        if grid is None:
            neighborhood = evaluate_neighborhood(index, view, config)
        else:
            grid.collect_candidates(x, y, cell_offsets, candidates)
            # Same summation order as a full scan.
            candidates.sort()
            neighborhood = evaluate_neighborhood(index, view, config, candidates)
        vx, vy = integrate(x, y, vx, vy, neighborhood, config)
        x, y, vx, vy = advance_and_contain(x, y, vx, vy, config)
        out[index] = Agent(id=ids[index], position=Vector2(x, y), velocity=Vector2(vx, vy))
        checks += neighborhood.checks
    return checks


def _partition(count: int, parts: int) -> List[Tuple[int, int]]:
    parts = max(1, min(parts, count))
    size, extra = divmod(count, parts)
    bounds = []
    start = 0
    for part in range(parts):
        stop = start + size + (1 if part < extra else 0)
        bounds.append((start, stop))
        start = stop
    return bounds


def compute_step(population: Sequence[Agent], config: SimulationConfig) -> StepResult:
    """Advance every agent once against a frozen copy of ``population``.

    The input agents are never mutated; each output slot is written by
    exactly one worker.
    """

    validate_population(population)
    view = freeze_population(population)
    ids = [agent.id for agent in population]
    grid = _build_grid(view, config)
    out: List[Optional[Agent]] = [None] * len(view)

    slices = _partition(len(view), config.workers)
    if len(slices) == 1:
        checks = _update_slice(0, len(view), view, ids, config, grid, out)
    else:
        with ThreadPoolExecutor(max_workers=len(slices)) as executor:
            futures = [
                executor.submit(_update_slice, start, stop, view, ids, config, grid, out) for start, stop in slices
            ]
            checks = sum(future.result() for future in futures)
    return StepResult(agents=out, neighbor_checks=checks)  # type: ignore[arg-type]


def step(population: Sequence[Agent], config: SimulationConfig, step_count: int = 0) -> tuple[List[Agent], int]:
    return compute_step(population, config).agents, step_count + 1


def run_step_change(model: "FlockModel", population: Sequence[Agent], count: int) -> tuple[List[Agent], int]:
    return model.update(population), count + 1
