from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from ..core.agent import Agent
from ..core.config import SimulationConfig
from ..utils.math2d import _squared_distance_xy

# (x, y, vx, vy) for one agent, frozen at the start of a step.
SnapshotRow = Tuple[float, float, float, float]
PopulationView = Tuple[SnapshotRow, ...]


@dataclass(frozen=True, slots=True)
class Neighborhood:
    close_dx: float = 0.0
    close_dy: float = 0.0
    avg_x: float = 0.0
    avg_y: float = 0.0
    avg_vx: float = 0.0
    avg_vy: float = 0.0
    neighbor_count: int = 0
    checks: int = 0


def freeze_population(population: Sequence[Agent]) -> PopulationView:
    return tuple(
        (agent.position.x, agent.position.y, agent.velocity.x, agent.velocity.y) for agent in population
    )


def evaluate_neighborhood(
    index: int,
    view: PopulationView,
    config: SimulationConfig,
    candidates: Iterable[int] | None = None,
) -> Neighborhood:
    """Classify every other agent relative to ``view[index]``.

    Agents strictly inside the protected range feed the repulsion
    accumulator; agents in ``[protected, visual)`` feed the cohesion and
    alignment averages. Candidates must be given in ascending index order
    for results to be bit-identical to a full scan.
    """

    x, y, _vx, _vy = view[index]
    visual_sq = config.visual_range_sq
    protected_sq = config.protected_range_sq
    close_dx = 0.0
    close_dy = 0.0
    sum_x = 0.0
    sum_y = 0.0
    sum_vx = 0.0
    sum_vy = 0.0
    count = 0
    checks = 0

    for other in range(len(view)) if candidates is None else candidates:
        if other == index:
            continue
        ox, oy, ovx, ovy = view[other]
        dx = x - ox
        dy = y - oy
        dist_sq = dx * dx + dy * dy
        checks += 1
        if dist_sq >= visual_sq:
            continue
        if dist_sq < protected_sq:
            close_dx += dx
            close_dy += dy
        else:
            sum_x += ox
            sum_y += oy
            sum_vx += ovx
            sum_vy += ovy
            count += 1

    if count == 0:
        return Neighborhood(close_dx=close_dx, close_dy=close_dy, checks=checks)
    inv = 1.0 / count
    return Neighborhood(
        close_dx=close_dx,
        close_dy=close_dy,
        avg_x=sum_x * inv,
        avg_y=sum_y * inv,
        avg_vx=sum_vx * inv,
        avg_vy=sum_vy * inv,
        neighbor_count=count,
        checks=checks,
    )


def _visible_mean(index: int, view: PopulationView, config: SimulationConfig, offset: int) -> tuple[float, float] | None:
    x, y = view[index][0], view[index][1]
    visual_sq = config.visual_range_sq
    protected_sq = config.protected_range_sq
    sum_a = 0.0
    sum_b = 0.0
    count = 0
    for other, row in enumerate(view):
        if other == index:
            continue
        dist_sq = _squared_distance_xy(x, y, row[0], row[1])
        if protected_sq <= dist_sq < visual_sq:
            sum_a += row[offset]
            sum_b += row[offset + 1]
            count += 1
    if count == 0:
        return None
    return sum_a / count, sum_b / count


def cohesion(index: int, view: PopulationView, config: SimulationConfig) -> tuple[float, float]:
    mean = _visible_mean(index, view, config, 0)
    if mean is None:
        return 0.0, 0.0
    x, y = view[index][0], view[index][1]
    return (mean[0] - x) * config.centering_factor, (mean[1] - y) * config.centering_factor


def alignment(index: int, view: PopulationView, config: SimulationConfig) -> tuple[float, float]:
    mean = _visible_mean(index, view, config, 2)
    if mean is None:
        return 0.0, 0.0
    vx, vy = view[index][2], view[index][3]
    return (mean[0] - vx) * config.matching_factor, (mean[1] - vy) * config.matching_factor


def separation(index: int, view: PopulationView, config: SimulationConfig) -> tuple[float, float]:
    x, y = view[index][0], view[index][1]
    protected_sq = config.protected_range_sq
    close_dx = 0.0
    close_dy = 0.0
    for other, row in enumerate(view):
        if other == index:
            continue
        dx = x - row[0]
        dy = y - row[1]
        if dx * dx + dy * dy < protected_sq:
            close_dx += dx
            close_dy += dy
    return close_dx * config.avoid_factor, close_dy * config.avoid_factor
