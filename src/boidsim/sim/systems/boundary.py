from __future__ import annotations

from ..core.config import BoundaryConfig, SimulationConfig
from ..utils.math2d import _clamp_length_xy_f


def nudge_from_margin(
    x: float, y: float, vx: float, vy: float, boundary: BoundaryConfig, margin: float, turn_factor: float
) -> tuple[float, float]:
    if x < boundary.x_min + margin:
        vx += turn_factor
    if x > boundary.x_max - margin:
        vx -= turn_factor
    if y < boundary.y_min + margin:
        vy += turn_factor
    if y > boundary.y_max - margin:
        vy -= turn_factor
    return vx, vy


def contain(
    x: float, y: float, vx: float, vy: float, boundary: BoundaryConfig
) -> tuple[float, float, float, float]:
    """Clamp the position into the rectangle and point the crossing velocity component inward."""
    if x < boundary.x_min:
        x = boundary.x_min
        vx = abs(vx)
    elif x > boundary.x_max:
        x = boundary.x_max
        vx = -abs(vx)
    if y < boundary.y_min:
        y = boundary.y_min
        vy = abs(vy)
    elif y > boundary.y_max:
        y = boundary.y_max
        vy = -abs(vy)
    return x, y, vx, vy


def advance_and_contain(
    x: float, y: float, vx: float, vy: float, config: SimulationConfig
) -> tuple[float, float, float, float]:
    x += vx
    y += vy
    if config.margin > 0.0 and config.turn_factor > 0.0:
        vx, vy = nudge_from_margin(x, y, vx, vy, config.boundary, config.margin, config.turn_factor)
        # Nudging may push past the ceiling; the floor is not re-applied.
        vx, vy = _clamp_length_xy_f(vx, vy, config.max_speed)
    return contain(x, y, vx, vy, config.boundary)
