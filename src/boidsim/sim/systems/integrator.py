from __future__ import annotations

import math

from ..core.config import SimulationConfig, SpeedPolicy
from ..core.errors import SimulationError
from ..utils.math2d import _clamp_length_xy_f, _floor_length_xy_f
from .rules import Neighborhood


def apply_rules(
    x: float,
    y: float,
    vx: float,
    vy: float,
    neighborhood: Neighborhood,
    config: SimulationConfig,
) -> tuple[float, float]:
    if neighborhood.neighbor_count > 0:
        vx += (neighborhood.avg_x - x) * config.centering_factor + (neighborhood.avg_vx - vx) * config.matching_factor
        vy += (neighborhood.avg_y - y) * config.centering_factor + (neighborhood.avg_vy - vy) * config.matching_factor
    vx += neighborhood.close_dx * config.avoid_factor
    vy += neighborhood.close_dy * config.avoid_factor
    return vx, vy


def clamp_speed(vx: float, vy: float, config: SimulationConfig) -> tuple[float, float]:
    """Apply the configured speed policy. A zero velocity is returned unchanged."""
    if math.isnan(vx) or math.isnan(vy):
        raise SimulationError(f"velocity is not a number ({vx!r}, {vy!r}); rule weights are too large for this population")
    vx, vy = _clamp_length_xy_f(vx, vy, config.max_speed)
    if config.speed_policy is SpeedPolicy.MIN_MAX and config.min_speed > 0.0:
        vx, vy = _floor_length_xy_f(vx, vy, config.min_speed)
    return vx, vy


def integrate(
    x: float,
    y: float,
    vx: float,
    vy: float,
    neighborhood: Neighborhood,
    config: SimulationConfig,
) -> tuple[float, float]:
    vx, vy = apply_rules(x, y, vx, vy, neighborhood, config)
    return clamp_speed(vx, vy, config)
