from __future__ import annotations

import math

from pygame.math import Vector2


def _squared_distance_xy(ax: float, ay: float, bx: float, by: float) -> float:
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy


def _direction_and_length_xy(x: float, y: float) -> tuple[float, float, float]:
    """Unit direction and length of ``(x, y)`` without squaring the components.

    Components are divided by the larger magnitude first, so lengths near the
    float limits neither overflow to ``inf`` nor underflow to zero. An infinite
    component keeps its sign as the direction and reports an infinite length.
    """

    if math.isinf(x) or math.isinf(y):
        x = math.copysign(1.0, x) if math.isinf(x) else 0.0
        y = math.copysign(1.0, y) if math.isinf(y) else 0.0
        norm = math.hypot(x, y)
        return x / norm, y / norm, math.inf
    largest = max(abs(x), abs(y))
    if largest == 0.0:
        return 0.0, 0.0, 0.0
    ux = x / largest
    uy = y / largest
    norm = math.hypot(ux, uy)
    return ux / norm, uy / norm, largest * norm


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    ux, uy, length = _direction_and_length_xy(x, y)
    if length <= max_length:
        return x, y
    return ux * max_length, uy * max_length


def _floor_length_xy_f(x: float, y: float, min_length: float) -> tuple[float, float]:
    # Zero-length vectors have no direction to scale along; they are returned untouched.
    ux, uy, length = _direction_and_length_xy(x, y)
    if length == 0.0 or length >= min_length:
        return x, y
    return ux * min_length, uy * min_length


def _heading_from_velocity(vector: Vector2) -> float:
    if vector.length_squared() < 1e-12:
        return 0.0
    return math.atan2(vector.y, vector.x)
