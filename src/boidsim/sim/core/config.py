from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

NEIGHBOR_SEARCH_MODES = ("brute", "grid")
MODEL_NAMES = ("boids", "decomposed", "identity")
ID_MODES = ("sequential", "random")


class SpeedPolicy(str, Enum):
    # Hard floor and ceiling on speed.
    MIN_MAX = "min_max"
    # Ceiling only; slow agents are left alone.
    MAX_ONLY = "max_only"


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be finite, got {value!r}")


def _require_non_negative(name: str, value: float) -> None:
    _require_finite(name, value)
    if value < 0:
        raise ConfigError(f"{name} must be >= 0, got {value!r}")


@dataclass(frozen=True, slots=True)
class BoundaryConfig:
    x_min: float = -100.0
    y_min: float = -100.0
    x_max: float = 100.0
    y_max: float = 100.0

    def __post_init__(self) -> None:
        for item in fields(self):
            _require_finite(item.name, getattr(self, item.name))
        if self.x_min >= self.x_max:
            raise ConfigError(f"x_min ({self.x_min}) must be < x_max ({self.x_max})")
        if self.y_min >= self.y_max:
            raise ConfigError(f"y_min ({self.y_min}) must be < y_max ({self.y_max})")


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Behavioral parameters read by every step.

    Instances are immutable; callers derive updated copies with
    :meth:`with_weights`, :meth:`with_boundaries` or :meth:`replace`.
    """

    visual_range: float = 40.0
    protected_range: float = 8.0
    centering_factor: float = 0.0005
    avoid_factor: float = 0.05
    matching_factor: float = 0.05
    max_speed: float = 2.0
    min_speed: float = 0.3
    speed_policy: SpeedPolicy = SpeedPolicy.MIN_MAX
    boundary: BoundaryConfig = field(default_factory=BoundaryConfig)
    margin: float = 0.0
    turn_factor: float = 0.0
    neighbor_search: str = "brute"
    workers: int = 1
    model: str = "boids"

    def __post_init__(self) -> None:
        if not isinstance(self.speed_policy, SpeedPolicy):
            try:
                object.__setattr__(self, "speed_policy", SpeedPolicy(self.speed_policy))
            except ValueError as exc:
                raise ConfigError(f"Unknown speed policy: {self.speed_policy!r}") from exc
        if not isinstance(self.boundary, BoundaryConfig):
            raise ConfigError("boundary must be a BoundaryConfig")
        for name in (
            "visual_range",
            "protected_range",
            "centering_factor",
            "avoid_factor",
            "matching_factor",
            "min_speed",
            "margin",
            "turn_factor",
        ):
            _require_non_negative(name, getattr(self, name))
        _require_finite("max_speed", self.max_speed)
        if self.max_speed <= 0:
            raise ConfigError(f"max_speed must be > 0, got {self.max_speed!r}")
        if self.min_speed > self.max_speed:
            raise ConfigError(f"min_speed ({self.min_speed}) must be <= max_speed ({self.max_speed})")
        if self.protected_range > self.visual_range:
            raise ConfigError(
                f"protected_range ({self.protected_range}) must be <= visual_range ({self.visual_range})"
            )
        if self.neighbor_search not in NEIGHBOR_SEARCH_MODES:
            raise ConfigError(f"Unknown neighbor search mode: {self.neighbor_search!r}")
        if self.model not in MODEL_NAMES:
            raise ConfigError(f"Unknown model: {self.model!r}")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")

    @property
    def visual_range_sq(self) -> float:
        return self.visual_range * self.visual_range

    @property
    def protected_range_sq(self) -> float:
        return self.protected_range * self.protected_range

    def replace(self, **changes: Any) -> "SimulationConfig":
        return replace(self, **changes)

    def with_weights(self, cohesion: float, separation: float, alignment: float) -> "SimulationConfig":
        return replace(
            self,
            centering_factor=float(cohesion),
            avoid_factor=float(separation),
            matching_factor=float(alignment),
        )

    def with_boundaries(self, x_min: float, y_min: float, x_max: float, y_max: float) -> "SimulationConfig":
        return replace(
            self,
            boundary=BoundaryConfig(x_min=float(x_min), y_min=float(y_min), x_max=float(x_max), y_max=float(y_max)),
        )


@dataclass(frozen=True, slots=True)
class DriverConfig:
    steps_per_second: float = 50.0
    population_size: int = 10
    seed: Optional[int] = None
    spawn_extent: float = 50.0
    spawn_min_speed: float = 0.3
    id_mode: str = "sequential"

    def __post_init__(self) -> None:
        _require_finite("steps_per_second", self.steps_per_second)
        if self.steps_per_second <= 0:
            raise ConfigError(f"steps_per_second must be > 0, got {self.steps_per_second!r}")
        if self.population_size < 1:
            raise ConfigError(f"population_size must be >= 1, got {self.population_size!r}")
        _require_non_negative("spawn_extent", self.spawn_extent)
        _require_non_negative("spawn_min_speed", self.spawn_min_speed)
        if self.id_mode not in ID_MODES:
            raise ConfigError(f"Unknown id mode: {self.id_mode!r}")


@dataclass(frozen=True, slots=True)
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    driver: DriverConfig = field(default_factory=DriverConfig)
    broadcast_interval: int = 1

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text())
        return load_config(data or {})


def load_config(raw: Dict[str, Any]) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigError("configuration root must be a mapping")
    sim_raw = dict(raw.get("simulation", {}) or {})
    boundary_raw = sim_raw.pop("boundary", None) or {}
    unknown = set(sim_raw) - {item.name for item in fields(SimulationConfig)}
    if unknown:
        raise ConfigError(f"Unknown simulation options: {sorted(unknown)}")
    try:
        boundary = BoundaryConfig(**boundary_raw)
        simulation = SimulationConfig(boundary=boundary, **sim_raw)
        driver = DriverConfig(**(raw.get("driver", {}) or {}))
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
    app_values = {k: v for k, v in raw.items() if k not in {"simulation", "driver"}}
    try:
        return AppConfig(simulation=simulation, driver=driver, **app_values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
