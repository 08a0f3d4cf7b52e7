from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .metrics import TickMetrics


@dataclass(slots=True)
class Snapshot:
    tick: int
    metrics: TickMetrics
    agents: List[Dict[str, Any]]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(slots=True)
class SnapshotWorld:
    x_min: float
    y_min: float
    x_max: float
    y_max: float


@dataclass(slots=True)
class SnapshotMetadata:
    model: str
    speed_policy: str
    seed: Optional[int]
    # Headings are atan2(vy, vx) in radians with the y axis pointing up.
    heading_convention: str = "atan2(vy, vx), y-up"
