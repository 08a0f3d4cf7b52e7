from __future__ import annotations

import math
from typing import Sequence

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def create_metrics(tick: int, agents: Sequence[Agent], neighbor_checks: int, duration_ms: float) -> TickMetrics:
    speeds = [math.hypot(agent.velocity.x, agent.velocity.y) for agent in agents]
    return TickMetrics(
        tick=tick,
        population=len(agents),
        neighbor_checks=neighbor_checks,
        average_speed=sum(speeds) / len(speeds) if speeds else 0.0,
        max_speed=max(speeds, default=0.0),
        tick_duration_ms=duration_ms,
    )
