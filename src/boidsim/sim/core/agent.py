from __future__ import annotations

from dataclasses import dataclass, field

from pygame.math import Vector2


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2 = field(default_factory=Vector2)
    velocity: Vector2 = field(default_factory=Vector2)

    def copy(self) -> "Agent":
        return Agent(id=self.id, position=Vector2(self.position), velocity=Vector2(self.velocity))
