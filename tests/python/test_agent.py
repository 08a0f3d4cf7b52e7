from __future__ import annotations

from pygame.math import Vector2

from boidsim.sim.core.agent import Agent


def test_agent_uses_slots_and_isolates_defaults():
    agent_a = Agent(id=1)
    agent_b = Agent(id=2)

    assert not hasattr(agent_a, "__dict__")
    assert hasattr(Agent, "__slots__")

    agent_a.velocity.x = 1.5
    assert agent_b.velocity.x == 0.0


def test_copy_does_not_share_vectors():
    agent = Agent(id=7, position=Vector2(1.0, 2.0), velocity=Vector2(0.5, -0.5))
    clone = agent.copy()

    clone.position.x = 99.0
    clone.velocity.y = 3.0

    assert clone.id == 7
    assert agent.position.x == 1.0
    assert agent.velocity.y == -0.5
