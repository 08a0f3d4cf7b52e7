from __future__ import annotations

import random
from typing import Optional, Sequence


class DeterministicRng:
    """Seeded random source used for population initialization only."""

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed
        self._random = random.Random(seed)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def sample_distinct(self, population: Sequence[int], count: int) -> list[int]:
        return self._random.sample(population, count)
