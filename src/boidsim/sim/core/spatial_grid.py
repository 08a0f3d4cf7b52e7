from __future__ import annotations

import math
from typing import Dict, List, Tuple


class SpatialGrid:
    """Uniform bucket grid over agent indices.

    The grid only narrows the candidate set; callers still apply their own
    distance comparisons, so query results are a superset of the true
    neighbors within ``radius``.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size must be > 0, got {cell_size!r}")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[int]] = {}

    def build_neighbor_cell_offsets(self, radius: float) -> List[Tuple[int, int]]:
        cell_range = int(math.ceil(radius / self._cell_size))
        return [(dx, dy) for dx in range(-cell_range, cell_range + 1) for dy in range(-cell_range, cell_range + 1)]

    def insert(self, index: int, x: float, y: float) -> None:
        self._cells.setdefault(self._cell_key(x, y), []).append(index)

    def collect_candidates(
        self,
        x: float,
        y: float,
        cell_offsets: List[Tuple[int, int]],
        out_indices: List[int],
    ) -> None:
        """Fill ``out_indices`` with every index stored in the cells around ``(x, y)``."""

        out_indices.clear()
        base_x, base_y = self._cell_key(x, y)
        cells = self._cells
        extend = out_indices.extend
        for dx, dy in cell_offsets:
            bucket = cells.get((base_x + dx, base_y + dy))
            if bucket:
                extend(bucket)

    def _cell_key(self, x: float, y: float) -> Tuple[int, int]:
        return (int(x // self._cell_size), int(y // self._cell_size))
