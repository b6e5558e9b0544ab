"""Forest environment for the FIRECONTROL swarm.

The forest is a discretized grid of cells that are clear, burning
(hazardous) or treated. It owns the shared active-task registry: connected
clusters of burning cells are registered as tasks, and their radius and
utility are refreshed from the cells still burning. Fire spread is not
modelled.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from firecontrol.config.schema import ForestConfig
from firecontrol.swarm.geometry import Position
from firecontrol.swarm.task import Task, TaskRegistry
from firecontrol.utils.enums import CellState
from firecontrol.utils.types import CellIndex

if TYPE_CHECKING:
    from firecontrol.swarm.agent import UAVAgent

logger = logging.getLogger(__name__)

_CELL_CODES: dict[CellState, int] = {state: code for code, state in enumerate(CellState)}
_CODE_CELLS: dict[int, CellState] = {code: state for state, code in _CELL_CODES.items()}


class Forest:
    """Discretized forest grid plus the active-task registry.

    This class provides:
    - Cell state lookups and treatment
    - Bounds checks for continuous positions
    - Detection of burning clusters as tasks, with contractor designation
    - Per-tick refresh of task radius and utility
    """

    def __init__(self, width: int, height: int):
        """Initialize forest.

        Args:
            width: Number of columns
            height: Number of rows
        """
        if width <= 0 or height <= 0:
            raise ValueError("Forest dimensions must be positive")

        self.width = width
        self.height = height
        self.grid = np.full((width, height), _CELL_CODES[CellState.CLEAR], dtype=np.int8)
        self.tasks = TaskRegistry()
        self.current_tick = 0

        logger.debug(f"Initialized Forest: {width}x{height}")

    @classmethod
    def from_config(cls, config: ForestConfig) -> Forest:
        """Build a forest and ignite the configured fire seeds."""
        forest = cls(config.width, config.height)
        for seed in config.fire_seeds:
            forest.ignite_disc(seed.x, seed.y, seed.radius)
        return forest

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def cell_at(self, x: int, y: int) -> CellState:
        """State of the cell at ``(x, y)``.

        Raises:
            ValueError: If the cell lies outside the forest
        """
        if not self._validate_cell(x, y):
            raise ValueError(f"Cell ({x}, {y}) out of bounds")
        return _CODE_CELLS[int(self.grid[x, y])]

    def mark_treated(self, x: int, y: int) -> None:
        """Mark the cell at ``(x, y)`` as treated."""
        if not self._validate_cell(x, y):
            raise ValueError(f"Cell ({x}, {y}) out of bounds")
        self.grid[x, y] = _CELL_CODES[CellState.TREATED]
        logger.debug(f"Cell ({x}, {y}) treated")

    def is_in_bounds(self, position: Position) -> bool:
        """Whether a continuous position lies above the forest."""
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def ignite(self, cells: Iterable[CellIndex]) -> int:
        """Set cells on fire; out-of-bounds cells are ignored.

        Returns:
            Number of cells ignited
        """
        ignited = 0
        for x, y in cells:
            if self._validate_cell(x, y):
                self.grid[x, y] = _CELL_CODES[CellState.HAZARDOUS]
                ignited += 1
        return ignited

    def ignite_disc(self, cx: int, cy: int, radius: int) -> int:
        """Set every cell within ``radius`` of ``(cx, cy)`` on fire."""
        cells = [
            (x, y)
            for x in range(cx - radius, cx + radius + 1)
            for y in range(cy - radius, cy + radius + 1)
            if (x - cx) ** 2 + (y - cy) ** 2 <= radius**2
        ]
        return self.ignite(cells)

    def burning_cells(self) -> list[CellIndex]:
        xs, ys = np.nonzero(self.grid == _CELL_CODES[CellState.HAZARDOUS])
        return [(int(x), int(y)) for x, y in zip(xs, ys, strict=True)]

    def count_cells(self, state: CellState) -> int:
        return int(np.count_nonzero(self.grid == _CELL_CODES[state]))

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def detect_tasks(self, agents: Sequence[UAVAgent]) -> list[Task]:
        """Register every burning cluster not yet covered by an active task.

        Clusters are 4-connected components of burning cells. The contractor
        of a new task is the agent closest to its centroid (lowest id on
        ties).

        Args:
            agents: Candidate contractors

        Returns:
            Newly registered tasks
        """
        if not agents:
            raise ValueError("At least one agent is required to designate contractors")

        covered: set[CellIndex] = set()
        for task in self.tasks.snapshot():
            covered.update(task.cells)

        burning = set(self.burning_cells()) - covered
        created = []
        while burning:
            cluster = self._flood(burning.pop(), burning)
            centroid = Position(
                sum(x for x, _ in cluster) / len(cluster),
                sum(y for _, y in cluster) / len(cluster),
                0.0,
            )
            contractor = min(agents, key=lambda a: (a.position.planar_distance_to(centroid), a.agent_id))
            task = Task(
                task_id=self.tasks.next_task_id(),
                centroid=centroid,
                radius=self._cluster_radius(centroid, cluster),
                utility=len(cluster),
                contractor_id=contractor.agent_id,
                cells=cluster,
            )
            self.tasks.add(task)
            created.append(task)
            logger.info(f"Detected {task}")
        return created

    def refresh_tasks(self) -> None:
        """Recompute utility and radius of every active task from its burning cells.

        A task with no burning cell left gets radius 0 (resolved). Tasks
        registered without cluster cells are left untouched.
        """
        hazardous = _CELL_CODES[CellState.HAZARDOUS]
        for task in self.tasks.snapshot():
            if not task.cells:
                continue
            remaining = {(x, y) for x, y in task.cells if self.grid[x, y] == hazardous}
            task.utility = len(remaining)
            task.radius = self._cluster_radius(task.centroid, remaining) if remaining else 0.0

    def _flood(self, start: CellIndex, burning: set[CellIndex]) -> set[CellIndex]:
        cluster = {start}
        queue = deque([start])
        while queue:
            x, y = queue.popleft()
            for neighbour in ((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)):
                if neighbour in burning:
                    burning.remove(neighbour)
                    cluster.add(neighbour)
                    queue.append(neighbour)
        return cluster

    @staticmethod
    def _cluster_radius(centroid: Position, cells: Iterable[CellIndex]) -> float:
        # +1 so a single-cell cluster is not mistaken for a resolved one
        return max(math.hypot(x - centroid.x, y - centroid.y) for x, y in cells) + 1.0

    def _validate_cell(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_stats(self) -> dict[str, Any]:
        """Cell counts and task registry summary."""
        return {
            "grid_size": (self.width, self.height),
            "tick": self.current_tick,
            "burning_cells": self.count_cells(CellState.HAZARDOUS),
            "treated_cells": self.count_cells(CellState.TREATED),
            **self.tasks.get_stats(),
        }

    def __str__(self) -> str:
        return f"Forest({self.width}x{self.height}, burning={self.count_cells(CellState.HAZARDOUS)})"


__all__ = ["Forest"]
