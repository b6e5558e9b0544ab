"""Task entities and the shared active-task registry.

A task is a fire cluster that requires coordinated coverage. Tasks are
created by the forest environment when a cluster is detected, mutated by the
agents during allocation and removed from the registry once their radius
drops to zero.
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

from firecontrol.swarm.geometry import Position
from firecontrol.utils.types import AgentId, CellIndex, TaskId

logger = logging.getLogger(__name__)


class Task(BaseModel):
    """A spatially localized fire cluster.

    The radius is the terminal marker: once it reaches 0 the task is resolved
    and its contractor removes it from the active registry.
    """

    task_id: int = Field(..., ge=0, description="Unique task identifier")
    centroid: Position = Field(..., description="Cluster centroid")
    radius: float = Field(..., ge=0.0, description="Effective radius, 0 once resolved")
    utility: int = Field(..., ge=0, description="Number of burning cells in the cluster")
    contractor_id: AgentId = Field(..., description="Agent announcing and allocating this task")
    assigned_count: int = Field(default=0, ge=0, description="Agents assigned by the contractor")
    cells: set[CellIndex] = Field(default_factory=set, description="Cells belonging to the cluster")

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @property
    def is_resolved(self) -> bool:
        """Check whether the cluster has been fully handled."""
        return self.radius == 0

    def increment_assigned(self) -> int:
        """Atomically record one more assigned agent.

        Returns:
            The assigned count after the increment
        """
        with self._lock:
            self.assigned_count += 1
            return self.assigned_count

    def __str__(self) -> str:
        """String representation of the task."""
        return (
            f"Task({self.task_id}: c=({self.centroid.x:.1f}, {self.centroid.y:.1f}), "
            f"r={self.radius:.1f}, u={self.utility}, contractor={self.contractor_id}, "
            f"assigned={self.assigned_count})"
        )


class TaskRegistry:
    """Shared list of active tasks.

    Every add/remove and every multi-step read is serialized through a
    re-entrant lock; readers get snapshots rather than the live list.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._lock = threading.RLock()
        self._next_id: TaskId = 0

    def add(self, task: Task) -> None:
        """Register a new active task.

        Raises:
            ValueError: If a task with the same id is already active
        """
        with self._lock:
            if any(t.task_id == task.task_id for t in self._tasks):
                raise ValueError(f"Task with ID '{task.task_id}' already exists")
            self._tasks.append(task)
            self._next_id = max(self._next_id, task.task_id + 1)
        logger.debug(f"Registered {task}")

    def remove(self, task: Task) -> bool:
        """Remove a task from the active set.

        Returns:
            True if the task was active, False if it had already been removed
        """
        with self._lock:
            for index, active in enumerate(self._tasks):
                if active.task_id == task.task_id:
                    del self._tasks[index]
                    logger.debug(f"Removed task {task.task_id}")
                    return True
        return False

    def get(self, task_id: TaskId | None) -> Task | None:
        """Resolve a task id to the active task, None if it is gone."""
        if task_id is None:
            return None
        with self._lock:
            for task in self._tasks:
                if task.task_id == task_id:
                    return task
        return None

    def snapshot(self) -> list[Task]:
        """Copy of the active tasks in registration order."""
        with self._lock:
            return list(self._tasks)

    def first(self) -> Task | None:
        with self._lock:
            return self._tasks[0] if self._tasks else None

    def random_choice(self, rng: random.Random) -> Task | None:
        """Uniformly drawn active task, None if the registry is empty."""
        with self._lock:
            if not self._tasks:
                return None
            return self._tasks[rng.randrange(len(self._tasks))]

    def find_by_contractor(self, agent_id: AgentId) -> Task | None:
        """First unresolved active task whose contractor is ``agent_id``."""
        with self._lock:
            for task in self._tasks:
                if task.contractor_id == agent_id and not task.is_resolved:
                    return task
        return None

    def total_utility(self) -> int:
        """Sum of the utility of every unresolved active task."""
        with self._lock:
            return sum(task.utility for task in self._tasks if not task.is_resolved)

    def next_task_id(self) -> TaskId:
        """Identifier for a newly detected task; ids are never reused."""
        with self._lock:
            task_id = self._next_id
            self._next_id += 1
            return task_id

    def get_stats(self) -> dict[str, Any]:
        """Summary of the active tasks."""
        tasks = self.snapshot()
        return {
            "active_tasks": len(tasks),
            "total_utility": sum(t.utility for t in tasks if not t.is_resolved),
            "assigned_agents": sum(t.assigned_count for t in tasks),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __iter__(self):
        return iter(self.snapshot())

    def __contains__(self, task: object) -> bool:
        if not isinstance(task, Task):
            return False
        return self.get(task.task_id) is not None


__all__ = ["Task", "TaskRegistry"]
