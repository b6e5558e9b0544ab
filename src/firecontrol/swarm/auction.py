"""Contract-net auction primitives.

A task's contractor announces it with a request-for-bid packet; idle agents
answer with a bid of ``utility / distance``; the contractor ranks the bids
and assigns agents up to a quota proportional to the task's share of the
outstanding fire. Winners are notified with an :class:`Assignment` message
that they consume at the start of their next tick.
"""

from __future__ import annotations

import logging
import math
import sys
import threading
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from firecontrol.swarm.geometry import Position
from firecontrol.swarm.task import Task
from firecontrol.utils.types import BID_DISTANCE_EPSILON, AgentId, Bid, TaskId

logger = logging.getLogger(__name__)

MAX_BID: Bid = sys.float_info.max
REJECTION_BID: Bid = 0.0


def compute_bid(utility: float, distance: float, epsilon: float = BID_DISTANCE_EPSILON) -> Bid:
    """Bid value for a task: closer and larger fires yield stronger bids.

    Args:
        utility: Utility of the announced task
        distance: Distance between the bidder and the task centroid
        epsilon: Distances below this are treated as "already there"

    Returns:
        ``utility / distance``, or the maximal bid when the distance is below ``epsilon``
    """
    if distance < epsilon:
        return MAX_BID
    return utility / distance


def allocation_quota(fleet_size: int, utility: float, total_utility: float) -> int:
    """Number of agents a task deserves given its share of the outstanding fire.

    Args:
        fleet_size: Total number of agents in the swarm
        utility: Utility of the task being allocated
        total_utility: Sum of the utility of every unresolved task

    Returns:
        ``floor(fleet_size * utility / total_utility)``, 0 if there is no outstanding utility
    """
    if total_utility <= 0:
        return 0
    return math.floor(fleet_size * utility / total_utility)


class Assignment(BaseModel):
    """Contractor-to-winner notification of an awarded task."""

    task_id: TaskId = Field(..., description="Awarded task")
    contractor_id: AgentId = Field(..., description="Contractor that ran the allocation")
    target: Position = Field(..., description="Planar target; the winner keeps its own altitude")

    model_config = ConfigDict(frozen=True)


class ProposalBook:
    """Bids collected by a contractor, guarded by an exclusive lock.

    Absence of an agent means "no bid yet"; a bid of 0.0 is an explicit
    rejection and is never selected.
    """

    def __init__(self) -> None:
        self._bids: dict[AgentId, Bid] = {}
        self._lock = threading.Lock()

    def submit(self, agent_id: AgentId, bid: Bid) -> None:
        """Insert or overwrite the bid of ``agent_id``."""
        with self._lock:
            self._bids[agent_id] = bid

    def reject(self, agent_id: AgentId) -> None:
        """Record an explicit "do not consider me" marker."""
        self.submit(agent_id, REJECTION_BID)

    def snapshot(self) -> dict[AgentId, Bid]:
        with self._lock:
            return dict(self._bids)

    def clear(self) -> None:
        with self._lock:
            self._bids.clear()

    def allocate(
        self,
        task: Task,
        needed: int,
        is_idle: Callable[[AgentId], bool],
        offer: Callable[[AgentId], bool],
    ) -> list[AgentId]:
        """Award ``task`` to the best idle bidders, then drain the book.

        Winners are picked one at a time by highest bid; equal bids go to the
        lowest agent id. ``offer`` performs the exclusive hand-over to the
        winner and may refuse if the agent acquired a task concurrently, in
        which case the bid is dropped and the next best is tried. Bids not
        consumed by this round are discarded.

        Args:
            task: Task being allocated
            needed: Quota of assigned agents for the task
            is_idle: Whether an agent currently holds no task
            offer: Exclusive hand-over; True when the agent accepted

        Returns:
            Ids of the agents awarded the task, in award order
        """
        winners: list[AgentId] = []
        with self._lock:
            while task.assigned_count < needed:
                eligible = [
                    (bid, agent_id) for agent_id, bid in self._bids.items() if bid > REJECTION_BID and is_idle(agent_id)
                ]
                if not eligible:
                    break
                _, winner = max(eligible, key=lambda entry: (entry[0], -entry[1]))
                del self._bids[winner]
                if offer(winner):
                    task.increment_assigned()
                    winners.append(winner)
                else:
                    logger.debug(f"Agent {winner} refused task {task.task_id}: acquired another task meanwhile")
            self._bids.clear()
        return winners

    def __len__(self) -> int:
        with self._lock:
            return len(self._bids)

    def __contains__(self, agent_id: object) -> bool:
        with self._lock:
            return agent_id in self._bids


__all__ = [
    "MAX_BID",
    "REJECTION_BID",
    "Assignment",
    "ProposalBook",
    "allocation_quota",
    "compute_bid",
]
