"""UAV agent for decentralized fire-fighting task allocation.

This module provides the UAVAgent class: a per-agent state machine that,
once per tick, decides whether to acquire a task, pick the next cell to
inspect, move toward its target or extinguish the fire below it. Agents
share partial knowledge through range-limited packets and distribute
themselves over fire clusters with a contract-net auction in which each
task's contractor ranks the bids it receives.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

from firecontrol.swarm.auction import Assignment, ProposalBook, allocation_quota, compute_bid
from firecontrol.swarm.geometry import Position
from firecontrol.swarm.packet import CellObservation, DataPacket
from firecontrol.swarm.task import Task
from firecontrol.utils.enums import AgentAction, CellState
from firecontrol.utils.types import AgentId, CellIndex

if TYPE_CHECKING:
    from firecontrol.sim.environment import Forest
    from firecontrol.swarm.bus import SwarmBus

logger = logging.getLogger(__name__)


class UAVAgent:
    """A single UAV flying over the forest.

    The agent owns its own state (position, target, task, known cells and
    attempt counter). The only state another agent may touch is the
    assignment inbox, written by a contractor awarding a task and read by
    this agent at the start of its next tick, and, while this agent is a
    contractor, its proposal book.

    Invariants:
    - a target is held only while a task is held
    - ``attempt`` restarts from 0 whenever a task is acquired or released
    """

    def __init__(self, agent_id: AgentId, position: Position, bus: SwarmBus):
        """Initialize UAV agent.

        Args:
            agent_id: Unique agent identifier
            position: Initial position
            bus: Swarm bus the agent is registered with
        """
        self.agent_id = agent_id
        self.position = position
        self.bus = bus

        self.target: Position | None = None
        self.task: Task | None = None
        self.action: AgentAction | None = None
        self.attempt: int = 0

        # Local knowledge
        self.known_cells: set[CellObservation] = set()
        self.known_forest: dict[CellIndex, CellObservation] = {}

        # Contractor side of the auction
        self.proposals = ProposalBook()

        # Assignment inbox written by contractors
        self._pending_assignment: Assignment | None = None
        self._inbox_lock = threading.Lock()

        self._extinguish_started_at: int = -1

    @property
    def protocol(self):
        return self.bus.protocol

    @property
    def is_contractor(self) -> bool:
        """Whether this agent is the contractor of the task it holds."""
        task = self.task
        return task is not None and task.contractor_id == self.agent_id

    @property
    def has_pending_assignment(self) -> bool:
        return self._pending_assignment is not None

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, environment: Forest) -> AgentAction:
        """Execute one simulation step.

        Args:
            environment: Forest the agent flies over

        Returns:
            The action dispatched this tick
        """
        self._consume_assignment(environment)

        action = self.next_action(environment)

        self.assign_tasks(environment)

        self.action = action
        if action == AgentAction.SELECT_TASK:
            self.select_task(environment)
        elif action == AgentAction.SELECT_CELL:
            self.select_cell(environment)
        elif action == AgentAction.MOVE:
            self.move()
        elif action == AgentAction.EXTINGUISH:
            if self.extinguish(environment):
                x, y = self.position.cell()
                environment.mark_treated(x, y)
                self.target = None

        return action

    def next_action(self, environment: Forest) -> AgentAction:
        """Choose the action for this tick.

        When the agent hovers exactly over its target, the cell below is
        inspected and reported to the swarm before branching.
        """
        if self.task is None:
            return AgentAction.SELECT_TASK

        if self.target is None:
            return AgentAction.SELECT_CELL

        if self.target != self.position:
            return AgentAction.MOVE

        x, y = self.position.cell()
        observation = CellObservation(x=x, y=y, state=environment.cell_at(x, y))
        self.known_cells.add(observation)
        self.known_forest[(x, y)] = observation

        packet = DataPacket.create(
            origin_id=self.agent_id,
            position=self.position,
            known_cells=self.known_cells,
            task_id=self.task.task_id,
            task_announcement=self.is_contractor,
            timestamp=environment.current_tick,
        )
        if observation.state == CellState.HAZARDOUS:
            self.publish(packet, retain=True)
            return AgentAction.EXTINGUISH

        self.publish(packet, retain=False)
        self._extinguish_started_at = -1
        self.attempt += 1
        return AgentAction.SELECT_CELL

    # ------------------------------------------------------------------
    # Task selection
    # ------------------------------------------------------------------

    def select_task(self, environment: Forest) -> None:
        """Acquire a task, announce one, or bid for announced ones."""
        tasks = environment.tasks
        self.attempt += 1

        own_task = tasks.find_by_contractor(self.agent_id)
        if own_task is not None:
            self.request_for_bid(own_task, environment)
            self._adopt(own_task, environment)
            self.action = AgentAction.PROPOSED
            logger.debug(f"UAV {self.agent_id}: request for bid sent for task {own_task.task_id}")
            return

        if self.attempt >= self.protocol.task_attempt_limit:
            task = tasks.random_choice(self.bus.rng)
            if task is not None:
                self._adopt(task, environment)
                logger.info(f"UAV {self.agent_id}: random assignment to task {task.task_id}")
            self.attempt = 0
            return

        active = len(tasks)
        if active > 1:
            for packet in self.receive(same_task_only=True, exclude_contractor=False):
                if not packet.is_task_announcement:
                    continue
                task = tasks.get(packet.payload.task_id)
                if task is None:
                    continue
                self.propose(task)
                self.action = AgentAction.PROPOSED
                logger.debug(f"UAV {self.agent_id}: proposal sent to UAV {task.contractor_id}")
        elif active == 1:
            task = tasks.first()
            if task is not None:
                self._adopt(task, environment)

    def select_cell(self, environment: Forest) -> None:
        """Pick the next cell to inspect around the task boundary.

        Releases a resolved task, and repatriates a lost agent toward the
        closest peer working on the same task before walking.
        """
        task = self.task
        if task is None:
            return

        provisional = self.position

        if task.is_resolved:
            if self.is_contractor:
                environment.tasks.remove(task)
            self._release()
        elif self.attempt >= self.protocol.lost_attempt_limit:
            self.attempt = 0
            packets = self.receive(same_task_only=True, exclude_contractor=True)
            closest = self.find_closest(packets)
            if closest is not None:
                provisional = closest.with_z(self.position.z)
                logger.debug(f"UAV {self.agent_id}: repatriated using {len(packets)} messages")

        if self.task is not None:
            self.target = self.select_random_cell(environment, provisional)

    def select_random_cell(self, environment: Forest, provisional: Position) -> Position:
        """Bounded random walk around ``provisional`` along the task boundary band.

        Candidates must lie in the forest and at a distance from the task
        centroid within ``[radius - patrol_band_width, radius]``. After
        ``walk_max_trials`` rejected samples the provisional target is kept
        and ``attempt`` is incremented.
        """
        task = self.task
        protocol = self.protocol
        rng = self.bus.rng
        band_low = task.radius - protocol.patrol_band_width

        for _ in range(protocol.walk_max_trials):
            dx = rng.randint(-protocol.walk_max_offset, protocol.walk_max_offset)
            dy = rng.randint(-protocol.walk_max_offset, protocol.walk_max_offset)
            if dx == 0 and dy == 0:
                continue
            candidate = provisional.offset(dx, dy)
            if not environment.is_in_bounds(candidate):
                continue
            if band_low <= candidate.planar_distance_to(task.centroid) <= task.radius:
                return candidate

        self.attempt += 1
        return provisional

    def assign_tasks(self, environment: Forest) -> list[AgentId]:
        """Contractor-side allocation of the held task to the best bidders.

        Runs only when this agent is the contractor of its task and holds at
        least one proposal. A resolved task is removed from the registry
        instead.

        Returns:
            Ids of the agents awarded the task this round
        """
        task = self.task
        if task is None or task.contractor_id != self.agent_id or len(self.proposals) == 0:
            return []

        if task.is_resolved:
            environment.tasks.remove(task)
            logger.info(f"UAV {self.agent_id}: task {task.task_id} resolved and removed")
            return []

        total_utility = environment.tasks.total_utility()
        needed = allocation_quota(self.bus.fleet_size, task.utility, total_utility)

        assignment = Assignment(task_id=task.task_id, contractor_id=self.agent_id, target=task.centroid)
        winners = self.proposals.allocate(
            task,
            needed,
            is_idle=self.bus.is_idle,
            offer=lambda agent_id: self.bus.deliver_assignment(agent_id, assignment),
        )

        for winner in winners:
            logger.debug(f"UAV {winner}: assigned task {task.task_id} by UAV {self.agent_id}")
        logger.debug(f"UAV {self.agent_id}: assigned {task.assigned_count} UAV, needed {needed}")
        return winners

    # ------------------------------------------------------------------
    # Motion and fire fighting
    # ------------------------------------------------------------------

    def move(self) -> None:
        """Move toward the target at a fixed per-axis velocity.

        Each planar axis advances by at most ``linear_velocity``; the last
        step lands exactly on the target coordinate.
        """
        if self.target is None:
            return

        velocity = self.protocol.linear_velocity
        self.position = Position(
            _step_toward(self.position.x, self.target.x, velocity),
            _step_toward(self.position.y, self.target.y, velocity),
            self.position.z,
        )

    def extinguish(self, environment: Forest) -> bool:
        """Keep extinguishing the fire at the current location.

        Returns:
            True once ``steps_to_extinguish`` ticks have passed at this location
        """
        if self._extinguish_started_at == -1:
            self._extinguish_started_at = environment.current_tick

        if environment.current_tick - self._extinguish_started_at >= self.protocol.steps_to_extinguish:
            self._extinguish_started_at = -1
            return True
        return False

    # ------------------------------------------------------------------
    # Communication
    # ------------------------------------------------------------------

    def publish(self, packet: DataPacket, retain: bool) -> bool:
        return self.bus.relay.publish(self, packet, retain)

    def receive(self, same_task_only: bool = True, exclude_contractor: bool = False) -> list[DataPacket]:
        return self.bus.relay.receive(self, same_task_only=same_task_only, exclude_contractor=exclude_contractor)

    def find_closest(self, packets: list[DataPacket]) -> Position | None:
        return self.bus.relay.find_closest(self.position, packets)

    # ------------------------------------------------------------------
    # Auction
    # ------------------------------------------------------------------

    def request_for_bid(self, task: Task, environment: Forest) -> None:
        """Announce ``task`` to the swarm as its contractor."""
        packet = DataPacket.create(
            origin_id=self.agent_id,
            position=task.centroid.with_z(self.position.z),
            known_cells=None,
            task_id=task.task_id,
            task_announcement=True,
            timestamp=environment.current_tick,
        )
        self.publish(packet, retain=True)

    def propose(self, task: Task) -> float | None:
        """Bid for ``task`` with its contractor.

        Returns:
            The submitted bid, None if the contractor is unknown
        """
        contractor = self.bus.get_agent(task.contractor_id)
        if contractor is None:
            return None
        bid = compute_bid(
            task.utility,
            self.position.planar_distance_to(task.centroid),
            self.protocol.bid_distance_epsilon,
        )
        contractor.proposals.submit(self.agent_id, bid)
        return bid

    def reject(self, task: Task) -> None:
        """Tell the contractor of ``task`` not to consider this agent."""
        contractor = self.bus.get_agent(task.contractor_id)
        if contractor is not None:
            contractor.proposals.reject(self.agent_id)

    def offer_assignment(self, assignment: Assignment) -> bool:
        """Accept an award unless a task is already held or another award is pending.

        Called by a contractor; the award takes effect at the start of this
        agent's next tick.
        """
        with self._inbox_lock:
            if self.task is not None or self._pending_assignment is not None:
                return False
            self._pending_assignment = assignment
            return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _consume_assignment(self, environment: Forest) -> None:
        with self._inbox_lock:
            assignment = self._pending_assignment
            self._pending_assignment = None
            if assignment is None or self.task is not None:
                return
            task = environment.tasks.get(assignment.task_id)
            if task is None:
                logger.debug(f"UAV {self.agent_id}: awarded task {assignment.task_id} no longer active")
                return
            self._set_task(task, assignment.target)

    def _adopt(self, task: Task, environment: Forest) -> None:
        """Take ``task`` as own choice; a pending award takes precedence."""
        with self._inbox_lock:
            assignment = self._pending_assignment
            self._pending_assignment = None
            if assignment is not None:
                awarded = environment.tasks.get(assignment.task_id)
                if awarded is not None:
                    self._set_task(awarded, assignment.target)
                    return
            self._set_task(task, task.centroid)

    def _set_task(self, task: Task, target: Position) -> None:
        self.task = task
        self.target = target.with_z(self.position.z)
        self.attempt = 0

    def _release(self) -> None:
        self.task = None
        self.target = None
        self.action = None
        self.attempt = 0
        self._extinguish_started_at = -1

    def get_state(self) -> dict[str, Any]:
        """Snapshot of the agent for inspection and statistics."""
        return {
            "agent_id": self.agent_id,
            "position": self.position,
            "target": self.target,
            "task_id": self.task.task_id if self.task is not None else None,
            "action": self.action.value if self.action is not None else None,
            "attempt": self.attempt,
            "known_cells": len(self.known_cells),
            "is_contractor": self.is_contractor,
            "pending_proposals": len(self.proposals),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UAVAgent):
            return NotImplemented
        return self.agent_id == other.agent_id

    def __hash__(self) -> int:
        return hash(self.agent_id)

    def __str__(self) -> str:
        return f"UAV({self.agent_id}: {self.position.x:.2f},{self.position.y:.2f},{self.position.z:.2f} {self.action})"


def _step_toward(current: float, target: float, velocity: float) -> float:
    delta = target - current
    if abs(delta) <= velocity:
        return target
    return current + velocity if delta > 0 else current - velocity


__all__ = ["UAVAgent"]
