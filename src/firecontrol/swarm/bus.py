"""Swarm bus: the shared store every agent is addressed through.

Agents never hold references to each other. They hold ids and resolve them
through the bus, which owns the agent registry, the communication relay,
the protocol parameters and the random source of the swarm.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from firecontrol.config.schema import ProtocolConfig
from firecontrol.swarm.auction import Assignment
from firecontrol.swarm.geometry import in_communication_range
from firecontrol.swarm.relay import CommunicationRelay
from firecontrol.swarm.task import Task
from firecontrol.utils.types import AgentId, TaskId

if TYPE_CHECKING:
    from firecontrol.swarm.agent import UAVAgent

logger = logging.getLogger(__name__)


class SwarmBus:
    """Central store for swarm coordination.

    This class manages:
    - Agent registration, addressed by id in registration order
    - The communication relay holding every outbound packet slot
    - Assignment hand-over from contractors to winners
    - Neighbour and enrolment queries within communication range
    """

    def __init__(
        self,
        protocol: ProtocolConfig | None = None,
        fleet_size: int | None = None,
        rng: random.Random | None = None,
        max_agents: int = 10000,
    ):
        """Initialize swarm bus.

        Args:
            protocol: Protocol parameters (defaults to ProtocolConfig())
            fleet_size: Fleet size used for allocation quotas (defaults to the registered count)
            rng: Random source shared by the agents
            max_agents: Maximum number of agents supported
        """
        if fleet_size is not None and fleet_size <= 0:
            raise ValueError("Fleet size must be positive")
        if max_agents <= 0:
            raise ValueError("Max agents must be positive")

        self.protocol = protocol or ProtocolConfig()
        self.rng = rng or random.Random()
        self.max_agents = max_agents
        self.relay = CommunicationRelay(communication_range=self.protocol.communication_range)

        self._fleet_size = fleet_size
        self.registered_agents: dict[AgentId, UAVAgent] = {}

        logger.info(f"Initialized SwarmBus: range={self.protocol.communication_range}, max_agents={max_agents}")

    @property
    def fleet_size(self) -> int:
        """Number of agents quotas are computed against."""
        if self._fleet_size is not None:
            return self._fleet_size
        return len(self.registered_agents)

    @property
    def agents(self) -> list[UAVAgent]:
        """Registered agents in registration order."""
        return list(self.registered_agents.values())

    def register_agent(self, agent: UAVAgent) -> bool:
        """Register an agent in the swarm.

        Returns:
            True if registration successful, False otherwise
        """
        if len(self.registered_agents) >= self.max_agents:
            logger.warning(f"Cannot register agent {agent.agent_id}: maximum capacity ({self.max_agents}) reached")
            return False

        if agent.agent_id in self.registered_agents:
            logger.warning(f"Cannot register agent {agent.agent_id}: agent ID already exists")
            return False

        self.registered_agents[agent.agent_id] = agent
        logger.debug(f"Registered agent {agent.agent_id} at {agent.position}")
        return True

    def unregister_agent(self, agent_id: AgentId) -> bool:
        """Unregister an agent and drop its outbound packet.

        Returns:
            True if unregistration successful, False otherwise
        """
        if agent_id not in self.registered_agents:
            logger.warning(f"Cannot unregister agent {agent_id}: agent not found")
            return False

        del self.registered_agents[agent_id]
        self.relay.clear(agent_id)
        logger.debug(f"Unregistered agent {agent_id}")
        return True

    def get_agent(self, agent_id: AgentId) -> UAVAgent | None:
        return self.registered_agents.get(agent_id)

    def is_idle(self, agent_id: AgentId) -> bool:
        """Whether an agent holds no task and has no award pending."""
        agent = self.get_agent(agent_id)
        return agent is not None and agent.task is None and not agent.has_pending_assignment

    def deliver_assignment(self, agent_id: AgentId, assignment: Assignment) -> bool:
        """Hand an awarded task over to the winning agent.

        Returns:
            True if the agent accepted the award
        """
        agent = self.get_agent(agent_id)
        if agent is None:
            logger.warning(f"Cannot deliver task {assignment.task_id} to agent {agent_id}: agent not found")
            return False
        return agent.offer_assignment(assignment)

    def get_neighbors(self, agent_id: AgentId, radius: float | None = None) -> list[UAVAgent]:
        """Agents whose actual position lies within range of ``agent_id``.

        Args:
            agent_id: ID of agent to find neighbors for
            radius: Search radius (uses the communication range if None)

        Returns:
            List of neighbouring agents
        """
        agent = self.get_agent(agent_id)
        if agent is None:
            logger.warning(f"Cannot get neighbors for agent {agent_id}: agent not found")
            return []

        radius = self.protocol.communication_range if radius is None else radius
        return [
            other
            for other_id, other in self.registered_agents.items()
            if other_id != agent_id and in_communication_range(agent.position, other.position, radius)
        ]

    def retrieve_agents(self, agent_id: AgentId, tasks: Iterable[Task]) -> dict[TaskId, int]:
        """Count, per task, the agents in range of ``agent_id`` enrolled in it.

        The querying agent counts itself. The number of uncommitted agents
        in range is the neighbourhood size minus the sum of the counts.

        Args:
            agent_id: ID of the querying agent
            tasks: Active tasks to count enrolment for

        Returns:
            Mapping from task id to enrolled agents in range
        """
        status = {task.task_id: 0 for task in tasks}
        agent = self.get_agent(agent_id)
        if agent is None:
            return status

        for other in self.registered_agents.values():
            if not in_communication_range(agent.position, other.position, self.protocol.communication_range):
                continue
            task = other.task
            if task is not None and task.task_id in status:
                status[task.task_id] += 1
        return status

    def get_agent_info(self, agent_id: AgentId) -> dict[str, Any] | None:
        """Get information about a registered agent."""
        agent = self.get_agent(agent_id)
        if agent is None:
            return None
        return agent.get_state()

    def get_system_stats(self) -> dict[str, Any]:
        """Get system statistics."""
        agents = self.agents
        return {
            "total_agents": len(agents),
            "fleet_size": self.fleet_size,
            "idle_agents": sum(1 for a in agents if a.task is None),
            "contractors": sum(1 for a in agents if a.is_contractor),
            "relay": self.relay.get_stats(),
        }

    def reset(self) -> None:
        """Reset the entire swarm system."""
        self.registered_agents.clear()
        self.relay.reset()
        logger.info("Reset SwarmBus system")


__all__ = ["SwarmBus"]
