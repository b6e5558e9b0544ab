"""Communication relay for the FIRECONTROL swarm.

Each agent owns exactly one outbound slot holding its last published packet.
The relay stores those slots and answers range/filter queries on demand:
visibility is last-publish-wins, and a peer observes a packet whenever it
next queries the relay.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from firecontrol.swarm.geometry import Position, in_communication_range
from firecontrol.swarm.packet import DataPacket
from firecontrol.utils.types import COMMUNICATION_RANGE, AgentId

if TYPE_CHECKING:
    from firecontrol.swarm.agent import UAVAgent

logger = logging.getLogger(__name__)


class CommunicationRelay:
    """Outbound packet slots plus range-limited receive queries."""

    def __init__(self, communication_range: float = COMMUNICATION_RANGE):
        """Initialize communication relay.

        Args:
            communication_range: Maximum distance at which a packet can be received
        """
        if communication_range <= 0:
            raise ValueError("Communication range must be positive")

        self.communication_range = communication_range
        self._slots: dict[AgentId, DataPacket] = {}
        self._lock = threading.RLock()

    def publish(self, agent: UAVAgent, packet: DataPacket, retain: bool) -> bool:
        """Place ``packet`` in the agent's outbound slot.

        A retained publish always replaces the slot. A non-retained publish
        replaces it only when the agent is not the contractor of its own
        task, so contractor announcements are never overwritten by ordinary
        observation reports.

        Args:
            agent: Publishing agent
            packet: Packet to publish
            retain: Whether the packet must be stored unconditionally

        Returns:
            True if the slot now holds ``packet``
        """
        with self._lock:
            if retain or not agent.is_contractor:
                self._slots[agent.agent_id] = packet
                return True
        return False

    def receive(
        self,
        agent: UAVAgent,
        same_task_only: bool = True,
        exclude_contractor: bool = False,
    ) -> list[DataPacket]:
        """Collect the packets currently visible to ``agent``.

        A packet is visible when it comes from another agent, its reported
        position lies within communication range, it refers to the
        receiver's task (or the receiver has none) when ``same_task_only`` is
        set, and, when ``exclude_contractor`` is set, it does not come from
        the contractor of the receiver's task.

        Args:
            agent: Receiving agent
            same_task_only: Keep only packets about the receiver's task
            exclude_contractor: Drop packets from the receiver's task contractor

        Returns:
            Unordered list holding at most one packet per sender
        """
        task = agent.task
        own_task_id = task.task_id if task is not None else None
        contractor_id = task.contractor_id if task is not None else None

        received = []
        for sender_id, packet in self.all_slots().items():
            if sender_id == agent.agent_id:
                continue
            if not in_communication_range(agent.position, packet.payload.position, self.communication_range):
                continue
            if same_task_only and own_task_id is not None and packet.payload.task_id != own_task_id:
                continue
            if exclude_contractor and contractor_id is not None and sender_id == contractor_id:
                continue
            received.append(packet)
        return received

    @staticmethod
    def find_closest(origin: Position, packets: Iterable[DataPacket]) -> Position | None:
        """Reported position closest to ``origin``.

        Args:
            origin: Position of the querying agent
            packets: Packets to scan

        Returns:
            Closest reported position, None if ``packets`` is empty
        """
        closest = None
        best_distance = float("inf")
        for packet in packets:
            distance = origin.distance_to(packet.payload.position)
            if distance < best_distance:
                best_distance = distance
                closest = packet.payload.position
        return closest

    def get_packet(self, agent_id: AgentId) -> DataPacket | None:
        """Current outbound packet of an agent."""
        with self._lock:
            return self._slots.get(agent_id)

    def all_slots(self) -> dict[AgentId, DataPacket]:
        with self._lock:
            return dict(self._slots)

    def all_packets(self) -> list[DataPacket]:
        """Every outstanding packet, regardless of range."""
        return list(self.all_slots().values())

    def clear(self, agent_id: AgentId) -> None:
        """Empty an agent's outbound slot."""
        with self._lock:
            self._slots.pop(agent_id, None)

    def reset(self) -> None:
        with self._lock:
            self._slots.clear()
        logger.debug("Reset communication relay")

    def get_stats(self) -> dict[str, Any]:
        slots = self.all_slots()
        return {
            "outstanding_packets": len(slots),
            "task_announcements": sum(1 for p in slots.values() if p.is_task_announcement),
            "communication_range": self.communication_range,
        }


__all__ = ["CommunicationRelay"]
