"""Data packets exchanged between UAV agents.

A packet is the atomic unit of information exchange: a header identifying the
sender, when the packet was built and whether it announces a task, and a
payload carrying the sender's reported position, a snapshot of the cells it
has inspected and the task it refers to. Packets are immutable once built.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from firecontrol.swarm.geometry import Position
from firecontrol.utils.enums import CellState
from firecontrol.utils.types import AgentId, TaskId, Tick

# Global monotonic counter disambiguating packets built on the same tick
_sequence = itertools.count(1)


class CellObservation(BaseModel):
    """A forest cell as seen by an agent when it inspected it."""

    x: int = Field(..., description="Cell column")
    y: int = Field(..., description="Cell row")
    state: CellState = Field(..., description="Cell state at inspection time")

    model_config = ConfigDict(frozen=True)


class PacketHeader(BaseModel):
    """Identification of a packet."""

    origin_id: AgentId = Field(..., description="Id of the publishing agent")
    timestamp: int = Field(..., ge=0, description="Simulation tick the packet was built on")
    sequence: int = Field(..., ge=1, description="Global creation order")
    task_announcement: bool = Field(default=False, description="True for a contractor request-for-bid")

    model_config = ConfigDict(frozen=True)


class PacketPayload(BaseModel):
    """Information shared by the publishing agent."""

    position: Position = Field(..., description="Position reported by the sender")
    known_cells: frozenset[CellObservation] | None = Field(
        default=None, description="Snapshot of the sender's inspected cells"
    )
    task_id: TaskId | None = Field(default=None, description="Task the packet refers to")

    model_config = ConfigDict(frozen=True)


class DataPacket(BaseModel):
    """Header plus payload; the content of an agent's outbound slot."""

    header: PacketHeader
    payload: PacketPayload

    model_config = ConfigDict(frozen=True)

    @classmethod
    def create(
        cls,
        origin_id: AgentId,
        position: Position,
        known_cells: Iterable[CellObservation] | None,
        task_id: TaskId | None,
        task_announcement: bool,
        timestamp: Tick = 0,
    ) -> DataPacket:
        """Build a fresh packet with the next sequence number.

        Args:
            origin_id: Id of the publishing agent
            position: Position reported by the sender
            known_cells: Cells inspected so far (copied), None for announcements
            task_id: Referenced task, if any
            task_announcement: Whether the packet is a request-for-bid
            timestamp: Current simulation tick

        Returns:
            New immutable packet
        """
        snapshot = frozenset(known_cells) if known_cells is not None else None
        return cls(
            header=PacketHeader(
                origin_id=origin_id,
                timestamp=timestamp,
                sequence=next(_sequence),
                task_announcement=task_announcement,
            ),
            payload=PacketPayload(position=position, known_cells=snapshot, task_id=task_id),
        )

    @property
    def origin_id(self) -> AgentId:
        return self.header.origin_id

    @property
    def is_task_announcement(self) -> bool:
        return self.header.task_announcement


__all__ = ["CellObservation", "PacketHeader", "PacketPayload", "DataPacket"]
