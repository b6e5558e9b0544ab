"""Swarm coordination module for the FIRECONTROL project.

This module provides decentralized task allocation for UAV agents fighting
forest fires: range-limited packet exchange and a contract-net auction run
by each task's contractor.

The primary components include:
- UAVAgent: per-agent decision state machine
- SwarmBus: id-addressed store of agents plus the communication relay
- CommunicationRelay: one outbound packet slot per agent, range queries
- ProposalBook: contractor-side bids and allocation
- Task / TaskRegistry: fire clusters and the shared active set
"""

from .agent import UAVAgent
from .auction import Assignment, ProposalBook, allocation_quota, compute_bid
from .bus import SwarmBus
from .geometry import Position, in_communication_range
from .packet import CellObservation, DataPacket, PacketHeader, PacketPayload
from .relay import CommunicationRelay
from .task import Task, TaskRegistry

__all__ = [
    # Agents and coordination
    "UAVAgent",
    "SwarmBus",
    "CommunicationRelay",
    # Auction
    "Assignment",
    "ProposalBook",
    "allocation_quota",
    "compute_bid",
    # Data model
    "Position",
    "in_communication_range",
    "CellObservation",
    "DataPacket",
    "PacketHeader",
    "PacketPayload",
    "Task",
    "TaskRegistry",
]
