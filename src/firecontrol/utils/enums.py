"""Domain enumerations for the FIRECONTROL swarm.

This module defines the cell states of the forest environment and the
decision states of a UAV agent.
"""

from enum import Enum


class CellState(Enum):
    """State of a single forest cell."""

    CLEAR = "CLEAR"
    HAZARDOUS = "HAZARDOUS"
    TREATED = "TREATED"


class AgentAction(Enum):
    """Decision states of the per-agent state machine."""

    SELECT_TASK = "SELECT_TASK"
    SELECT_CELL = "SELECT_CELL"
    MOVE = "MOVE"
    EXTINGUISH = "EXTINGUISH"
    PROPOSED = "PROPOSED"
