"""FIRECONTROL - Decentralized UAV swarm for forest-fire suppression."""

from .sim import Forest, SimulationState, SwarmSimulation
from .swarm import SwarmBus, Task, TaskRegistry, UAVAgent

__version__ = "0.1.0"
__description__ = "Decentralized UAV swarm for forest-fire suppression"

__all__ = [
    "Forest",
    "SimulationState",
    "SwarmSimulation",
    "SwarmBus",
    "Task",
    "TaskRegistry",
    "UAVAgent",
]
