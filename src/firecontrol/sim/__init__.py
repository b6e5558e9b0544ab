"""Simulation harness for the FIRECONTROL swarm.

This module provides the forest environment the agents fly over and the
tick driver that invokes every agent once per discrete step.
"""

from .engine import SimulationState, SwarmSimulation
from .environment import Forest

__all__ = [
    "Forest",
    "SimulationState",
    "SwarmSimulation",
]
