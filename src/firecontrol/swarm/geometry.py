"""Spatial primitives for the FIRECONTROL swarm.

Positions are continuous ``(x, y, z)`` triples. Communication reachability is
an idealized symmetric range check on Euclidean distance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from firecontrol.utils.types import CellIndex


@dataclass(frozen=True)
class Position:
    """Continuous position in the air space above the forest."""

    x: float
    y: float
    z: float = 0.0

    def distance_to(self, other: Position) -> float:
        """Euclidean distance in three dimensions."""
        return math.sqrt((self.x - other.x) ** 2 + (self.y - other.y) ** 2 + (self.z - other.z) ** 2)

    def planar_distance_to(self, other: Position) -> float:
        """Euclidean distance on the forest plane, ignoring altitude."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def with_z(self, z: float) -> Position:
        """Same planar location at another altitude."""
        return Position(self.x, self.y, z)

    def offset(self, dx: float, dy: float) -> Position:
        """Planar translation keeping the altitude."""
        return Position(self.x + dx, self.y + dy, self.z)

    def cell(self) -> CellIndex:
        """Index of the forest cell below this position."""
        return int(self.x), int(self.y)


def in_communication_range(a: Position, b: Position, communication_range: float) -> bool:
    """Check whether two positions can exchange packets.

    Args:
        a: First position
        b: Second position
        communication_range: Maximum distance for an exchange

    Returns:
        True if the distance between ``a`` and ``b`` is within range
    """
    return a.distance_to(b) <= communication_range


__all__ = ["Position", "in_communication_range"]
