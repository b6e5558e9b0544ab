"""Type definitions and protocol constants for the FIRECONTROL swarm.

The numeric constants below are the protocol defaults; the runtime values
live in ``firecontrol.config.schema.ProtocolConfig``.
"""

from typing import TypeAlias

# =============================================================================
# Identifier Type Definitions
# =============================================================================

AgentId: TypeAlias = int
TaskId: TypeAlias = int
Tick: TypeAlias = int  # Simulation step index

# =============================================================================
# Spatial Type Definitions
# =============================================================================

CellIndex: TypeAlias = tuple[int, int]
Bid: TypeAlias = float  # Utility per unit of distance

# =============================================================================
# Protocol Constants
# =============================================================================

COMMUNICATION_RANGE: float = 60.0  # Max distance for packet exchange
LINEAR_VELOCITY: float = 0.02  # Per-axis displacement per tick
STEPS_TO_EXTINGUISH: int = 10  # Ticks spent over a burning cell

TASK_ATTEMPT_LIMIT: int = 500  # Idle ticks before a random task is forced
LOST_ATTEMPT_LIMIT: int = 10  # Fruitless targets before repatriation

WALK_MAX_OFFSET: int = 2  # Random-walk offsets are drawn in [-2, 2]
WALK_MAX_TRIALS: int = 10  # Samples before the walk gives up
PATROL_BAND_WIDTH: float = 7.0  # Accepted distances are [radius - 7, radius]

BID_DISTANCE_EPSILON: float = 1e-9

# =============================================================================
# Forest Constants
# =============================================================================

FOREST_WIDTH: int = 60
FOREST_HEIGHT: int = 60
AGENT_ALTITUDE: float = 1.0
