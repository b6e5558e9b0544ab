"""Configuration schema models for the FIRECONTROL swarm.

This module defines Pydantic models for configuration validation and runtime
settings: the auction/communication protocol parameters, the forest
environment, the tick driver and logging.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from firecontrol.utils.types import (
    AGENT_ALTITUDE,
    BID_DISTANCE_EPSILON,
    COMMUNICATION_RANGE,
    FOREST_HEIGHT,
    FOREST_WIDTH,
    LINEAR_VELOCITY,
    LOST_ATTEMPT_LIMIT,
    PATROL_BAND_WIDTH,
    STEPS_TO_EXTINGUISH,
    TASK_ATTEMPT_LIMIT,
    WALK_MAX_OFFSET,
    WALK_MAX_TRIALS,
)


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProtocolConfig(BaseModel):
    """Configuration for the communication and auction protocol."""

    communication_range: float = Field(
        default=COMMUNICATION_RANGE, gt=0.0, le=10000.0, description="Max distance for packet exchange"
    )
    linear_velocity: float = Field(default=LINEAR_VELOCITY, gt=0.0, le=100.0, description="Per-axis step per tick")
    steps_to_extinguish: int = Field(
        default=STEPS_TO_EXTINGUISH, ge=0, le=10000, description="Ticks needed to extinguish a cell"
    )
    task_attempt_limit: int = Field(
        default=TASK_ATTEMPT_LIMIT, ge=1, le=1000000, description="Idle ticks before a random task is forced"
    )
    lost_attempt_limit: int = Field(
        default=LOST_ATTEMPT_LIMIT, ge=1, le=1000000, description="Fruitless targets before repatriation"
    )
    walk_max_offset: int = Field(default=WALK_MAX_OFFSET, ge=1, le=100, description="Random-walk offset bound")
    walk_max_trials: int = Field(default=WALK_MAX_TRIALS, ge=1, le=1000, description="Random-walk samples per pick")
    patrol_band_width: float = Field(
        default=PATROL_BAND_WIDTH, ge=0.0, le=1000.0, description="Width of the patrolled band inside the radius"
    )
    bid_distance_epsilon: float = Field(
        default=BID_DISTANCE_EPSILON, gt=0.0, le=1.0, description="Distances below this yield the maximal bid"
    )


class FireSeed(BaseModel):
    """A disc of burning cells placed in the forest at start-up."""

    x: int = Field(..., ge=0, description="Seed centre column")
    y: int = Field(..., ge=0, description="Seed centre row")
    radius: int = Field(default=3, ge=0, le=1000, description="Seed radius in cells")


class ForestConfig(BaseModel):
    """Configuration for the forest environment."""

    width: int = Field(default=FOREST_WIDTH, ge=1, le=10000, description="Forest width in cells")
    height: int = Field(default=FOREST_HEIGHT, ge=1, le=10000, description="Forest height in cells")
    fire_seeds: list[FireSeed] = Field(
        default_factory=lambda: [FireSeed(x=15, y=15, radius=4), FireSeed(x=45, y=40, radius=6)],
        description="Fire clusters ignited at start-up",
    )

    @model_validator(mode="after")
    def validate_seeds_in_bounds(self) -> "ForestConfig":
        """Validate that every fire seed centre lies inside the forest."""
        for seed in self.fire_seeds:
            if seed.x >= self.width or seed.y >= self.height:
                raise ValueError(f"Fire seed ({seed.x}, {seed.y}) lies outside the forest")
        return self


class SimulationConfig(BaseModel):
    """Configuration for the tick driver."""

    num_agents: int = Field(default=10, ge=1, le=10000, description="Number of UAV agents")
    max_ticks: int = Field(default=20000, ge=1, le=10000000, description="Tick budget for a run")
    seed: int | None = Field(default=None, description="Random seed for reproducible runs")
    agent_altitude: float = Field(default=AGENT_ALTITUDE, ge=0.0, description="Flight altitude of every agent")
    parallel: bool = Field(default=False, description="Tick agents on a thread pool")
    max_workers: int = Field(default=4, ge=1, le=256, description="Thread pool size for parallel ticks")

    model_config = ConfigDict(validate_assignment=True)


class LoggingConfig(BaseModel):
    """Configuration for logging parameters."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )
    enable_console: bool = Field(default=True, description="Enable console output")

    model_config = ConfigDict(use_enum_values=True)


class FirecontrolConfig(BaseModel):
    """Main configuration model for the FIRECONTROL swarm."""

    version: str = Field(default="0.1.0", description="FIRECONTROL version")
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig, description="Protocol configuration")
    forest: ForestConfig = Field(default_factory=ForestConfig, description="Forest configuration")
    simulation: SimulationConfig = Field(default_factory=SimulationConfig, description="Tick driver configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        if not v or not isinstance(v, str):
            raise ValueError("Version must be a non-empty string")
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format X.Y.Z")
        try:
            for part in parts:
                int(part)
        except ValueError:
            raise ValueError("Version parts must be integers") from None
        return v

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "version": "0.1.0",
                "protocol": {
                    "communication_range": 60.0,
                    "linear_velocity": 0.02,
                    "steps_to_extinguish": 10,
                    "task_attempt_limit": 500,
                    "lost_attempt_limit": 10,
                    "walk_max_offset": 2,
                    "walk_max_trials": 10,
                    "patrol_band_width": 7.0,
                    "bid_distance_epsilon": 1e-9,
                },
                "forest": {
                    "width": 60,
                    "height": 60,
                    "fire_seeds": [{"x": 15, "y": 15, "radius": 4}, {"x": 45, "y": 40, "radius": 6}],
                },
                "simulation": {
                    "num_agents": 10,
                    "max_ticks": 20000,
                    "seed": 42,
                    "agent_altitude": 1.0,
                    "parallel": False,
                    "max_workers": 4,
                },
                "logging": {
                    "level": "INFO",
                    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    "enable_console": True,
                },
            }
        },
    )
