"""Tick driver for the FIRECONTROL swarm.

This module provides the simulation engine that builds the forest and the
swarm from configuration and invokes every agent exactly once per tick, in
registry order or on a thread pool.
"""

import random
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, Field

from firecontrol.config.schema import FirecontrolConfig
from firecontrol.sim.environment import Forest
from firecontrol.swarm.agent import UAVAgent
from firecontrol.swarm.bus import SwarmBus
from firecontrol.swarm.geometry import Position
from firecontrol.utils.enums import CellState
from firecontrol.utils.logger import logger


class SimulationState(BaseModel):
    """Snapshot of a run at the end of a tick."""

    tick: int = Field(..., ge=0, description="Ticks completed")
    burning_cells: int = Field(..., ge=0, description="Cells still on fire")
    treated_cells: int = Field(..., ge=0, description="Cells extinguished so far")
    active_tasks: int = Field(..., ge=0, description="Tasks in the active registry")
    idle_agents: int = Field(..., ge=0, description="Agents holding no task")
    outstanding_packets: int = Field(..., ge=0, description="Non-empty outbound slots")

    @property
    def is_extinguished(self) -> bool:
        return self.burning_cells == 0

    def __str__(self) -> str:
        return (
            f"SimulationState(t={self.tick}, burning={self.burning_cells}, treated={self.treated_cells}, "
            f"tasks={self.active_tasks}, idle={self.idle_agents})"
        )


class SwarmSimulation:
    """Main simulation engine for the swarm.

    This class manages:
    - The forest environment and its task registry
    - The swarm bus and the UAV agents
    - Per-tick task refresh and agent scheduling
    - Run summaries
    """

    def __init__(self, config: FirecontrolConfig | None = None):
        """Initialize the swarm simulation.

        Args:
            config: Full configuration (defaults to FirecontrolConfig())
        """
        self.config = config or FirecontrolConfig()
        self.rng = random.Random(self.config.simulation.seed)

        self.forest = Forest.from_config(self.config.forest)
        self.bus = SwarmBus(protocol=self.config.protocol, rng=self.rng)
        self._spawn_agents()
        self.forest.detect_tasks(self.bus.agents)

        self.history: list[SimulationState] = []

        logger.info(
            f"SwarmSimulation initialized: {len(self.bus.agents)} agents, "
            f"{len(self.forest.tasks)} tasks, {self.forest}"
        )

    def _spawn_agents(self) -> None:
        """Place agents at random cells of the forest at the configured altitude."""
        altitude = self.config.simulation.agent_altitude
        for agent_id in range(self.config.simulation.num_agents):
            position = Position(
                float(self.rng.randrange(self.forest.width)),
                float(self.rng.randrange(self.forest.height)),
                altitude,
            )
            self.bus.register_agent(UAVAgent(agent_id, position, self.bus))

    def step(self) -> SimulationState:
        """Advance the simulation by one tick.

        This method:
        1. Refreshes task radius and utility from the burning cells
        2. Calls tick() on every agent exactly once
        3. Advances the forest clock

        Returns:
            State at the end of the tick
        """
        self.forest.refresh_tasks()

        agents = self.bus.agents
        if self.config.simulation.parallel:
            with ThreadPoolExecutor(max_workers=self.config.simulation.max_workers) as executor:
                futures = [executor.submit(agent.tick, self.forest) for agent in agents]
            for agent, future in zip(agents, futures, strict=True):
                error = future.exception()
                if error is not None:
                    logger.warning(f"Error in agent {agent.agent_id} tick: {error}")
        else:
            for agent in agents:
                try:
                    agent.tick(self.forest)
                except Exception as e:
                    logger.warning(f"Error in agent {agent.agent_id} tick: {e}")

        self.forest.current_tick += 1

        state = self.get_state()
        self.history.append(state)
        logger.debug(f"Simulation step completed: {state}")
        return state

    def run(self, max_ticks: int | None = None) -> SimulationState:
        """Run until every fire is out or the tick budget is exhausted.

        Args:
            max_ticks: Tick budget (defaults to simulation.max_ticks)

        Returns:
            Final state
        """
        budget = max_ticks if max_ticks is not None else self.config.simulation.max_ticks
        state = self.get_state()
        for _ in range(budget):
            if state.is_extinguished:
                break
            state = self.step()

        logger.info(f"Run finished: {state}")
        return state

    def get_state(self) -> SimulationState:
        """Get the current state of the run."""
        return SimulationState(
            tick=self.forest.current_tick,
            burning_cells=self.forest.count_cells(CellState.HAZARDOUS),
            treated_cells=self.forest.count_cells(CellState.TREATED),
            active_tasks=len(self.forest.tasks),
            idle_agents=sum(1 for agent in self.bus.agents if agent.task is None),
            outstanding_packets=len(self.bus.relay.all_packets()),
        )

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the current run."""
        state = self.get_state()
        return {
            "tick": state.tick,
            "extinguished": state.is_extinguished,
            "forest": self.forest.get_stats(),
            "swarm": self.bus.get_system_stats(),
            "agents": [agent.get_state() for agent in self.bus.agents],
        }

    def __str__(self) -> str:
        return f"SwarmSimulation(agents={len(self.bus.agents)}, tasks={len(self.forest.tasks)}, tick={self.forest.current_tick})"


__all__ = ["SimulationState", "SwarmSimulation"]
