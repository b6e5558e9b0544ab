"""Tests for the swarm simulation engine.

This module tests the tick driver that builds the forest and the swarm from
configuration, invokes every agent once per tick and stops when the fires
are out.
"""

import pytest
from firecontrol.config.schema import (
    FireSeed,
    FirecontrolConfig,
    ForestConfig,
    ProtocolConfig,
    SimulationConfig,
)
from firecontrol.sim.engine import SimulationState, SwarmSimulation
from firecontrol.utils.enums import CellState
from pydantic import ValidationError


def small_config(parallel: bool = False) -> FirecontrolConfig:
    return FirecontrolConfig(
        protocol=ProtocolConfig(linear_velocity=1.0, steps_to_extinguish=1),
        forest=ForestConfig(width=10, height=10, fire_seeds=[FireSeed(x=5, y=5, radius=0)]),
        simulation=SimulationConfig(num_agents=2, max_ticks=200, seed=3, parallel=parallel, max_workers=2),
    )


class TestSimulationState:
    """Test the state snapshot model."""

    def test_state_creation(self):
        """Test creation and the extinguished flag."""
        state = SimulationState(
            tick=3, burning_cells=0, treated_cells=4, active_tasks=0, idle_agents=2, outstanding_packets=1
        )
        assert state.is_extinguished
        assert "t=3" in str(state)

    def test_state_validation(self):
        """Test negative counters are rejected."""
        with pytest.raises(ValidationError):
            SimulationState(
                tick=-1, burning_cells=0, treated_cells=0, active_tasks=0, idle_agents=0, outstanding_packets=0
            )


class TestSwarmSimulationSetup:
    """Test simulation construction."""

    def test_default_configuration(self):
        """Test agents and tasks are created from the defaults."""
        config = FirecontrolConfig(simulation=SimulationConfig(seed=42))
        simulation = SwarmSimulation(config)

        assert len(simulation.bus.agents) == 10
        assert len(simulation.forest.tasks) == 2
        for agent in simulation.bus.agents:
            assert simulation.forest.is_in_bounds(agent.position)
            assert agent.position.z == config.simulation.agent_altitude
        contractors = {task.contractor_id for task in simulation.forest.tasks}
        assert contractors <= {agent.agent_id for agent in simulation.bus.agents}

    def test_seeded_runs_are_reproducible(self):
        """Test identical seeds yield identical spawns."""
        config = FirecontrolConfig(simulation=SimulationConfig(seed=11))
        first = SwarmSimulation(config)
        second = SwarmSimulation(config)
        assert [a.position for a in first.bus.agents] == [a.position for a in second.bus.agents]

    def test_initial_state(self):
        """Test the state before any tick."""
        simulation = SwarmSimulation(small_config())
        state = simulation.get_state()
        assert state.tick == 0
        assert state.burning_cells == 1
        assert state.active_tasks == 1
        assert state.idle_agents == 2


class TestSwarmSimulationRun:
    """Test stepping and running."""

    def test_step_advances_clock(self):
        """Test a step ticks every agent and advances time."""
        simulation = SwarmSimulation(small_config())
        state = simulation.step()

        assert state.tick == 1
        assert simulation.forest.current_tick == 1
        assert len(simulation.history) == 1
        assert state.idle_agents == 0

    def test_target_only_with_task(self):
        """Test no agent ever holds a target without a task."""
        config = FirecontrolConfig(simulation=SimulationConfig(seed=5, num_agents=6))
        simulation = SwarmSimulation(config)

        for _ in range(150):
            simulation.step()
            for agent in simulation.bus.agents:
                assert agent.target is None or agent.task is not None

    def test_run_extinguishes_single_fire(self):
        """Test a small swarm puts out a single burning cell."""
        simulation = SwarmSimulation(small_config())
        state = simulation.run()

        assert state.is_extinguished
        assert state.tick < 200
        assert simulation.forest.cell_at(5, 5) == CellState.TREATED

    def test_parallel_run_extinguishes_single_fire(self):
        """Test the thread-pool scheduler reaches the same outcome."""
        simulation = SwarmSimulation(small_config(parallel=True))
        state = simulation.run()

        assert state.is_extinguished
        assert simulation.forest.cell_at(5, 5) == CellState.TREATED

    def test_run_respects_tick_budget(self):
        """Test the run stops when the budget is exhausted."""
        config = FirecontrolConfig(simulation=SimulationConfig(seed=1))
        simulation = SwarmSimulation(config)
        state = simulation.run(max_ticks=5)

        assert state.tick == 5
        assert not state.is_extinguished

    def test_agent_failure_does_not_stop_tick(self, monkeypatch):
        """Test an exception in one agent is logged and the tick completes."""
        simulation = SwarmSimulation(small_config())
        failing = simulation.bus.agents[0]

        def boom(environment):
            raise RuntimeError("rotor failure")

        monkeypatch.setattr(failing, "tick", boom)
        state = simulation.step()

        assert state.tick == 1
        assert simulation.bus.agents[1].task is not None

    def test_get_summary(self):
        """Test the run summary."""
        simulation = SwarmSimulation(small_config())
        simulation.step()
        summary = simulation.get_summary()

        assert summary["tick"] == 1
        assert summary["extinguished"] is False
        assert summary["swarm"]["total_agents"] == 2
        assert len(summary["agents"]) == 2
        assert summary["forest"]["grid_size"] == (10, 10)
