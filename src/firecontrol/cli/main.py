"""Main CLI interface for the FIRECONTROL swarm.

This module provides the command-line interface using the Typer framework
for running forest-fire suppression simulations.

Usage:
    firecontrol simulate --agents 20 --seed 42
    firecontrol init-config firecontrol.yaml
    firecontrol version
"""

import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from firecontrol.config.loaders import YamlConfigLoader
from firecontrol.config.schema import FirecontrolConfig
from firecontrol.sim.engine import SwarmSimulation
from firecontrol.utils.logger import configure_logging, logger

console = Console()

app = typer.Typer(
    name="firecontrol",
    help="FIRECONTROL - Decentralized UAV swarm for forest-fire suppression",
    add_completion=False,
    rich_markup_mode="rich",
)


def create_cli_app() -> typer.Typer:
    """Return the configured CLI application."""
    return app


@app.command()
def simulate(
    config_file: str | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
    ticks: int | None = typer.Option(None, "--ticks", "-t", help="Tick budget override"),
    agents: int | None = typer.Option(None, "--agents", "-n", help="Number of UAV agents"),
    seed: int | None = typer.Option(None, "--seed", "-s", help="Random seed"),
    parallel: bool = typer.Option(False, "--parallel", help="Tick agents on a thread pool"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> dict[str, Any]:
    """Run a forest-fire suppression simulation until the fires are out or the tick budget ends."""
    result = simulate_command(
        config_file=config_file,
        ticks=ticks,
        agents=agents,
        seed=seed,
        parallel=parallel,
        verbose=verbose,
    )
    if result.get("status") == "error":
        raise typer.Exit(code=1)
    return result


def simulate_command(
    config_file: str | None = None,
    ticks: int | None = None,
    agents: int | None = None,
    seed: int | None = None,
    parallel: bool = False,
    verbose: bool = False,
) -> dict[str, Any]:
    """Execute the simulate command.

    Args:
        config_file: Optional configuration file path
        ticks: Optional tick budget override
        agents: Optional agent count override
        seed: Optional random seed override
        parallel: Tick agents on a thread pool
        verbose: Enable debug logging

    Returns:
        Simulation summary dictionary

    Raises:
        FileNotFoundError: If config file not found
    """
    if config_file:
        if not Path(config_file).exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        config = load_cli_config(config_file)
    else:
        config = create_default_config()

    if agents is not None:
        config.simulation.num_agents = agents
    if seed is not None:
        config.simulation.seed = seed
    if parallel:
        config.simulation.parallel = True

    configure_logging(config.logging)
    if verbose:
        logger.setLevel(logging.DEBUG)

    console.print("[bold green]Starting FIRECONTROL simulation[/bold green]")
    console.print(
        f"[dim]{config.simulation.num_agents} agents, forest {config.forest.width}x{config.forest.height}, "
        f"seed {config.simulation.seed}[/dim]"
    )

    try:
        simulation = SwarmSimulation(config)
        state = simulation.run(ticks)
    except KeyboardInterrupt:
        console.print("[bold yellow]Simulation interrupted by user[/bold yellow]")
        raise
    except Exception as e:
        console.print(f"[bold red]Simulation error: {e}[/bold red]")
        return {"status": "error", "error_message": str(e)}

    table = Table(title="Simulation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Ticks", str(state.tick))
    table.add_row("Burning cells", str(state.burning_cells))
    table.add_row("Treated cells", str(state.treated_cells))
    table.add_row("Active tasks", str(state.active_tasks))
    table.add_row("Idle agents", str(state.idle_agents))
    console.print(table)

    if state.is_extinguished:
        console.print("[bold green]All fires extinguished[/bold green]")
    else:
        console.print("[bold yellow]Tick budget exhausted with fires still burning[/bold yellow]")

    return {"status": "success", **simulation.get_summary()}


@app.command("init-config")
def init_config(
    path: str = typer.Argument(..., help="Where to write the example configuration"),
) -> None:
    """Write an example configuration file with every default spelled out."""
    init_config_command(path)


def init_config_command(path: str) -> Path:
    """Execute the init-config command.

    Returns:
        Path of the written file
    """
    loader = YamlConfigLoader()
    loader.generate_example_config(path)
    console.print(f"[bold green]Configuration written to[/bold green] {path}")
    return Path(path)


@app.command()
def version() -> str:
    """Show FIRECONTROL version information."""
    return version_command()


def version_command() -> str:
    """Execute the version command.

    Returns:
        Version string
    """
    from firecontrol import __version__

    version_info = f"FIRECONTROL v{__version__}"
    console.print(f"[bold cyan]{version_info}[/bold cyan]")
    console.print("[dim]Decentralized UAV swarm for forest-fire suppression[/dim]")
    return version_info


def load_cli_config(config_file: str) -> FirecontrolConfig:
    """Load CLI configuration from file, honouring FIRECONTROL_* environment overrides."""
    loader = YamlConfigLoader()
    return loader.load_config_with_env_override(config_file)


def create_default_config() -> FirecontrolConfig:
    return FirecontrolConfig()


def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
