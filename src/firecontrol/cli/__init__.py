"""CLI module for the FIRECONTROL swarm.

The CLI enables:
- Simulation runs with configuration overrides
- Example configuration generation
- Version reporting
"""

from .main import app, create_cli_app, main

__all__ = ["app", "create_cli_app", "main"]
