"""Configuration module for the FIRECONTROL swarm.

This module provides configuration loading capabilities using Pydantic models
to read YAML configuration files for runtime settings.
"""

from .loaders import ConfigLoader, YamlConfigLoader, load_config_from_dict, load_config_from_yaml
from .schema import (
    FireSeed,
    FirecontrolConfig,
    ForestConfig,
    LoggingConfig,
    ProtocolConfig,
    SimulationConfig,
)

__all__ = [
    # Configuration schema models
    "FirecontrolConfig",
    "ProtocolConfig",
    "ForestConfig",
    "FireSeed",
    "SimulationConfig",
    "LoggingConfig",
    # Configuration loaders
    "ConfigLoader",
    "YamlConfigLoader",
    # Convenience functions
    "load_config_from_yaml",
    "load_config_from_dict",
]
