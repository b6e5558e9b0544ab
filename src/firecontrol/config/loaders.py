"""Configuration loaders for the FIRECONTROL swarm.

This module provides configuration loading functionality using YAML files
with Pydantic validation for runtime settings.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import yaml

from .schema import FirecontrolConfig


class ConfigLoader(ABC):
    """Abstract base class for configuration loaders."""

    @abstractmethod
    def load_config(self, config_path: str | Path) -> FirecontrolConfig:
        """Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValidationError: If the config validation fails
        """
        pass

    @abstractmethod
    def load_config_from_dict(self, config_dict: dict[str, Any]) -> FirecontrolConfig:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration

        Raises:
            ValidationError: If the config validation fails
        """
        pass


class YamlConfigLoader(ConfigLoader):
    """YAML configuration loader implementation."""

    def __init__(self, safe_load: bool = True):
        """Initialize YAML configuration loader.

        Args:
            safe_load: Whether to use safe YAML loading (default: True)
        """
        self.safe_load = safe_load

    def load_config(self, config_path: str | Path) -> FirecontrolConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            ValidationError: If the config validation fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ValueError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                if self.safe_load:
                    config_dict = yaml.safe_load(f)
                else:
                    config_dict = yaml.load(f, Loader=yaml.FullLoader)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {config_path}: {e}") from e

        if config_dict is None:
            raise ValueError(f"Configuration file {config_path} is empty")

        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration file {config_path} must contain a YAML mapping")

        return self.load_config_from_dict(config_dict)

    def load_config_from_dict(self, config_dict: dict[str, Any]) -> FirecontrolConfig:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration

        Raises:
            ValidationError: If the config validation fails
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration data must be a dictionary")

        return FirecontrolConfig(**self.merge_with_defaults(config_dict))

    def merge_with_defaults(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Overlay a partial configuration on the default one.

        Sections merge field by field; lists such as ``forest.fire_seeds``
        replace the default list as a whole.
        """
        default_dict = FirecontrolConfig().model_dump()
        return self._deep_merge(default_dict, config_dict)

    def _deep_merge(self, base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            update: Dictionary to merge into base

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load_config_with_env_override(
        self, config_path: str | Path, env_prefix: str = "FIRECONTROL_"
    ) -> FirecontrolConfig:
        """Load configuration with environment variable overrides.

        Variables are named ``<prefix><SECTION>__<FIELD>``, for example
        ``FIRECONTROL_PROTOCOL__COMMUNICATION_RANGE=40``. Values are parsed
        as YAML scalars so numbers and booleans keep their types.

        Args:
            config_path: Path to the YAML configuration file
            env_prefix: Environment variable prefix (default: "FIRECONTROL_")

        Returns:
            Loaded configuration with environment overrides
        """
        config = self.load_config(config_path)
        config_dict = config.model_dump()

        for key, value in os.environ.items():
            if not key.startswith(env_prefix):
                continue
            path = key[len(env_prefix) :].lower().split("__")
            if len(path) != 2 or path[0] not in config_dict or not isinstance(config_dict[path[0]], dict):
                continue
            section, field_name = path
            if field_name not in config_dict[section]:
                continue
            try:
                config_dict[section][field_name] = yaml.safe_load(value)
            except yaml.YAMLError:
                config_dict[section][field_name] = value

        return FirecontrolConfig(**config_dict)

    def save_config(self, config: FirecontrolConfig, config_path: str | Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config: Configuration to save
            config_path: Path to save the configuration file
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False, indent=2)

    def generate_example_config(self, config_path: str | Path) -> None:
        """Generate an example configuration file.

        Args:
            config_path: Path to save the example configuration file
        """
        self.save_config(FirecontrolConfig(), config_path)


def load_config_from_yaml(config_path: str | Path) -> FirecontrolConfig:
    """Convenience function to load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Loaded and validated configuration
    """
    loader = YamlConfigLoader()
    return loader.load_config(config_path)


def load_config_from_dict(config_dict: dict[str, Any]) -> FirecontrolConfig:
    """Convenience function to load configuration from dictionary.

    Args:
        config_dict: Configuration data as dictionary

    Returns:
        Loaded and validated configuration
    """
    loader = YamlConfigLoader()
    return loader.load_config_from_dict(config_dict)
