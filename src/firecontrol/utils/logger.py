"""Logging utilities for the FIRECONTROL swarm.

This module provides the centralized ``firecontrol`` logger used by the
simulation harness and the CLI, plus a helper that applies a
``LoggingConfig`` at runtime.
"""

from __future__ import annotations

import logging
import sys

from firecontrol.config.schema import LoggingConfig, LogLevel

# Create a default logger
logger = logging.getLogger("firecontrol")

# Configure logging if not already configured
if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)
    logger.setLevel(logging.INFO)


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Apply a logging configuration to the package logger.

    Args:
        config: Logging section of the FIRECONTROL configuration

    Returns:
        The configured package logger
    """
    level = getattr(logging, LogLevel(config.level).value)
    logger.setLevel(level)

    formatter = logging.Formatter(config.format)
    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        if isinstance(handler, logging.StreamHandler) and not config.enable_console:
            handler.setLevel(logging.CRITICAL + 1)

    return logger


__all__ = ["logger", "configure_logging"]
