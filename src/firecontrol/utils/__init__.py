"""Utility modules for the FIRECONTROL swarm.

This module provides domain enumerations, type aliases and protocol
constants shared across the swarm and simulation packages.
"""

from . import enums, types

__all__ = ["enums", "types"]
