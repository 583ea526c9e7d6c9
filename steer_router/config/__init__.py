"""Configuration module for the routing service."""

from .settings import (
    DEFAULT_PORT,
    Environment,
    ServiceSettings,
    load_settings,
    parse_port,
)

# Import all constants
from .constants import *

__all__ = [
    "CostNormalization",
    "DEFAULT_PORT",
    "Environment",
    "ServiceSettings",
    "load_settings",
    "parse_port",
]
