"""Logging helpers for the routing service."""

from .logging import RouterLogger, configure_logging

__all__ = ["RouterLogger", "configure_logging"]
