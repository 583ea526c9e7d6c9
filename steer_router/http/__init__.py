"""HTTP API layer for Steer Router.

Thin FastAPI boundary around the plan builder, the plan store and the
telemetry handler. Build an application with ``create_app``.
"""

from .app import AppDeps, create_app

__all__ = ["AppDeps", "create_app"]
