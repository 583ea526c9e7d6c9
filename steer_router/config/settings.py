"""Runtime configuration for the routing service.

Centralises environment variables and exposes typed settings to the
composition root, the CLI and the HTTP server.
"""

import logging
import math
import os
import socket
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import DEFAULT_REWARD_EWMA_ALPHA, CostNormalization

logger = logging.getLogger(__name__)

DEFAULT_PORT = 4000
DEFAULT_DB_PATH = "./data/steer_router.db"


class Environment(str, Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class ServiceSettings(BaseModel):
    """Typed service settings."""

    env: Environment = Environment.DEVELOPMENT
    host: str = "0.0.0.0"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    service_name: str = "steer-router"
    service_version: str = "0.1.0"
    instance_id: Optional[str] = None
    database_path: str = DEFAULT_DB_PATH
    log_level: str = "DEBUG"
    reward_ewma_alpha: float = Field(default=DEFAULT_REWARD_EWMA_ALPHA, ge=0.0, le=1.0)
    cost_normalization: CostNormalization = CostNormalization.PRE_NORMALIZED
    registry_url: Optional[str] = Field(
        default=None,
        description="Base URL of a remote tool registry; SQLite registry is used when unset"
    )
    registry_timeout: float = Field(default=5.0, gt=0)


def parse_port(raw: Optional[str], fallback: int = DEFAULT_PORT) -> int:
    """Parse a port number, falling back on missing or invalid input."""
    if not raw:
        return fallback
    try:
        port = int(raw)
    except ValueError:
        return fallback
    if port <= 0 or port > 65535:
        return fallback
    return port


def _parse_float(raw: Optional[str], fallback: float) -> float:
    if raw is None or raw.strip() == "":
        return fallback
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value '{raw}', using {fallback}")
        return fallback
    return value if math.isfinite(value) else fallback


def _parse_env(raw: Optional[str]) -> Environment:
    try:
        return Environment((raw or "").lower())
    except ValueError:
        return Environment.DEVELOPMENT


def _resolve_instance_id() -> str:
    return (
        os.getenv("SERVICE_INSTANCE_ID")
        or os.getenv("HOSTNAME")
        or socket.gethostname()
    )


def load_settings() -> ServiceSettings:
    """Load settings from environment variables (and a .env file if present)."""
    load_dotenv()

    env = _parse_env(os.getenv("STEER_ROUTER_ENV") or os.getenv("ENV"))
    default_level = "INFO" if env == Environment.PRODUCTION else "DEBUG"

    cost_mode = os.getenv("STEER_ROUTER_COST_NORMALIZATION", "").strip().lower()
    try:
        cost_normalization = CostNormalization(cost_mode) if cost_mode else CostNormalization.PRE_NORMALIZED
    except ValueError:
        logger.warning(f"Unknown cost normalization '{cost_mode}', using pre_normalized")
        cost_normalization = CostNormalization.PRE_NORMALIZED

    alpha = _parse_float(os.getenv("STEER_ROUTER_REWARD_ALPHA"), DEFAULT_REWARD_EWMA_ALPHA)
    registry_timeout = _parse_float(os.getenv("STEER_ROUTER_REGISTRY_TIMEOUT"), 5.0)
    if registry_timeout <= 0:
        registry_timeout = 5.0

    return ServiceSettings(
        env=env,
        host=os.getenv("HOST", "0.0.0.0"),
        port=parse_port(os.getenv("PORT")),
        service_name=os.getenv("SERVICE_NAME", "steer-router"),
        service_version=os.getenv("SERVICE_VERSION", "0.1.0"),
        instance_id=_resolve_instance_id(),
        database_path=os.getenv("STEER_ROUTER_DB_PATH", DEFAULT_DB_PATH),
        log_level=os.getenv("LOG_LEVEL", default_level).upper(),
        reward_ewma_alpha=min(max(alpha, 0.0), 1.0),
        cost_normalization=cost_normalization,
        registry_url=os.getenv("STEER_ROUTER_REGISTRY_URL") or None,
        registry_timeout=registry_timeout,
    )
