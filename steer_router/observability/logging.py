"""
Structured logging utility for router components.

Provides a consistent logging interface for the plan builder, the telemetry
handler and the HTTP layer, with standard fields like tenant, capability and
correlation_id.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once at process start."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


class RouterLogger:
    """Structured logger for router components."""

    def __init__(self, component: str):
        """
        Initialize logger for a specific component.

        Args:
            component: Name of the component (e.g., "plan_builder", "telemetry")
        """
        self.component = component
        self.logger = logging.getLogger(f"steer_router.{component}")

    def _format_message(self, message: str, **kwargs) -> str:
        fields = [f"component={self.component}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, tenant: Optional[str] = None,
              capability: Optional[str] = None, **kwargs):
        self.logger.debug(
            self._format_message(message, tenant=tenant, capability=capability, **kwargs)
        )

    def info(self, message: str, tenant: Optional[str] = None,
             capability: Optional[str] = None, **kwargs):
        self.logger.info(
            self._format_message(message, tenant=tenant, capability=capability, **kwargs)
        )

    def warning(self, message: str, tenant: Optional[str] = None,
                capability: Optional[str] = None, **kwargs):
        self.logger.warning(
            self._format_message(message, tenant=tenant, capability=capability, **kwargs)
        )

    def error(self, message: str, tenant: Optional[str] = None,
              capability: Optional[str] = None, error: Optional[Exception] = None, **kwargs):
        """Log error message; ``error`` adds error_type and error_msg fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.error(
            self._format_message(message, tenant=tenant, capability=capability, **kwargs)
        )

    @contextmanager
    def track_request(self, operation: str, tenant: Optional[str] = None,
                      capability: Optional[str] = None,
                      correlation_id: Optional[str] = None):
        """
        Context manager to time an operation and log start, completion and failure.

        Args:
            operation: The operation being run (e.g., "build_plan")
            tenant: Tenant the operation runs for
            capability: Requested capability
            correlation_id: Optional correlation ID (generated if not provided)

        Yields:
            Dict with operation metadata including correlation_id
        """
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())[:8]

        start_time = time.time()

        self.debug(
            f"Starting {operation}",
            tenant=tenant,
            capability=capability,
            correlation_id=correlation_id
        )

        metadata = {
            'correlation_id': correlation_id,
            'operation': operation,
            'start_time': start_time
        }

        try:
            yield metadata

            duration = time.time() - start_time
            self.info(
                f"Completed {operation}",
                tenant=tenant,
                capability=capability,
                correlation_id=correlation_id,
                duration_ms=int(duration * 1000)
            )

        except Exception as e:
            duration = time.time() - start_time
            self.error(
                f"Failed {operation}",
                tenant=tenant,
                capability=capability,
                correlation_id=correlation_id,
                duration_ms=int(duration * 1000),
                error=e
            )
            raise
