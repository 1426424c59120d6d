"""Observability helpers for the gateway (logging and metrics)."""

from __future__ import annotations

import structlog

from Telehealth_Gateway.config.settings import GatewaySettings
from Telehealth_Gateway.utils.logging import configure_logging

__all__ = ["setup_observability"]

logger = structlog.get_logger(__name__)


def setup_observability(settings: GatewaySettings) -> None:
    """Configure logging for the gateway process.

    Metrics need no setup: collectors register with the default
    ``prometheus_client`` registry on import.
    """
    configure_logging(settings=settings.logging)
    logger.info(
        "observability.configured",
        service=settings.service_name,
        environment=settings.environment.value,
        level=settings.logging.level,
    )
