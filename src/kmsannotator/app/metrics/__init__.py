"""Prometheus metrics endpoint."""

import logging

from prometheus_client import start_http_server

from kmsannotator.core.logging_schema import LogEvent

logger = logging.getLogger(__name__)


def setup_metrics(port: int) -> None:
    """Serve /metrics on the given port (background thread)."""
    start_http_server(port)
    logger.info(
        "Metrics endpoint started",
        extra={"event": LogEvent.METRICS_STARTED, "port": port},
    )
