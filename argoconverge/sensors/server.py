"""Background /metrics endpoint for Prometheus scraping."""

import logging
from threading import Thread
from prometheus_client import CollectorRegistry, REGISTRY, start_http_server
from argoconverge.types.settings import Settings

logger = logging.getLogger(__name__)


def serve_metrics(port: int, registry: CollectorRegistry = REGISTRY) -> None:
    try:
        start_http_server(port, registry=registry)
    except OSError as e:
        logger.error(f"Metrics endpoint could not bind port {port}: {e}")
        raise
    logger.info(f"Operator metrics served at :{port}/metrics")


def init_metrics_server(conf: Settings = None, registry: CollectorRegistry = REGISTRY) -> Thread:
    """Serve metrics on the configured port from a daemon thread.

    The thread never outlives the operator, so no shutdown hook is needed.
    """
    port = (conf or Settings()).metrics_port
    thread = Thread(
        target=serve_metrics, args=(port, registry), name="metrics-server", daemon=True
    )
    thread.start()
    return thread
