"""Operator sensor framework.

Non-invasive instrumentation of reconcile passes and child resource store
calls through a hook-based pattern.

Key components:
- OperatorSensor: Base class defining lifecycle hooks
- SensorDelegate: Fan-out to multiple sensor backends
- PrometheusMonitor: Prometheus metrics exporter
"""

from argoconverge.sensors.base import OperatorSensor
from argoconverge.sensors.delegate import SensorDelegate
from argoconverge.sensors.prometheus import PrometheusMonitor
from argoconverge.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
