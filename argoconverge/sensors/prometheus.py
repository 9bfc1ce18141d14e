"""Prometheus monitoring backend for the operator.

PrometheusMonitor turns sensor events into Prometheus metrics in two groups:

1. Reconciliation Loop Health - Duration, throughput, errors
2. Kubernetes Resource Sync - Operation counts, latency, drift detection
"""

from typing import Dict, List, Optional, Any
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from argoconverge.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor.

    Metrics:
    - argoconverge_reconcile_* - Reconciliation loop metrics
    - argoconverge_resource_* - Child resource sync metrics
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        super().__init__()

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'argoconverge_reconcile_duration_seconds',
            'Time spent in reconciliation loop',
            labelnames=['instance_name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'argoconverge_reconcile_total',
            'Total number of reconciliation attempts',
            labelnames=['instance_name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'argoconverge_reconcile_errors_total',
            'Total number of reconciliation errors',
            labelnames=['instance_name', 'namespace', 'error_type'],
            registry=registry,
        )

        # =============================================================================
        # Kubernetes Resource Sync Metrics
        # =============================================================================

        self.resource_sync_duration = Histogram(
            'argoconverge_resource_sync_duration_seconds',
            'Time spent in store calls for child resources',
            labelnames=['instance_name', 'component', 'resource_type', 'namespace', 'operation', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
            registry=registry,
        )

        self.resource_sync_total = Counter(
            'argoconverge_resource_sync_total',
            'Total number of child resource store calls',
            labelnames=['instance_name', 'component', 'resource_type', 'namespace', 'operation', 'result'],
            registry=registry,
        )

        self.resource_sync_errors = Counter(
            'argoconverge_resource_sync_errors_total',
            'Total number of failed child resource store calls',
            labelnames=['instance_name', 'component', 'resource_type', 'namespace', 'error_type'],
            registry=registry,
        )

        self.resource_drift_detected = Counter(
            'argoconverge_resource_drift_detected_total',
            'Total number of drifted fields found on child resources',
            labelnames=['instance_name', 'component', 'resource_type', 'namespace', 'drift_field'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        instance_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        instance_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if not state:
            return
        duration = time.time() - state['start_time']
        result = 'success' if success else 'failure'
        labels = dict(
            instance_name=instance_name,
            namespace=namespace,
            trigger_source=state['trigger_source'],
            result=result,
        )
        self.reconcile_duration.labels(**labels).observe(duration)
        self.reconcile_total.labels(**labels).inc()
        if error:
            self.reconcile_errors.labels(
                instance_name=instance_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Record resource sync start time."""
        return {'start_time': time.time()}

    def on_resource_sync_complete(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record resource sync duration and result."""
        if not state:
            return
        duration = time.time() - state['start_time']
        labels = dict(
            instance_name=instance_name,
            component=component,
            resource_type=resource_type,
            namespace=namespace,
            operation=operation,
            result='success' if success else 'failure',
        )
        self.resource_sync_duration.labels(**labels).observe(duration)
        self.resource_sync_total.labels(**labels).inc()
        if error:
            self.resource_sync_errors.labels(
                instance_name=instance_name,
                component=component,
                resource_type=resource_type,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_resource_drift_detected(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: List[str],
    ) -> None:
        """Record resource drift detection."""
        for field in drift_fields:
            self.resource_drift_detected.labels(
                instance_name=instance_name,
                component=component,
                resource_type=resource_type,
                namespace=namespace,
                drift_field=field,
            ).inc()
