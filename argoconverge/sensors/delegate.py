"""Sensor delegation for fan-out pattern.

This module provides SensorDelegate, which routes sensor events to multiple
monitoring backends simultaneously. Each backend receives the same events
and keeps its own state. A failing backend never breaks a reconcile.
"""

from typing import Set, Dict, List, Optional, Any
import logging

from argoconverge.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("argocd", "default", 5, "timer")
        delegate.on_reconcile_complete("argocd", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def _log_failure(self, sensor: OperatorSensor, hook: str, ex: Exception) -> None:
        logger.error(
            f"Error in {sensor.__class__.__name__}.{hook}: {ex}",
            exc_info=True,
        )

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        instance_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Delegate reconcile_start to all sensors.

        Returns:
            Dict mapping each sensor to its returned state, or None if no sensors
        """
        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_reconcile_start(instance_name, namespace, generation, trigger_source)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                self._log_failure(sensor, "on_reconcile_start", e)
        return states or None

    def on_reconcile_complete(
        self,
        instance_name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(instance_name, namespace, sensor_state, success, error)
            except Exception as e:
                self._log_failure(sensor, "on_reconcile_complete", e)

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
    ) -> Optional[Dict[OperatorSensor, Any]]:
        states = {}
        for sensor in self._sensors:
            try:
                state = sensor.on_resource_sync_start(
                    instance_name, component, resource_name, namespace, resource_type
                )
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                self._log_failure(sensor, "on_resource_sync_start", e)
        return states or None

    def on_resource_sync_complete(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_resource_sync_complete(
                    instance_name,
                    component,
                    resource_name,
                    namespace,
                    resource_type,
                    sensor_state,
                    operation,
                    success,
                    error,
                )
            except Exception as e:
                self._log_failure(sensor, "on_resource_sync_complete", e)

    def on_resource_drift_detected(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: List[str],
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor.on_resource_drift_detected(
                    instance_name, component, resource_name, namespace, resource_type, drift_fields
                )
            except Exception as e:
                self._log_failure(sensor, "on_resource_drift_detected", e)
