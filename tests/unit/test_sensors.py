"""Unit tests for the sensor fan-out and the Prometheus backend."""

from unittest.mock import Mock
from prometheus_client import CollectorRegistry
from argoconverge.sensors import (
    OperatorSensor,
    PrometheusMonitor,
    SensorDelegate,
    init_metrics_server,
    server,
)
from argoconverge.types.settings import Settings


class TestSensorDelegate:
    def test_fan_out_keeps_state_per_sensor(self):
        first, second = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        first.on_reconcile_start.return_value = {"n": 1}
        second.on_reconcile_start.return_value = {"n": 2}
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        state = delegate.on_reconcile_start("cd1", "ns1", 1, "create")
        delegate.on_reconcile_complete("cd1", "ns1", state, True)

        first.on_reconcile_complete.assert_called_once_with("cd1", "ns1", {"n": 1}, True, None)
        second.on_reconcile_complete.assert_called_once_with("cd1", "ns1", {"n": 2}, True, None)

    def test_failing_sensor_does_not_break_others(self):
        broken, healthy = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        broken.on_resource_drift_detected.side_effect = RuntimeError("boom")
        delegate = SensorDelegate()
        delegate.add(broken)
        delegate.add(healthy)

        delegate.on_resource_drift_detected("cd1", "redis", "cd1-redis", "ns1", "Service", ["spec.ports"])
        healthy.on_resource_drift_detected.assert_called_once()

    def test_removed_sensor_is_not_called(self):
        sensor = Mock(spec=OperatorSensor)
        delegate = SensorDelegate()
        delegate.add(sensor)
        delegate.remove(sensor)
        assert delegate.on_reconcile_start("cd1", "ns1", 1, "timer") is None
        sensor.on_reconcile_start.assert_not_called()


class TestPrometheusMonitor:
    def test_reconcile_metrics(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)
        state = monitor.on_reconcile_start("cd1", "ns1", 1, "timer")
        monitor.on_reconcile_complete("cd1", "ns1", state, False, ValueError("x"))

        labels = {"instance_name": "cd1", "namespace": "ns1", "trigger_source": "timer", "result": "failure"}
        assert registry.get_sample_value("argoconverge_reconcile_total", labels) == 1.0
        assert registry.get_sample_value(
            "argoconverge_reconcile_errors_total",
            {"instance_name": "cd1", "namespace": "ns1", "error_type": "ValueError"},
        ) == 1.0

    def test_resource_metrics(self):
        registry = CollectorRegistry()
        monitor = PrometheusMonitor(registry=registry)
        state = monitor.on_resource_sync_start("cd1", "redis", "cd1-redis", "ns1", "Service")
        monitor.on_resource_sync_complete(
            "cd1", "redis", "cd1-redis", "ns1", "Service", state, "create", True
        )
        monitor.on_resource_drift_detected(
            "cd1", "redis", "cd1-redis", "ns1", "Service", ["metadata.labels", "spec.ports"]
        )

        assert registry.get_sample_value(
            "argoconverge_resource_sync_total",
            {
                "instance_name": "cd1",
                "component": "redis",
                "resource_type": "Service",
                "namespace": "ns1",
                "operation": "create",
                "result": "success",
            },
        ) == 1.0
        assert registry.get_sample_value(
            "argoconverge_resource_drift_detected_total",
            {
                "instance_name": "cd1",
                "component": "redis",
                "resource_type": "Service",
                "namespace": "ns1",
                "drift_field": "spec.ports",
            },
        ) == 1.0


class TestMetricsServer:
    def test_serves_configured_port(self, monkeypatch):
        started = []
        monkeypatch.setattr(
            server, "start_http_server", lambda port, registry: started.append((port, registry))
        )
        registry = CollectorRegistry()

        thread = init_metrics_server(Settings(metrics_port=9123), registry=registry)
        thread.join(timeout=5)
        assert started == [(9123, registry)]
        assert thread.daemon
