"""Tests for the OpenTelemetry exporter using an in-memory reader."""
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from longgauge.config import OTELExporterConfig
from longgauge.otel_exporter import OTELExporter
from longgauge.registry import MetricRegistry


def collect(reader):
    """Map metric name -> {frozenset(attributes): value}."""
    data = reader.get_metrics_data()
    result = {}
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                result[metric.name] = {
                    frozenset(dict(p.attributes or {}).items()): p.value
                    for p in metric.data.data_points
                }
    return result


def test_observations_follow_gauge_values():
    reader = InMemoryMetricReader()
    exporter = OTELExporter(OTELExporterConfig(enabled=True, prefix="otel_"), metric_readers=[reader])

    registry = MetricRegistry()
    gauge = registry.add_long_gauge("queue_size", "Pending jobs", "1", ["Name"])
    exporter.register_registry(registry)

    gauge.get_default_time_series().add(10)
    gauge.get_or_create_time_series(["Inbound"]).set(15)

    metrics = collect(reader)
    assert metrics["otel_queue_size"] == {
        frozenset({("Name", "")}): 10,
        frozenset({("Name", "Inbound")}): 15,
    }

    gauge.get_or_create_time_series(["Inbound"]).add(-5)
    assert collect(reader)["otel_queue_size"][frozenset({("Name", "Inbound")})] == 10

    exporter.shutdown()


def test_register_gauge_is_idempotent():
    reader = InMemoryMetricReader()
    exporter = OTELExporter(OTELExporterConfig(enabled=True), metric_readers=[reader])

    registry = MetricRegistry()
    registry.add_long_gauge("open_connections").get_default_time_series().set(7)
    exporter.register_registry(registry)
    exporter.register_registry(registry)

    assert list(exporter.instruments) == ["open_connections"]
    assert collect(reader)["open_connections"] == {frozenset(): 7}

    exporter.shutdown()


def test_empty_label_value_does_not_hide_default_series():
    reader = InMemoryMetricReader()
    exporter = OTELExporter(OTELExporterConfig(enabled=True), metric_readers=[reader])

    registry = MetricRegistry()
    gauge = registry.add_long_gauge("queue_size", "Pending jobs", "1", ["Name"])
    exporter.register_registry(registry)

    gauge.get_default_time_series().set(10)
    gauge.get_or_create_time_series([""]).add(89)

    points = gauge.snapshot()
    observed = collect(reader)["queue_size"]
    assert len(observed) == len(points) == 1
    assert observed == {frozenset({("Name", "")}): 99}

    exporter.shutdown()
