"""Tests for the reporting engine."""
import threading
import time

from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from longgauge.config import Config
from longgauge.engine import ReportingEngine, run_engine_thread


def make_config(**exporters):
    return Config(**{
        "global": {"tick_interval_s": 0.01},
        "exporters": {
            "prometheus": {"enabled": False},
            "otel": {"enabled": False},
            **exporters,
        },
        "gauges": [
            {"name": "queue_size", "description": "Pending jobs", "label_keys": ["Name"],
             "initial_series": [["Inbound"]]},
            {"name": "open_connections"},
        ],
    })


def test_gauges_built_from_config():
    engine = ReportingEngine(make_config())
    registry = engine.metric_registry

    assert len(registry) == 2
    assert len(registry.get("queue_size")) == 2
    assert len(registry.get("open_connections")) == 1
    assert engine.prom_exporter is None
    assert engine.otel_exporter is None


def test_tick_snapshots_every_gauge():
    engine = ReportingEngine(make_config())
    engine.metric_registry.get("queue_size").get_or_create_time_series(["Inbound"]).set(15)

    points = engine.tick()

    assert engine.tick_count == 1
    assert engine.last_snapshot == {"queue_size": 2, "open_connections": 1}
    values = {(p.name, p.label_values): p.value for p in points}
    assert values[("queue_size", ("Inbound",))] == 15


def test_tick_registers_late_gauges_with_otel():
    reader = InMemoryMetricReader()
    engine = ReportingEngine(make_config(otel={"enabled": True}), otel_metric_readers=[reader])
    assert set(engine.otel_exporter.instruments) == {"queue_size", "open_connections"}

    engine.metric_registry.add_long_gauge("workers_busy")
    engine.tick()
    assert "workers_busy" in engine.otel_exporter.instruments

    engine.stop()
    assert engine.otel_exporter is None


def test_run_and_stop():
    engine = ReportingEngine(make_config())
    thread = threading.Thread(target=run_engine_thread, args=(engine,), daemon=True)
    thread.start()

    deadline = time.time() + 5
    while engine.tick_count < 3 and time.time() < deadline:
        time.sleep(0.01)

    engine.stop()
    thread.join(timeout=5)

    assert engine.tick_count >= 3
    assert not thread.is_alive()


def test_tick_after_stop_skips_otel():
    reader = InMemoryMetricReader()
    engine = ReportingEngine(make_config(otel={"enabled": True}), otel_metric_readers=[reader])
    engine.stop()

    engine.metric_registry.add_long_gauge("workers_busy")
    points = engine.tick()

    assert engine.tick_count == 1
    assert ("workers_busy", ()) in {(p.name, p.label_values) for p in points}

    # a second stop is harmless
    engine.stop()
