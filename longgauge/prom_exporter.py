"""Prometheus pull exporter using prometheus_client."""
from typing import Iterable, Optional
import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from longgauge.config import PrometheusExporterConfig
from longgauge.registry import MetricRegistry

logger = logging.getLogger(__name__)


class GaugeCollector(Collector):
    """Exposes every series of every registered gauge at scrape time."""

    def __init__(self, metric_registry: MetricRegistry, prefix: str = "", self_metrics=None):
        self.metric_registry = metric_registry
        self.prefix = prefix
        self.self_metrics = self_metrics

    def collect(self) -> Iterable[GaugeMetricFamily]:
        for gauge in self.metric_registry.gauges():
            try:
                family = GaugeMetricFamily(
                    f"{self.prefix}{gauge.name}",
                    gauge.description or f"Gauge {gauge.name}",
                    labels=[k.key for k in gauge.label_keys]
                )
                for point in gauge.snapshot():
                    # Prometheus has no notion of unset; render it as empty
                    family.add_metric(
                        [v if v is not None else "" for v in point.label_values],
                        point.value
                    )
            except Exception as e:
                logger.error(f"Failed to collect gauge {gauge.name}: {e}")
                if self.self_metrics:
                    self.self_metrics.record_export_error("prometheus", gauge.name)
                continue

            yield family


class PrometheusExporter:
    """Manages the Prometheus registry and HTTP server."""

    def __init__(self, config: PrometheusExporterConfig, metric_registry: MetricRegistry):
        self.config = config
        self.metric_registry = metric_registry
        # Use a custom registry to avoid exporting default Python/process metrics
        self.registry = CollectorRegistry()

        self.self_metrics = SelfMetrics(registry=self.registry, prefix=config.prefix)
        self.collector = GaugeCollector(metric_registry, config.prefix, self.self_metrics)
        self.registry.register(self.collector)

        if config.enabled:
            self._start_server()

    def _start_server(self):
        """Start Prometheus HTTP server."""
        try:
            start_http_server(
                self.config.port,
                addr=self.config.bind_address,
                registry=self.registry
            )
            logger.info(
                f"Prometheus exporter listening on "
                f"{self.config.bind_address}:{self.config.port}/metrics"
            )
        except Exception as e:
            logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise


class SelfMetrics:
    """Self-monitoring metrics for the gauge service."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, prefix: str = ""):
        if registry is None:
            registry = CollectorRegistry()

        self.active_series = Gauge(
            f"{prefix}longgauge_active_series",
            "Number of time series per gauge",
            ["metric_name"],
            registry=registry
        )

        self.export_errors_total = Counter(
            f"{prefix}longgauge_export_errors_total",
            "Total number of export errors",
            ["exporter", "metric_name"],
            registry=registry
        )

        self.tick_duration_seconds = Histogram(
            f"{prefix}longgauge_tick_duration_seconds",
            "Duration of each reporting tick in seconds",
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
            registry=registry
        )

    def set_active_series(self, metric_name: str, count: int):
        """Set active series count."""
        self.active_series.labels(metric_name=metric_name).set(count)

    def record_export_error(self, exporter: str, metric_name: str):
        """Record export error."""
        self.export_errors_total.labels(exporter=exporter, metric_name=metric_name).inc()

    def record_tick_duration(self, duration: float):
        """Record tick duration."""
        self.tick_duration_seconds.observe(duration)
