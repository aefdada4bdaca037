"""Reporting engine: builds gauges from config and drives the export loop."""
import time
import logging
from typing import Dict, List, Optional

from longgauge.config import Config
from longgauge.otel_exporter import OTELExporter
from longgauge.prom_exporter import PrometheusExporter
from longgauge.registry import MetricRegistry
from longgauge.series import SeriesPoint

logger = logging.getLogger(__name__)


class ReportingEngine:
    """Owns the metric registry and exporters and runs the periodic tick."""

    def __init__(
        self,
        config: Config,
        metric_registry: Optional[MetricRegistry] = None,
        otel_metric_readers=None
    ):
        self.config = config
        self.metric_registry = metric_registry or MetricRegistry()
        self.running = False
        self.tick_count = 0
        self.start_time = time.time()
        self.last_snapshot: Dict[str, int] = {}

        for gauge_options in config.gauges:
            self.metric_registry.build_long_gauge(gauge_options)

        self._initialize_exporters(otel_metric_readers)

        logger.info(f"Reporting engine initialized with {len(self.metric_registry)} gauges")

    def _initialize_exporters(self, otel_metric_readers):
        """Initialize Prometheus and OTEL exporters."""
        self.self_metrics = None

        if self.config.exporters.prometheus.enabled:
            self.prom_exporter = PrometheusExporter(
                self.config.exporters.prometheus,
                self.metric_registry
            )
            self.self_metrics = self.prom_exporter.self_metrics
            logger.info("Prometheus exporter initialized")
        else:
            self.prom_exporter = None
            logger.info("Prometheus exporter disabled")

        if self.config.exporters.otel.enabled:
            self.otel_exporter = OTELExporter(
                self.config.exporters.otel,
                metric_readers=otel_metric_readers,
                self_metrics=self.self_metrics
            )
            self.otel_exporter.register_registry(self.metric_registry)
            logger.info("OTEL exporter initialized")
        else:
            self.otel_exporter = None
            logger.info("OTEL exporter disabled")

    def tick(self) -> List[SeriesPoint]:
        """Snapshot every gauge and refresh self-metrics."""
        tick_start = time.time()
        all_points: List[SeriesPoint] = []

        for gauge in self.metric_registry.gauges():
            try:
                points = gauge.snapshot()
            except Exception as e:
                logger.error(f"Error reading gauge '{gauge.name}': {e}")
                if self.self_metrics:
                    self.self_metrics.record_export_error("engine", gauge.name)
                continue

            all_points.extend(points)
            self.last_snapshot[gauge.name] = len(points)

            if self.self_metrics:
                self.self_metrics.set_active_series(gauge.name, len(points))

        # Late gauges get registered here; stop() may clear the exporter concurrently
        otel_exporter = self.otel_exporter
        if otel_exporter:
            otel_exporter.register_registry(self.metric_registry)

        tick_duration = time.time() - tick_start
        if self.self_metrics:
            self.self_metrics.record_tick_duration(tick_duration)

        self.tick_count += 1

        if self.tick_count % 60 == 0:  # Log every 60 ticks
            logger.info(
                f"Tick {self.tick_count}: {len(all_points)} series "
                f"across {len(self.last_snapshot)} gauges in {tick_duration:.3f}s"
            )

        return all_points

    def run(self):
        """Run the reporting loop until stopped."""
        self.running = True
        self.start_time = time.time()

        logger.info("Starting reporting engine")

        tick_interval = self.config.global_.tick_interval_s

        while self.running:
            tick_start = time.time()

            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in tick: {e}", exc_info=True)

            # Sleep for remaining time in tick interval
            tick_duration = time.time() - tick_start
            sleep_time = max(0, tick_interval - tick_duration)

            if sleep_time > 0:
                time.sleep(sleep_time)
            else:
                logger.warning(
                    f"Tick took {tick_duration:.3f}s, longer than interval {tick_interval}s"
                )

    def stop(self):
        """Stop the reporting engine."""
        logger.info("Stopping reporting engine")
        self.running = False

        otel_exporter, self.otel_exporter = self.otel_exporter, None
        if otel_exporter:
            otel_exporter.shutdown()


def run_engine_thread(engine: ReportingEngine):
    """Run engine in a separate thread."""
    try:
        engine.run()
    except Exception as e:
        logger.error(f"Engine thread error: {e}", exc_info=True)
        engine.stop()
