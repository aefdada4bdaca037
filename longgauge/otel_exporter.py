"""OpenTelemetry push exporter using OTLP."""
from typing import Dict, List, Optional
import logging

from opentelemetry.metrics import CallbackOptions, Observation
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader, PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

from longgauge.config import OTELExporterConfig
from longgauge.gauge import LongGauge
from longgauge.registry import MetricRegistry

logger = logging.getLogger(__name__)


class OTELExporter:
    """
    Publishes gauges as OpenTelemetry observable gauges.

    Each LongGauge becomes one observable gauge; on every collection its
    callback reads the gauge snapshot and reports one observation per series.
    """

    def __init__(
        self,
        config: OTELExporterConfig,
        metric_readers: Optional[List[MetricReader]] = None,
        self_metrics=None
    ):
        self.config = config
        self.self_metrics = self_metrics
        self.instruments: Dict[str, object] = {}

        if metric_readers is None:
            metric_readers = [self._create_otlp_reader()]

        resource_attrs = {
            "service.name": "longgauge",
        }
        resource_attrs.update(self.config.resource)

        self.meter_provider = MeterProvider(
            resource=Resource.create(resource_attrs),
            metric_readers=metric_readers
        )
        self.meter = self.meter_provider.get_meter(__name__)

    def _create_otlp_reader(self) -> MetricReader:
        """Create the periodic OTLP/gRPC reader."""
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        exporter = OTLPMetricExporter(
            endpoint=self.config.endpoint,
            insecure=self.config.insecure,
            headers=tuple(self.config.headers.items()) if self.config.headers else None
        )
        logger.info(f"OTEL exporter initialized, pushing to {self.config.endpoint}")

        return PeriodicExportingMetricReader(
            exporter,
            export_interval_millis=self.config.export_interval_s * 1000
        )

    def register_gauge(self, gauge: LongGauge):
        """Create an observable gauge backed by ``gauge``."""
        if gauge.name in self.instruments:
            return

        otel_metric_name = f"{self.config.prefix}{gauge.name}"

        def callback(options: CallbackOptions):
            try:
                return [
                    Observation(point.value, attributes=point.labels)
                    for point in gauge.snapshot()
                ]
            except Exception as e:
                logger.error(f"Failed to observe gauge {gauge.name}: {e}")
                if self.self_metrics:
                    self.self_metrics.record_export_error("otel", gauge.name)
                return []

        self.instruments[gauge.name] = self.meter.create_observable_gauge(
            name=otel_metric_name,
            callbacks=[callback],
            description=gauge.description,
            unit=gauge.unit
        )
        logger.info(
            f"Registered OTEL instrument: {otel_metric_name} "
            f"with labels {[k.key for k in gauge.label_keys]}"
        )

    def register_registry(self, metric_registry: MetricRegistry):
        """Register every gauge currently in ``metric_registry``."""
        for gauge in metric_registry.gauges():
            self.register_gauge(gauge)

    def shutdown(self):
        """Shutdown OTEL exporter."""
        self.meter_provider.shutdown()
        logger.info("OTEL exporter shutdown complete")
