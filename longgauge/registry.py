"""Metric registry and gauge factory."""
from typing import Dict, List, Optional, Sequence, Union
import logging
import threading

from longgauge.config import GaugeOptions
from longgauge.errors import MetricConflict
from longgauge.gauge import LongGauge
from longgauge.labels import validate_label_keys, validate_metric_name
from longgauge.series import LabelKey, SeriesPoint

logger = logging.getLogger(__name__)


def create_long_gauge(options: GaugeOptions) -> LongGauge:
    """Build an unregistered gauge from its options, creating any initial series."""
    gauge = LongGauge(
        options.name,
        options.description,
        options.unit,
        [LabelKey(k.key, k.description) for k in options.label_keys]
    )
    for label_values in options.initial_series:
        gauge.get_or_create_time_series(label_values)
    return gauge


class MetricRegistry:
    """Holds gauges by name."""

    def __init__(self):
        self._gauges: Dict[str, LongGauge] = {}
        self._lock = threading.Lock()

    def add_long_gauge(
        self,
        name: str,
        description: str = "",
        unit: str = "1",
        label_keys: Sequence[Union[LabelKey, str]] = ()
    ) -> LongGauge:
        """
        Build and register a gauge, or return the one already registered.

        Raises:
            MetricConflict: if ``name`` is registered with a different
                description, unit or label keys
            ValueError: on an invalid metric or label key name
        """
        validate_metric_name(name)
        keys = validate_label_keys(label_keys)

        with self._lock:
            existing = self._gauges.get(name)
            if existing is not None:
                self._check_same_shape(existing, description, unit, keys)
                return existing

            gauge = LongGauge(name, description, unit, keys)
            self._gauges[name] = gauge

        logger.info(f"Registered gauge '{name}' with label keys {[k.key for k in keys]}")
        return gauge

    def build_long_gauge(self, options: GaugeOptions) -> LongGauge:
        """Register a gauge described by ``options``."""
        gauge = self.add_long_gauge(
            options.name,
            options.description,
            options.unit,
            [LabelKey(k.key, k.description) for k in options.label_keys]
        )
        for label_values in options.initial_series:
            gauge.get_or_create_time_series(label_values)
        return gauge

    @staticmethod
    def _check_same_shape(gauge: LongGauge, description: str, unit: str, keys):
        if (gauge.description, gauge.unit, gauge.label_keys) != (description, unit, tuple(keys)):
            raise MetricConflict(
                f"Gauge '{gauge.name}' is already registered with a different "
                f"description, unit or label keys"
            )

    def get(self, name: str) -> Optional[LongGauge]:
        with self._lock:
            return self._gauges.get(name)

    def gauges(self) -> List[LongGauge]:
        with self._lock:
            return list(self._gauges.values())

    def snapshot(self) -> List[SeriesPoint]:
        """Read every series of every gauge."""
        points: List[SeriesPoint] = []
        for gauge in self.gauges():
            points.extend(gauge.snapshot())
        return points

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._gauges

    def __len__(self) -> int:
        with self._lock:
            return len(self._gauges)
