"""Label-partitioned int64 gauges."""
from longgauge.errors import InvalidLabelCount, MetricConflict
from longgauge.gauge import LongGauge, TimeSeries
from longgauge.registry import MetricRegistry, create_long_gauge
from longgauge.series import LabelKey, LabelValue, SeriesPoint

__all__ = [
    "InvalidLabelCount",
    "LabelKey",
    "LabelValue",
    "LongGauge",
    "MetricConflict",
    "MetricRegistry",
    "SeriesPoint",
    "TimeSeries",
    "create_long_gauge",
]
