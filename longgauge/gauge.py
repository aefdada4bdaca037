"""Thread-safe, label-keyed int64 gauge."""
from typing import Dict, List, Sequence, Tuple
import logging
import threading
import time

from longgauge.labels import (
    LabelValueInput,
    default_label_values,
    label_dict,
    normalize_label_values,
    raw_values,
    validate_label_keys,
)
from longgauge.series import LabelKey, LabelValue, SeriesPoint

logger = logging.getLogger(__name__)

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def wrap_int64(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    return ((value - INT64_MIN) & 0xFFFFFFFFFFFFFFFF) + INT64_MIN


def _check_int(value, arg_name: str) -> int:
    # bool is an int subclass but never a meaningful gauge value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{arg_name} must be an int, got {type(value).__name__}")
    return value


class TimeSeries:
    """
    A single mutable int64 cell of a LongGauge.

    Instances are created and owned by ``LongGauge``; call sites should keep a
    reference to the handle instead of looking it up on every update.
    """

    __slots__ = ("_label_values", "_value", "_lock")

    def __init__(self, label_values: Tuple[LabelValue, ...]):
        self._label_values = label_values
        self._value = 0
        self._lock = threading.Lock()

    def add(self, amt: int):
        """Add ``amt`` to the current value. ``amt`` may be negative."""
        amt = _check_int(amt, "amt")
        with self._lock:
            self._value = wrap_int64(self._value + amt)

    def set(self, val: int):
        """Overwrite the current value."""
        val = wrap_int64(_check_int(val, "val"))
        with self._lock:
            self._value = val

    def get(self) -> int:
        """Read the current value."""
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"TimeSeries(label_values={raw_values(self._label_values)!r})"


class LongGauge:
    """
    Gauge reporting instantaneous int64 measurements, partitioned by label values.

    Every distinct label value sequence maps to exactly one ``TimeSeries``.
    Series are created lazily and live as long as the gauge. The default
    series (all label values unset) exists from construction on.

    Example:
        gauge = LongGauge("queue_size", "Pending jobs", "1", [LabelKey("Name")])
        gauge.get_default_time_series().add(10)
        gauge.get_or_create_time_series(["Inbound"]).set(15)
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        unit: str = "1",
        label_keys: Sequence[LabelKey] = ()
    ):
        self._name = name
        self._description = description
        self._unit = unit
        self._label_keys = validate_label_keys(label_keys)

        # Guards insert-if-absent; lookups of existing series skip it
        self._lock = threading.Lock()
        self._series: Dict[Tuple[LabelValue, ...], TimeSeries] = {}

        default_values = default_label_values(len(self._label_keys))
        self._default = TimeSeries(default_values)
        self._series[default_values] = self._default

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def unit(self) -> str:
        return self._unit

    @property
    def label_keys(self) -> Tuple[LabelKey, ...]:
        return self._label_keys

    def get_or_create_time_series(self, label_values: Sequence[LabelValueInput]) -> TimeSeries:
        """
        Return the time series for ``label_values``, creating it if needed.

        Args:
            label_values: one value per declared label key, in key order

        Raises:
            InvalidLabelCount: if the number of values does not match the keys
        """
        key = normalize_label_values(label_values, len(self._label_keys))

        series = self._series.get(key)
        if series is not None:
            return series

        with self._lock:
            series = self._series.get(key)
            if series is None:
                series = TimeSeries(key)
                self._series[key] = series
                logger.debug(f"Created time series {raw_values(key)} for gauge '{self._name}'")

        return series

    def get_default_time_series(self) -> TimeSeries:
        """Return the time series for unset label values."""
        return self._default

    def snapshot(self) -> List[SeriesPoint]:
        """
        Read every known series.

        Each cell is read and timestamped on its own; there is no point-in-time
        consistency across series.
        """
        with self._lock:
            items = list(self._series.items())

        points = []
        for key, series in items:
            points.append(SeriesPoint(
                name=self._name,
                label_values=raw_values(key),
                labels=label_dict(self._label_keys, key),
                value=series.get(),
                timestamp=time.time()
            ))
        return points

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def __repr__(self) -> str:
        keys = [k.key for k in self._label_keys]
        return f"LongGauge(name={self._name!r}, label_keys={keys!r})"
