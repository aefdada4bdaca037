"""Label key validation and label value normalization."""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
import re

from longgauge.errors import InvalidLabelCount
from longgauge.series import LabelKey, LabelValue

# Label names must match [a-zA-Z_][a-zA-Z0-9_]*
_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

LabelValueInput = Union[LabelValue, str, None]


def is_valid_name(name: str) -> bool:
    """Check a metric or label name is Prometheus-safe."""
    return isinstance(name, str) and bool(_NAME_PATTERN.match(name))


def validate_metric_name(name: str) -> str:
    """Raise ValueError unless ``name`` is a valid metric name."""
    if not is_valid_name(name):
        raise ValueError(f"Invalid metric name: {name!r}")
    return name


def validate_label_keys(label_keys: Iterable[Union[LabelKey, str]]) -> Tuple[LabelKey, ...]:
    """
    Normalize and validate declared label keys.

    Plain strings are accepted and turned into ``LabelKey`` objects with an
    empty description.

    Raises:
        ValueError: on an unsafe or duplicated key name
    """
    keys = tuple(
        k if isinstance(k, LabelKey) else LabelKey(k)
        for k in label_keys
    )

    seen = set()
    for label_key in keys:
        if not is_valid_name(label_key.key):
            raise ValueError(f"Invalid label key: {label_key.key!r}")
        if label_key.key in seen:
            raise ValueError(f"Duplicate label key: {label_key.key!r}")
        seen.add(label_key.key)

    return keys


def normalize_label_values(
    label_values: Sequence[LabelValueInput],
    expected: int
) -> Tuple[LabelValue, ...]:
    """
    Turn caller supplied label values into a hashable tuple of ``LabelValue``.

    Args:
        label_values: ``LabelValue`` objects, strings, or ``None`` for unset;
            an empty string is the same as unset
        expected: number of declared label keys

    Raises:
        InvalidLabelCount: if the length does not match ``expected``
        TypeError: if a component is not a LabelValue, str or None
    """
    if label_values is None or isinstance(label_values, (str, bytes)):
        raise TypeError("label_values must be a sequence of label values")

    values = tuple(label_values)
    if len(values) != expected:
        raise InvalidLabelCount(expected, len(values))

    normalized: List[LabelValue] = []
    for value in values:
        if isinstance(value, LabelValue):
            value = value.value
        if value is not None and not isinstance(value, str):
            raise TypeError(
                f"Label values must be str, None or LabelValue, got {type(value).__name__}"
            )
        # Exporters render unset as "", so both must address one series
        normalized.append(LabelValue(value or None))

    return tuple(normalized)


def default_label_values(count: int) -> Tuple[LabelValue, ...]:
    """Label values identifying the default time series."""
    return tuple(LabelValue() for _ in range(count))


def raw_values(label_values: Sequence[LabelValue]) -> Tuple[Optional[str], ...]:
    """Unwrap ``LabelValue`` objects into plain optional strings."""
    return tuple(v.value for v in label_values)


def label_dict(
    label_keys: Sequence[LabelKey],
    label_values: Sequence[LabelValue]
) -> Dict[str, str]:
    """Zip keys and values into a mapping, rendering unset values as ''."""
    return {
        k.key: (v.value if v.value is not None else "")
        for k, v in zip(label_keys, label_values)
    }
