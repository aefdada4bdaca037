"""Data structures for label keys, label values and snapshot points."""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class LabelKey:
    """A declared label dimension."""
    key: str
    description: str = ""


@dataclass(frozen=True)
class LabelValue:
    """A single label value. ``None`` means the value is unset."""
    value: Optional[str] = None


@dataclass
class SeriesPoint:
    """A single gauge reading for one time series."""
    name: str
    label_values: Tuple[Optional[str], ...]
    labels: Dict[str, str]
    value: int
    timestamp: float = field(default=0.0)
