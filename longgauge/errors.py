"""Errors raised by gauges and the metric registry."""


class InvalidLabelCount(ValueError):
    """Raised when a label value sequence does not match the declared label keys."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {expected} label value(s), got {actual}"
        )


class MetricConflict(ValueError):
    """Raised when a metric name is registered twice with a different shape."""
