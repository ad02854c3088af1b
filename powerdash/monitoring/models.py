"""
Data models for electrical telemetry.

This module defines the monitored metric types, the current-value snapshot,
immutable history records, and the tagged variant produced when an inbound
stream message is parsed.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MetricType(str, Enum):
    """Electrical quantities shown on the dashboard."""

    ENERGY_CONSUMPTION = "energyConsumption"
    COS_PHI = "cosPhi"
    AMPERAGE = "amperage"
    POWER = "power"
    FREQUENCY = "frequency"

    @classmethod
    def lookup(cls, name: Any) -> Optional["MetricType"]:
        """Return the member whose wire name is ``name``, or None."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return None


class HistoryRecord(BaseModel):
    """Single timestamped metric value. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str = Field(..., description="ISO-8601 or HH:MM:SS time label")
    metric_type: MetricType = Field(..., alias="metricType")
    value: float

    @classmethod
    def now(cls, metric_type: MetricType, value: float) -> "HistoryRecord":
        """Create a record stamped with the current wall-clock time."""
        return cls(timestamp=datetime.now().isoformat(timespec="seconds"),
                   metric_type=metric_type, value=value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "metricType": self.metric_type.value,
            "value": self.value
        }


class Snapshot:
    """Latest known value per monitored metric.

    Updated in place, one metric at a time. Not thread-safe on its own; the
    ingestion adapter only mutates it from its update channel.
    """

    def __init__(self, values: Optional[Dict[Union[MetricType, str], float]] = None):
        self._values: Dict[MetricType, float] = {metric: 0.0 for metric in MetricType}
        if values:
            for name, value in values.items():
                metric = MetricType.lookup(name)
                if metric is not None:
                    self._values[metric] = float(value)

    def __getitem__(self, metric: Union[MetricType, str]) -> float:
        resolved = MetricType.lookup(metric)
        if resolved is None:
            raise KeyError(metric)
        return self._values[resolved]

    def __iter__(self) -> Iterator[MetricType]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Snapshot({self.to_dict()!r})"

    def update(self, metric: MetricType, value: float) -> None:
        """Set a single metric, leaving every other field untouched."""
        self._values[metric] = float(value)

    def replace(self, other: "Snapshot") -> None:
        """Overwrite all values from another snapshot."""
        self._values.update(other._values)

    def copy(self) -> "Snapshot":
        return Snapshot(dict(self._values))

    def to_dict(self) -> Dict[str, float]:
        return {metric.value: value for metric, value in self._values.items()}


class MetricUpdate(BaseModel):
    """Inbound message that names a known metric."""

    model_config = ConfigDict(frozen=True)

    metric_type: MetricType
    value: float


class UnrecognizedMessage(BaseModel):
    """Inbound message that cannot be applied to the snapshot."""

    model_config = ConfigDict(frozen=True)

    raw: Any = None
    reason: str


StreamMessage = Union[MetricUpdate, UnrecognizedMessage]


def parse_message(raw: Any) -> StreamMessage:
    """
    Validate an inbound ``{type, value}`` message at the ingestion boundary.

    Args:
        raw: Decoded message payload

    Returns:
        MetricUpdate for a known metric with a finite numeric value,
        UnrecognizedMessage otherwise
    """
    if not isinstance(raw, dict):
        return UnrecognizedMessage(raw=raw, reason="message is not a mapping")

    metric = MetricType.lookup(raw.get("type"))
    if metric is None:
        return UnrecognizedMessage(raw=raw, reason=f"unknown metric type {raw.get('type')!r}")

    value = raw.get("value")
    # bool is an int subclass but never a reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return UnrecognizedMessage(raw=raw, reason=f"non-numeric value {value!r}")
    if not math.isfinite(value):
        return UnrecognizedMessage(raw=raw, reason=f"non-finite value {value!r}")

    return MetricUpdate(metric_type=metric, value=float(value))
