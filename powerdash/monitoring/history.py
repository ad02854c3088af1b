"""Bounded in-memory history buffer for charting."""

import threading
from collections import deque
from typing import Any, Dict, Iterable, List, Optional

from .models import HistoryRecord, MetricType

DEFAULT_HISTORY_LIMIT = 200


class HistoryBuffer:
    """Insertion-ordered FIFO buffer of history records.

    Appends beyond ``max_size`` evict the oldest records first. Reads take a
    lock so renderers on other threads always see a consistent copy.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_LIMIT):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._buffer: deque = deque(maxlen=max_size)
        self._lock = threading.RLock()

    def append(self, record: HistoryRecord) -> None:
        """Add a record, evicting the oldest one when full."""
        with self._lock:
            self._buffer.append(record)

    def extend(self, records: Iterable[HistoryRecord]) -> None:
        with self._lock:
            self._buffer.extend(records)

    def get_recent(self, count: Optional[int] = None) -> List[HistoryRecord]:
        """Get the most recent records in arrival order."""
        with self._lock:
            records = list(self._buffer)
        if count is None:
            return records
        return records[-count:] if count > 0 else []

    def get_by_metric(self, metric_type: MetricType, count: Optional[int] = None) -> List[HistoryRecord]:
        """Get recent records of a single metric, e.g. for one chart series."""
        with self._lock:
            matching = [r for r in self._buffer if r.metric_type == metric_type]
        if count is None:
            return matching
        return matching[-count:] if count > 0 else []

    def summary(self, metric_type: MetricType) -> Dict[str, Any]:
        """Get a statistical summary of a metric over the buffered window."""
        values = [r.value for r in self.get_by_metric(metric_type)]

        if not values:
            return {"metric": metric_type.value, "count": 0, "error": "No data buffered"}

        summary = {
            "metric": metric_type.value,
            "count": len(values),
            "min": min(values),
            "max": max(values),
            "mean": sum(values) / len(values),
            "latest": values[-1]
        }

        if len(values) > 1:
            mean = summary["mean"]
            variance = sum((x - mean) ** 2 for x in values) / (len(values) - 1)
            summary["std_dev"] = variance ** 0.5

        return summary

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def __len__(self) -> int:
        return self.size()
