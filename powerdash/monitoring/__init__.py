"""
Live electrical telemetry monitoring.

This module provides:
- Threshold-based status classification
- Batch and streaming ingestion into a snapshot plus bounded history
- View models and a Flask/Socket.IO dashboard server
"""

from .classifier import SeverityTier, StatusLabel, StatusResult, classify, classify_snapshot
from .history import HistoryBuffer
from .ingestion import BatchIngestion, IngestionAdapter, StreamingIngestion
from .models import HistoryRecord, MetricType, MetricUpdate, Snapshot, UnrecognizedMessage, parse_message

__all__ = [
    "BatchIngestion",
    "HistoryBuffer",
    "HistoryRecord",
    "IngestionAdapter",
    "MetricType",
    "MetricUpdate",
    "SeverityTier",
    "Snapshot",
    "StatusLabel",
    "StatusResult",
    "StreamingIngestion",
    "UnrecognizedMessage",
    "classify",
    "classify_snapshot",
    "parse_message",
]
