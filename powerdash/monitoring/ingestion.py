"""
Data ingestion adapters.

Both adapters normalize their input into the same shape: a current-value
Snapshot plus a bounded HistoryBuffer, along with loading/error flags for the
UI. BatchIngestion reads a static document and rotates through it on a timer;
StreamingIngestion applies {type, value} messages from a StreamClient.

All mutations are posted to an UpdateChannel and applied on its single worker
thread. Once stop() begins, posted updates are dropped.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from powerdash.config_models import ThresholdConfig
from powerdash.interfaces import DataSourceError, StreamClient, Unsubscribe
from powerdash.logging_config import get_logger
from .channel import UpdateChannel
from .classifier import StatusResult, classify_snapshot
from .data_source import DashboardDocument, HistoricalRow, fallback_document, load_dashboard_data
from .history import DEFAULT_HISTORY_LIMIT, HistoryBuffer
from .models import HistoryRecord, MetricType, MetricUpdate, Snapshot, UnrecognizedMessage, parse_message
from .rotation import RotationSimulator

LOAD_ERROR_MESSAGE = "Failed to load electrical data file. Using fallback data."


class IngestionAdapter(ABC):
    """Common state and query surface for ingestion modes."""

    mode: str = ""

    def __init__(self, thresholds: Optional[ThresholdConfig] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 channel: Optional[UpdateChannel] = None):
        self.logger = get_logger(__name__)
        self._thresholds = thresholds or ThresholdConfig()
        self._snapshot = Snapshot()
        self._history = HistoryBuffer(history_limit)
        self._channel = channel or UpdateChannel(name=f"{type(self).__name__}Updates")

        self._state_lock = threading.RLock()
        self._lifecycle_lock = threading.Lock()
        self._is_loading = True
        self._error: Optional[str] = None
        self._load_error: Optional[str] = None
        self._last_updated: Optional[str] = None

        self._started = False
        self._stopped = False
        self._accepting = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._accepting

    def start(self) -> None:
        """Begin ingestion. Calling start() twice, or after stop(), has no effect."""
        with self._lifecycle_lock:
            if self._started or self._stopped:
                self.logger.debug(f"Ignoring start() on {self.mode} ingestion (already started or stopped)")
                return
            self._started = True
            self._accepting = True

        self._channel.start()
        self.logger.info(f"Starting {self.mode} ingestion")
        self._activate()

    def stop(self) -> None:
        """
        Stop ingestion and release its resources.

        Idempotent; safe to call when start() was never called or failed.
        """
        with self._lifecycle_lock:
            if self._stopped:
                return
            self._stopped = True
            self._accepting = False

        # Close first so an in-flight update finishes before resources are released
        self._channel.close()
        self._release()

        with self._state_lock:
            self._is_loading = False

        self.logger.info(f"Stopped {self.mode} ingestion")

    def flush(self) -> None:
        """Block until every posted update has been applied."""
        self._channel.flush()

    @abstractmethod
    def _activate(self) -> None:
        """Connect to the data source. Must not raise."""

    @abstractmethod
    def _release(self) -> None:
        """Release timers, subscriptions and connections. Must not raise."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def thresholds(self) -> ThresholdConfig:
        with self._state_lock:
            return self._thresholds

    def snapshot(self) -> Snapshot:
        """Return a copy of the current values."""
        with self._state_lock:
            return self._snapshot.copy()

    def history(self, metric_type: Optional[MetricType] = None,
                count: Optional[int] = None) -> List[HistoryRecord]:
        """Return buffered history, optionally for a single metric."""
        if metric_type is None:
            return self._history.get_recent(count)
        return self._history.get_by_metric(metric_type, count)

    def history_summary(self, metric_type: MetricType) -> Dict[str, Any]:
        return self._history.summary(metric_type)

    def statuses(self) -> Dict[MetricType, StatusResult]:
        """Classify the current snapshot against the session thresholds."""
        with self._state_lock:
            return classify_snapshot(self._snapshot, self._thresholds)

    def state(self) -> Dict[str, Any]:
        with self._state_lock:
            return {
                "mode": self.mode,
                "is_loading": self._is_loading,
                "error": self._error,
                "load_error": self._load_error,
                "last_updated": self._last_updated,
                "history_size": self._history.size(),
                "active": self._accepting
            }

    # ------------------------------------------------------------------
    # Update plumbing
    # ------------------------------------------------------------------

    def _post(self, update) -> bool:
        """Post an update that is applied only while ingestion is active."""
        if not self._accepting:
            return False

        def guarded() -> None:
            if self._accepting:
                update()

        return self._channel.post(guarded)

    @staticmethod
    def _now() -> str:
        return datetime.now().isoformat(timespec="seconds")


class BatchIngestion(IngestionAdapter):
    """Ingest a static historical document, then rotate through it."""

    mode = "batch"

    def __init__(self, data_file: Optional[Path] = None,
                 thresholds: Optional[ThresholdConfig] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 rotation_interval_seconds: float = 3.0,
                 simulate: bool = True,
                 channel: Optional[UpdateChannel] = None):
        """
        Initialize batch ingestion.

        Args:
            data_file: Document to load; None uses the bundled sample
            thresholds: Thresholds used when the document carries none
            history_limit: Maximum buffered history records
            rotation_interval_seconds: Interval of the liveness rotation
            simulate: Start the rotation timer after loading
            channel: Update channel; a private one is created by default
        """
        super().__init__(thresholds, history_limit, channel)
        self.data_file = data_file
        self.rotation_interval_seconds = rotation_interval_seconds
        self.simulate = simulate
        self.rotation: Optional[RotationSimulator] = None

    def _activate(self) -> None:
        # Loading runs on the update channel so start() returns immediately
        self._post(self._load)

    def _load(self) -> None:
        load_error = None
        try:
            document = load_dashboard_data(self.data_file)
        except DataSourceError as e:
            self.logger.warning(f"Error loading data file, using fallback data: {e}")
            document = fallback_document()
            load_error = LOAD_ERROR_MESSAGE

        self._apply_document(document, load_error)

        if self.simulate and document.historical_data:
            self.rotation = RotationSimulator(
                document.historical_data,
                on_tick=self._on_rotation_tick,
                interval_seconds=self.rotation_interval_seconds
            )
            self.rotation.start()

    def _apply_document(self, document: DashboardDocument, load_error: Optional[str]) -> None:
        records = document.history_records()
        with self._state_lock:
            self._snapshot.replace(document.current_data.to_snapshot())
            if document.thresholds is not None:
                self._thresholds = document.thresholds
            self._history.clear()
            self._history.extend(records)
            self._load_error = load_error
            self._last_updated = self._now()
            self._is_loading = False

        self.logger.info(
            f"Batch data ready: {len(document.historical_data)} rows, "
            f"{self._history.size()} history records buffered"
        )

    def _on_rotation_tick(self, row: HistoricalRow) -> None:
        self._post(lambda: self._apply_rotation(row))

    def _apply_rotation(self, row: HistoricalRow) -> None:
        with self._state_lock:
            self._snapshot.replace(row.to_snapshot())
            self._last_updated = self._now()
        self.logger.debug(f"Rotated snapshot to row {row.time}")

    def _release(self) -> None:
        if self.rotation is not None:
            self.rotation.stop()


class StreamingIngestion(IngestionAdapter):
    """Ingest {type, value} messages from a stream client."""

    mode = "stream"

    def __init__(self, client: StreamClient,
                 thresholds: Optional[ThresholdConfig] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 channel: Optional[UpdateChannel] = None):
        super().__init__(thresholds, history_limit, channel)
        self.client = client
        self._unsubscribe: Optional[Unsubscribe] = None
        self.messages_applied = 0
        self.messages_ignored = 0

    def _activate(self) -> None:
        self.client.on_error(self.handle_stream_error)
        try:
            self.client.connect()
            self._unsubscribe = self.client.subscribe(self.handle_message)
        except Exception as e:
            self.logger.error(f"Stream ingestion failed to start: {e}")
            with self._state_lock:
                self._error = f"Failed to connect to data stream: {e}"
                self._is_loading = False
            self._accepting = False
            self._safe_disconnect()
            return

        self.logger.info("Subscribed to data stream")

    def handle_message(self, raw: Any) -> None:
        """Handle one inbound message. Safe to call from any thread."""
        if not self._accepting:
            return

        message = parse_message(raw)
        if isinstance(message, UnrecognizedMessage):
            self.messages_ignored += 1
            self.logger.debug(f"Ignoring stream message: {message.reason}")
            return

        self._post(lambda: self._apply_update(message))

    def handle_stream_error(self, error: Exception) -> None:
        """Record a failure of the stream after subscribe. Safe to call from any thread."""
        self.logger.error(f"Data stream failed: {error}")
        self._post(lambda: self._apply_stream_error(error))

    def _apply_stream_error(self, error: Exception) -> None:
        with self._state_lock:
            self._error = f"Data stream failed: {error}"
            self._is_loading = False
        # Terminal until stop(); later deliveries are dropped
        self._accepting = False

    def _apply_update(self, update: MetricUpdate) -> None:
        record = HistoryRecord.now(update.metric_type, update.value)
        with self._state_lock:
            self._snapshot.update(update.metric_type, update.value)
            self._history.append(record)
            self._last_updated = record.timestamp
            self._is_loading = False
        self.messages_applied += 1

    def _release(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            try:
                unsubscribe()
            except Exception as e:
                self.logger.warning(f"Error during unsubscribe: {e}")
        self._safe_disconnect()

    def _safe_disconnect(self) -> None:
        try:
            if self.client.is_connected:
                self.client.disconnect()
        except Exception as e:
            self.logger.warning(f"Error during stream disconnect: {e}")
