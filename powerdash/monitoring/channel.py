"""
Serialized update channel.

Every state mutation of the ingestion adapter is posted here and applied by a
single worker thread, so independent producers (stream handler, rotation
timer, batch loader) never mutate the snapshot or history concurrently.
"""

import queue
import threading
from typing import Callable, Optional

from powerdash.logging_config import get_logger

Update = Callable[[], None]

_STOP = object()


class UpdateChannel:
    """Single-consumer queue of state updates."""

    def __init__(self, name: str = "IngestionUpdates"):
        self.name = name
        self.logger = get_logger(__name__)
        self._queue: queue.Queue = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._closed = threading.Event()
        self._lifecycle_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> None:
        """Start the worker thread. No-op if already running or closed."""
        with self._lifecycle_lock:
            if self._closed.is_set() or self.is_running:
                return
            self._worker = threading.Thread(target=self._run, daemon=True, name=self.name)
            self._worker.start()

    def post(self, update: Update) -> bool:
        """
        Queue an update for the worker thread.

        Returns:
            True if the update was accepted, False if the channel is closed
        """
        if self._closed.is_set():
            self.logger.debug(f"Dropping update posted to closed channel {self.name}")
            return False
        self._queue.put(update)
        return True

    def flush(self) -> None:
        """Block until every accepted update has been applied."""
        if not self.is_running:
            return
        self._queue.join()

    def close(self, timeout: float = 5.0) -> None:
        """
        Stop accepting updates, drain pending ones and stop the worker.

        Safe to call repeatedly and before start().
        """
        with self._lifecycle_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            worker = self._worker

        if worker is None:
            return

        self._queue.put(_STOP)
        if worker is not threading.current_thread():
            worker.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            update = self._queue.get()
            try:
                if update is _STOP:
                    return
                update()
            except Exception as e:
                self.logger.error(f"Error applying update on {self.name}: {e}", exc_info=True)
            finally:
                self._queue.task_done()
