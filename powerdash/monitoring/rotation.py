"""Periodic snapshot rotation that keeps a static data set looking live."""

import threading
from typing import Callable, List, Optional, Sequence

from powerdash.logging_config import get_logger
from .data_source import HistoricalRow


class RotationSimulator:
    """Cycle through a fixed list of rows on a fixed interval.

    Each tick hands the next row to ``on_tick``; the row values are never
    changed. The timer runs on its own daemon thread and stops on stop().
    """

    def __init__(self, rows: Sequence[HistoricalRow], on_tick: Callable[[HistoricalRow], None],
                 interval_seconds: float = 3.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.rows: List[HistoricalRow] = list(rows)
        self.on_tick = on_tick
        self.interval_seconds = interval_seconds
        self.logger = get_logger(__name__)

        self._index = 0
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> Optional[HistoricalRow]:
        """Emit the next row of the rotation. Returns None if there are no rows."""
        if not self.rows:
            return None
        row = self.rows[self._index % len(self.rows)]
        self._index += 1
        self.on_tick(row)
        return row

    def start(self) -> None:
        """Start the rotation timer. No-op when there is nothing to rotate."""
        if self.is_running or self._stop_event.is_set():
            return
        if not self.rows:
            self.logger.debug("Rotation not started: no rows to cycle")
            return

        self._thread = threading.Thread(target=self._worker, daemon=True, name="SnapshotRotation")
        self._thread.start()
        self.logger.info(f"Started snapshot rotation over {len(self.rows)} rows every {self.interval_seconds}s")

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel the timer. Safe to call repeatedly."""
        self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _worker(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.tick()
            except Exception as e:
                self.logger.error(f"Error in snapshot rotation: {e}")
