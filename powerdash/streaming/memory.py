"""In-process publish/subscribe stream client."""

import threading
from typing import List

from powerdash.interfaces import MessageHandler, StreamClient, StreamError, Unsubscribe
from powerdash.logging_config import get_logger


class InMemoryStreamClient(StreamClient):
    """Fan messages out to local subscribers without a broker.

    publish() delivers synchronously on the caller's thread.
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self.logger = get_logger(__name__)
        self._handlers: List[MessageHandler] = []
        self._lock = threading.Lock()
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def connect(self) -> None:
        self._connected = True
        self.logger.info(f"Stream client '{self.name}' connected")

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        if not self._connected:
            raise StreamError(f"Stream client '{self.name}' is not connected")

        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def publish(self, metric_type: str, value: float) -> None:
        if not self._connected:
            raise StreamError(f"Cannot publish on disconnected stream client '{self.name}'")

        message = {"type": metric_type, "value": value}
        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler(message)
            except Exception as e:
                self.logger.error(f"Subscriber failed on message {message}: {e}")

    def disconnect(self) -> None:
        if not self._connected:
            return
        with self._lock:
            self._handlers.clear()
        self._connected = False
        self.logger.info(f"Stream client '{self.name}' disconnected")
