"""Exceptions and abstract collaborator interfaces for the dashboard."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

# Handler receives the raw decoded message, e.g. {"type": "power", "value": 3700}
MessageHandler = Callable[[Dict[str, Any]], None]
Unsubscribe = Callable[[], None]
ErrorHandler = Callable[[Exception], None]


class DashboardError(Exception):
    """Base exception for dashboard-related errors."""


class DataSourceError(DashboardError):
    """Raised when a historical data document cannot be read or validated."""


class StreamError(DashboardError):
    """Raised when a stream client fails to connect or subscribe."""


class ThresholdConfigError(DashboardError):
    """Raised when a threshold section is missing for a known metric type."""


class StreamClient(ABC):
    """Interface every message-stream client must implement."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Return True if the client holds a live connection."""

    @abstractmethod
    def connect(self) -> None:
        """
        Establish the connection to the broker.

        Raises:
            StreamError: If the connection cannot be established
        """

    @abstractmethod
    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        """
        Register a handler for inbound messages.

        Args:
            handler: Callable invoked once per decoded message

        Returns:
            Callable that removes the subscription. Calling it more than
            once has no effect.

        Raises:
            StreamError: If the subscription cannot be created
        """

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection. Safe to call when not connected."""

    def on_error(self, handler: Optional[ErrorHandler]) -> None:
        """Register the callback told when delivery fails after subscribe, e.g. a dropped consumer."""
        self._error_handler = handler

    def report_error(self, error: Exception) -> None:
        """Hand a delivery failure to the registered error handler, if any."""
        handler = getattr(self, "_error_handler", None)
        if handler is not None:
            handler(error)

    def publish(self, metric_type: str, value: float) -> None:
        """
        Publish a message to the stream.

        Clients that only consume do not need to override this.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support publishing")
