"""
Central pytest configuration and fixtures.

This module provides the fixtures shared across all test modules, including
configuration with isolated directories, session logging, stream client
doubles and ingestion adapters that are always stopped after the test.
"""

import json
import tempfile
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from powerdash.config_models import SystemConfig, ThresholdConfig
from powerdash.interfaces import MessageHandler, StreamClient, StreamError, Unsubscribe
from powerdash.logging_config import get_logger, setup_logging
from powerdash.monitoring.ingestion import BatchIngestion, StreamingIngestion
from powerdash.streaming.memory import InMemoryStreamClient

_session_config: Optional[SystemConfig] = None


class FailingStreamClient(StreamClient):
    """Stream client double whose connect() or subscribe() always fails."""

    def __init__(self, fail_on: str = "connect"):
        self.fail_on = fail_on
        self.connected = False
        self.disconnect_calls = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        if self.fail_on == "connect":
            raise StreamError("broker unreachable")
        self.connected = True

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        raise StreamError("topic does not exist")

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False


class LeakyStreamClient(InMemoryStreamClient):
    """Client double that keeps delivering to handlers after unsubscribe.

    Used to prove the adapter itself refuses late messages.
    """

    def __init__(self):
        super().__init__(name="leaky")
        self.all_handlers: List[MessageHandler] = []
        self.unsubscribe_calls = 0

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        super().subscribe(handler)
        self.all_handlers.append(handler)

        def unsubscribe() -> None:
            self.unsubscribe_calls += 1

        return unsubscribe

    def emit(self, message: Dict[str, Any]) -> None:
        for handler in self.all_handlers:
            handler(message)


# ================================================================================
# Session-scoped fixtures (created once per test session)
# ================================================================================

@pytest.fixture(scope="session")
def config() -> SystemConfig:
    """
    Provide system configuration for the entire test session.

    Logs go to a temporary directory so test runs never write into the
    working tree.
    """
    global _session_config

    if _session_config is None:
        temp_dir = Path(tempfile.mkdtemp(prefix="powerdash_test_"))
        _session_config = SystemConfig(paths={"log_dir": temp_dir / "logs"})

    return _session_config


@pytest.fixture(scope="session", autouse=True)
def test_session(config: SystemConfig) -> Generator[str, None, None]:
    """Set up logging once for the whole test session."""
    session_id = setup_logging(config, f"test-{uuid.uuid4()}")
    logger = get_logger(__name__)
    logger.info(f"Starting test session {session_id}")

    yield session_id

    logger.info(f"Completing test session {session_id}")


# ================================================================================
# Function-scoped fixtures (created for each test function)
# ================================================================================

@pytest.fixture
def thresholds() -> ThresholdConfig:
    """Default threshold configuration."""
    return ThresholdConfig()


@pytest.fixture
def memory_client() -> Generator[InMemoryStreamClient, None, None]:
    """Provide an in-process stream client, disconnected after the test."""
    client = InMemoryStreamClient(name="test")
    yield client
    client.disconnect()


@pytest.fixture
def leaky_client() -> LeakyStreamClient:
    return LeakyStreamClient()


@pytest.fixture
def failing_client():
    """Factory for stream clients that fail on connect or subscribe."""
    return FailingStreamClient


@pytest.fixture
def streaming_adapter(memory_client: InMemoryStreamClient,
                      thresholds: ThresholdConfig) -> Generator[StreamingIngestion, None, None]:
    """Provide a started streaming adapter on the in-process client."""
    adapter = StreamingIngestion(memory_client, thresholds=thresholds)
    adapter.start()

    yield adapter

    adapter.stop()


@pytest.fixture
def data_document() -> Dict[str, Any]:
    """A small but complete batch-mode data document."""
    return {
        "currentData": {
            "energyConsumption": 1300.0,
            "cosPhi": 0.97,
            "amperage": 12.0,
            "power": 2900,
            "frequency": 50.02
        },
        "historicalData": [
            {"time": "10:00:00", "energy": 1299.1, "cosPhi": 0.96, "amperage": 11.5, "power": 2850, "frequency": 50.0},
            {"time": "10:00:03", "energy": 1299.5, "cosPhi": 0.88, "amperage": 18.0, "power": 3100, "frequency": 49.7},
        ],
        "thresholds": {
            "cosPhi": {"excellent": 0.95, "good": 0.90, "warning": 0.85},
            "amperage": {"normal": 10, "warning": 15},
            "frequency": {"stable_min": 49.9, "stable_max": 50.1, "acceptable_min": 49.5, "acceptable_max": 50.5}
        }
    }


@pytest.fixture
def data_file(tmp_path: Path, data_document: Dict[str, Any]) -> Path:
    path = tmp_path / "electrical_data.json"
    path.write_text(json.dumps(data_document))
    return path


@pytest.fixture
def batch_adapter(data_file: Path) -> Generator[BatchIngestion, None, None]:
    """Provide a started batch adapter with the rotation timer disabled."""
    adapter = BatchIngestion(data_file=data_file, simulate=False)
    adapter.start()
    adapter.flush()

    yield adapter

    adapter.stop()


# ================================================================================
# Pytest hooks
# ================================================================================

def pytest_collection_modifyitems(config: pytest.Config, items) -> None:
    """Add markers based on the test path."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
