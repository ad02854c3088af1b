"""Dashboard session wiring: one ingestion adapter and its collaborators."""

from typing import Optional

from .config_models import SystemConfig
from .interfaces import StreamClient
from .logging_config import get_logger
from .monitoring.ingestion import BatchIngestion, IngestionAdapter, StreamingIngestion
from .simulation import TelemetryGenerator
from .streaming import InMemoryStreamClient, build_stream_client


class DashboardSession:
    """Own the ingestion adapter, stream client and simulator of one session.

    The stream client is created here and handed to the adapter explicitly;
    nothing is shared between sessions.
    """

    def __init__(self, adapter: IngestionAdapter, client: Optional[StreamClient] = None,
                 generator: Optional[TelemetryGenerator] = None):
        self.adapter = adapter
        self.client = client
        self.generator = generator
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: SystemConfig, client: Optional[StreamClient] = None) -> "DashboardSession":
        """
        Build a session for the ingestion mode named in the configuration.

        Args:
            config: System configuration
            client: Stream client to use in stream mode; built from config if None
        """
        ingestion = config.ingestion

        if ingestion.mode == "batch":
            adapter = BatchIngestion(
                data_file=ingestion.data_file,
                thresholds=config.thresholds,
                history_limit=ingestion.history_limit,
                rotation_interval_seconds=ingestion.rotation_interval_seconds,
            )
            return cls(adapter)

        client = client or build_stream_client(config.stream)
        adapter = StreamingIngestion(
            client,
            thresholds=config.thresholds,
            history_limit=ingestion.history_limit,
        )

        generator = None
        if config.simulation.enabled and isinstance(client, InMemoryStreamClient):
            generator = TelemetryGenerator(
                client,
                interval_seconds=config.simulation.interval_seconds,
                seed=config.simulation.seed,
            )
        return cls(adapter, client, generator)

    def start(self) -> None:
        self.adapter.start()
        if self.generator is not None and self.adapter.is_active and self.adapter.state()["error"] is None:
            self.generator.start()
        self.logger.info(f"Dashboard session started in {self.adapter.mode} mode")

    def stop(self) -> None:
        """Stop the simulator and ingestion. Safe to call repeatedly."""
        if self.generator is not None:
            self.generator.stop()
        self.adapter.stop()

    def __enter__(self) -> "DashboardSession":
        self.start()
        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        self.stop()
