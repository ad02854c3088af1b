"""
Message stream clients for the streaming ingestion mode.

Clients are constructed per dashboard session and passed to the ingestion
adapter explicitly.
"""

from powerdash.config_models import StreamConfig
from powerdash.interfaces import StreamClient
from .memory import InMemoryStreamClient


def build_stream_client(config: StreamConfig) -> StreamClient:
    """Create the stream client selected by ``config.backend``."""
    if config.backend == "kafka":
        # Imported lazily so memory-only sessions never load aiokafka
        from .kafka import KafkaStreamClient
        return KafkaStreamClient(config)
    return InMemoryStreamClient()


__all__ = [
    "InMemoryStreamClient",
    "build_stream_client",
]
