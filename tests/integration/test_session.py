"""Integration tests for dashboard session wiring."""

from powerdash.config_models import SystemConfig
from powerdash.monitoring.ingestion import BatchIngestion, StreamingIngestion
from powerdash.session import DashboardSession
from powerdash.streaming import InMemoryStreamClient


class TestDashboardSession:
    def test_batch_mode(self, data_file):
        config = SystemConfig(ingestion={"mode": "batch", "data_file": data_file})

        with DashboardSession.from_config(config) as session:
            session.adapter.flush()

            assert isinstance(session.adapter, BatchIngestion)
            assert session.client is None
            assert session.adapter.snapshot()["cosPhi"] == 0.97

        assert session.adapter.is_active is False

    def test_stream_mode_gets_its_own_client(self):
        config = SystemConfig(ingestion={"mode": "stream"}, simulation={"enabled": False})

        first = DashboardSession.from_config(config)
        second = DashboardSession.from_config(config)

        assert isinstance(first.adapter, StreamingIngestion)
        assert isinstance(first.client, InMemoryStreamClient)
        assert first.client is not second.client
        assert first.generator is None

    def test_injected_client_is_used(self, memory_client):
        config = SystemConfig(ingestion={"mode": "stream"}, simulation={"enabled": False})

        with DashboardSession.from_config(config, client=memory_client) as session:
            memory_client.publish("frequency", 49.7)
            session.adapter.flush()

            assert session.adapter.snapshot()["frequency"] == 49.7

        assert not memory_client.is_connected

    def test_simulated_stream_feeds_adapter(self):
        config = SystemConfig(ingestion={"mode": "stream"}, simulation={"interval_seconds": 0.01})
        session = DashboardSession.from_config(config)

        session.start()
        try:
            session.generator.publish_once()
            session.adapter.flush()

            state = session.adapter.state()
            assert state["is_loading"] is False
            assert state["history_size"] >= 5
        finally:
            session.stop()
            session.stop()

        assert not session.generator.is_running
