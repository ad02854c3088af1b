"""Integration tests for batch-mode ingestion."""

import json

from powerdash.monitoring.classifier import StatusLabel
from powerdash.monitoring.ingestion import LOAD_ERROR_MESSAGE, BatchIngestion
from powerdash.monitoring.models import MetricType


class TestBatchLoading:
    def test_loads_snapshot_and_history(self, batch_adapter):
        snapshot = batch_adapter.snapshot()
        state = batch_adapter.state()

        assert snapshot["cosPhi"] == 0.97
        assert snapshot["amperage"] == 12.0
        assert state["is_loading"] is False
        assert state["error"] is None
        assert state["load_error"] is None
        assert state["last_updated"] is not None
        assert state["history_size"] == 10

    def test_document_thresholds_replace_configured_ones(self, batch_adapter):
        assert batch_adapter.thresholds.amperage.normal == 10

        statuses = batch_adapter.statuses()

        # 12 A is above the document's normal bound of 10 A
        assert statuses[MetricType.AMPERAGE].label == StatusLabel.WARNING

    def test_omitted_threshold_section_is_a_configuration_error(self, tmp_path, data_document):
        data_document["currentData"]["amperage"] = 30
        data_document["thresholds"] = {"cosPhi": {"excellent": 0.95, "good": 0.90, "warning": 0.85}}
        path = tmp_path / "data.json"
        path.write_text(json.dumps(data_document))
        adapter = BatchIngestion(data_file=path, simulate=False)
        adapter.start()
        adapter.flush()

        try:
            statuses = adapter.statuses()
            assert statuses[MetricType.AMPERAGE].is_configuration_error
            assert statuses[MetricType.AMPERAGE].label == StatusLabel.UNKNOWN
            assert statuses[MetricType.FREQUENCY].is_configuration_error
            assert not statuses[MetricType.COS_PHI].is_configuration_error
        finally:
            adapter.stop()

    def test_history_by_metric(self, batch_adapter):
        amperage = batch_adapter.history(MetricType.AMPERAGE)

        assert [(r.timestamp, r.value) for r in amperage] == [("10:00:00", 11.5), ("10:00:03", 18.0)]

    def test_history_limit_applies_to_document(self, data_file):
        adapter = BatchIngestion(data_file=data_file, history_limit=3, simulate=False)
        adapter.start()
        adapter.flush()

        try:
            assert len(adapter.history()) == 3
        finally:
            adapter.stop()

    def test_missing_file_uses_fallback(self, tmp_path):
        adapter = BatchIngestion(data_file=tmp_path / "missing.json", simulate=False)
        adapter.start()
        adapter.flush()

        try:
            state = adapter.state()
            assert state["load_error"] == LOAD_ERROR_MESSAGE
            assert state["error"] is None
            assert state["is_loading"] is False
            assert adapter.snapshot()["energyConsumption"] == 1247.5
            assert state["history_size"] == 15
        finally:
            adapter.stop()

    def test_malformed_file_uses_fallback(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"historicalData": []}))
        adapter = BatchIngestion(data_file=path, simulate=False)
        adapter.start()
        adapter.flush()

        try:
            assert adapter.state()["load_error"] == LOAD_ERROR_MESSAGE
            assert adapter.snapshot()["power"] == 3634
        finally:
            adapter.stop()


class TestRotation:
    def test_rotation_replaces_snapshot_without_growing_history(self, data_file):
        adapter = BatchIngestion(data_file=data_file, rotation_interval_seconds=60)
        adapter.start()
        adapter.flush()

        try:
            assert adapter.rotation is not None
            history_before = adapter.history()

            row = adapter.rotation.tick()
            adapter.flush()

            assert row.time == "10:00:00"
            assert adapter.snapshot()["amperage"] == 11.5
            assert adapter.history() == history_before

            adapter.rotation.tick()
            adapter.flush()
            assert adapter.snapshot()["amperage"] == 18.0
        finally:
            adapter.stop()

    def test_stop_cancels_rotation_timer(self, data_file):
        adapter = BatchIngestion(data_file=data_file, rotation_interval_seconds=0.01)
        adapter.start()
        adapter.flush()
        rotation = adapter.rotation

        adapter.stop()

        assert rotation is not None
        assert not rotation.is_running
        assert adapter.is_active is False


class TestLifecycle:
    def test_stop_is_idempotent(self, batch_adapter):
        batch_adapter.stop()
        batch_adapter.stop()

        assert batch_adapter.state()["active"] is False

    def test_stop_before_start(self, data_file):
        adapter = BatchIngestion(data_file=data_file)

        adapter.stop()

        assert adapter.state()["is_loading"] is False

    def test_start_after_stop_has_no_effect(self, data_file):
        adapter = BatchIngestion(data_file=data_file, simulate=False)
        adapter.stop()

        adapter.start()
        adapter.flush()

        assert adapter.snapshot()["amperage"] == 0.0
        assert adapter.rotation is None
