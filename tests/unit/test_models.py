"""Unit tests for telemetry data models and message parsing."""

import math

import pytest
from pydantic import ValidationError

from powerdash.monitoring.models import (
    HistoryRecord,
    MetricType,
    MetricUpdate,
    Snapshot,
    UnrecognizedMessage,
    parse_message,
)


class TestSnapshot:
    def test_defaults_to_zero_for_every_metric(self):
        snapshot = Snapshot()

        assert snapshot.to_dict() == {
            "energyConsumption": 0.0,
            "cosPhi": 0.0,
            "amperage": 0.0,
            "power": 0.0,
            "frequency": 0.0
        }

    def test_update_changes_only_named_metric(self):
        snapshot = Snapshot({"energyConsumption": 1247.5, "cosPhi": 0.92, "amperage": 15.8,
                             "power": 3634, "frequency": 50.0})
        before = snapshot.to_dict()

        snapshot.update(MetricType.POWER, 3700)

        after = snapshot.to_dict()
        assert after["power"] == 3700
        assert {k: v for k, v in after.items() if k != "power"} == \
            {k: v for k, v in before.items() if k != "power"}

    def test_ignores_unknown_keys_on_construction(self):
        snapshot = Snapshot({"voltage": 230, "amperage": 10})

        assert snapshot["amperage"] == 10
        assert "voltage" not in snapshot.to_dict()

    def test_copy_is_independent(self):
        snapshot = Snapshot({"amperage": 10})
        copy = snapshot.copy()

        snapshot.update(MetricType.AMPERAGE, 11)

        assert copy["amperage"] == 10
        assert snapshot != copy

    def test_unknown_key_lookup_raises(self):
        with pytest.raises(KeyError):
            Snapshot()["voltage"]


class TestHistoryRecord:
    def test_is_immutable(self):
        record = HistoryRecord(timestamp="14:30:00", metric_type=MetricType.AMPERAGE, value=15.2)

        with pytest.raises(ValidationError):
            record.value = 16.0

    def test_accepts_wire_names(self):
        record = HistoryRecord(timestamp="14:30:00", metricType="cosPhi", value=0.91)

        assert record.metric_type is MetricType.COS_PHI
        assert record.to_dict() == {"timestamp": "14:30:00", "metricType": "cosPhi", "value": 0.91}

    def test_now_uses_wall_clock_iso_timestamp(self):
        record = HistoryRecord.now(MetricType.FREQUENCY, 50.0)

        assert "T" in record.timestamp
        assert record.value == 50.0


class TestParseMessage:
    def test_known_metric(self):
        message = parse_message({"type": "power", "value": 3700})

        assert message == MetricUpdate(metric_type=MetricType.POWER, value=3700.0)

    @pytest.mark.parametrize("raw", [
        {"type": "voltage", "value": 230},
        {"value": 12},
        {"type": "amperage"},
        {"type": "amperage", "value": "12"},
        {"type": "amperage", "value": True},
        {"type": "amperage", "value": math.nan},
        {"type": "amperage", "value": math.inf},
        ["amperage", 12],
        None,
    ])
    def test_unrecognized_shapes(self, raw):
        message = parse_message(raw)

        assert isinstance(message, UnrecognizedMessage)
        assert message.reason

    def test_integer_values_are_coerced_to_float(self):
        message = parse_message({"type": "amperage", "value": 16})

        assert isinstance(message.value, float)
