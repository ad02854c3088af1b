"""Unit tests for behavioral models and the telemetry generator."""

import random

import pytest

from powerdash.monitoring.models import MetricType
from powerdash.simulation import DriftModel, NoiseModel, TelemetryGenerator
from powerdash.streaming.memory import InMemoryStreamClient


class TestBehavioralModels:
    def test_drift_stays_within_max_offset(self):
        drift = DriftModel(step=1.0, max_offset=0.5, rng=random.Random(1))

        for _ in range(500):
            value = drift.apply(10.0)
            assert 9.5 <= value <= 10.5

    def test_drift_reset(self):
        drift = DriftModel(step=1.0, max_offset=5.0, rng=random.Random(1))
        drift.apply(0.0)

        drift.reset()

        assert drift.offset == 0.0

    def test_drift_rejects_negative_bound(self):
        with pytest.raises(ValueError):
            DriftModel(step=0.1, max_offset=-1.0)

    def test_noise_is_reproducible_with_seed(self):
        first = NoiseModel(rms_noise=0.01, rng=random.Random(7))
        second = NoiseModel(rms_noise=0.01, rng=random.Random(7))

        assert [first.apply(50.0) for _ in range(5)] == [second.apply(50.0) for _ in range(5)]

    def test_noise_without_pink_component(self):
        noise = NoiseModel(rms_noise=0.0, frequency_noise=False)

        assert noise.apply(230.0) == 230.0


class TestTelemetryGenerator:
    def test_readings_cover_every_metric(self, memory_client):
        generator = TelemetryGenerator(memory_client)

        readings = generator.generate()

        assert set(readings) == set(MetricType)

    def test_readings_stay_physical(self, memory_client):
        generator = TelemetryGenerator(memory_client, seed=3)

        for _ in range(300):
            readings = generator.generate()
            assert 0.0 <= readings[MetricType.COS_PHI] <= 1.0
            assert readings[MetricType.AMPERAGE] >= 0.0
            assert readings[MetricType.POWER] >= 0.0

    def test_energy_counter_never_decreases(self, memory_client):
        generator = TelemetryGenerator(memory_client, start_energy_kwh=100.0)

        values = [generator.generate()[MetricType.ENERGY_CONSUMPTION] for _ in range(50)]

        assert values[0] >= 100.0
        assert values == sorted(values)

    def test_same_seed_same_readings(self, memory_client):
        first = TelemetryGenerator(memory_client, seed=11)
        second = TelemetryGenerator(memory_client, seed=11)

        assert first.generate() == second.generate()

    def test_publish_once_sends_one_message_per_metric(self):
        client = InMemoryStreamClient()
        client.connect()
        received = []
        client.subscribe(received.append)
        generator = TelemetryGenerator(client)

        generator.publish_once()

        assert generator.published_count == 5
        assert {message["type"] for message in received} == {m.value for m in MetricType}

    def test_rejects_non_positive_interval(self, memory_client):
        with pytest.raises(ValueError):
            TelemetryGenerator(memory_client, interval_seconds=0)

    def test_stop_without_start(self, memory_client):
        generator = TelemetryGenerator(memory_client)

        generator.stop()
        generator.stop()

        assert not generator.is_running
