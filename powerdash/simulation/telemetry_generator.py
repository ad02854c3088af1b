"""
Simulated telemetry publisher.

Publishes plausible electrical readings to a StreamClient so the streaming
ingestion path can run without a broker.
"""

import random
import threading
from typing import Dict, Optional

from powerdash.interfaces import StreamClient
from powerdash.logging_config import get_logger
from powerdash.monitoring.models import MetricType
from .behavioral_models import DriftModel, NoiseModel

NOMINAL_VOLTAGE = 230.0


class TelemetryGenerator:
    """Publish one reading per metric on a fixed interval."""

    def __init__(self, client: StreamClient, interval_seconds: float = 1.0,
                 seed: Optional[int] = 42, start_energy_kwh: float = 1247.5):
        """
        Initialize the generator.

        Args:
            client: Stream client that supports publish()
            interval_seconds: Seconds between published readings
            seed: Random seed; None for non-reproducible output
            start_energy_kwh: Initial value of the energy counter
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.client = client
        self.interval_seconds = interval_seconds
        self.logger = get_logger(__name__)
        self.energy_kwh = start_energy_kwh

        rng = random.Random(seed)
        self._nominal = {
            MetricType.COS_PHI: 0.92,
            MetricType.AMPERAGE: 15.8,
            MetricType.FREQUENCY: 50.0,
        }
        self._drift = {
            MetricType.COS_PHI: DriftModel(step=0.005, max_offset=0.08, rng=rng),
            MetricType.AMPERAGE: DriftModel(step=0.3, max_offset=6.0, rng=rng),
            MetricType.FREQUENCY: DriftModel(step=0.02, max_offset=0.7, rng=rng),
        }
        self._noise = NoiseModel(rms_noise=0.002, rng=rng)

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.published_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def generate(self) -> Dict[MetricType, float]:
        """Produce the next set of readings and advance the energy counter."""
        readings = {
            metric: self._noise.apply(self._drift[metric].apply(nominal))
            for metric, nominal in self._nominal.items()
        }
        readings[MetricType.COS_PHI] = min(1.0, max(0.0, readings[MetricType.COS_PHI]))
        readings[MetricType.AMPERAGE] = max(0.0, readings[MetricType.AMPERAGE])

        power = NOMINAL_VOLTAGE * readings[MetricType.AMPERAGE] * readings[MetricType.COS_PHI]
        self.energy_kwh += power * self.interval_seconds / 3600.0 / 1000.0

        readings[MetricType.POWER] = power
        readings[MetricType.ENERGY_CONSUMPTION] = self.energy_kwh
        return {metric: round(value, 3) for metric, value in readings.items()}

    def publish_once(self) -> Dict[MetricType, float]:
        """Generate readings and publish one message per metric."""
        readings = self.generate()
        for metric, value in readings.items():
            self.client.publish(metric.value, value)
            self.published_count += 1
        return readings

    def start(self) -> None:
        if self.is_running or self._stop_event.is_set():
            return
        self._thread = threading.Thread(target=self._worker, daemon=True, name="TelemetryGenerator")
        self._thread.start()
        self.logger.info(f"Started telemetry generator every {self.interval_seconds}s")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop publishing. Safe to call repeatedly."""
        self._stop_event.set()
        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def _worker(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.publish_once()
            except Exception as e:
                self.logger.error(f"Error publishing simulated telemetry: {e}")
