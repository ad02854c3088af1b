"""
Telemetry simulation for running the dashboard without a broker.

This package provides:
- Behavioral models with noise and bounded drift
- A generator that publishes readings to a stream client
"""

from .behavioral_models import BehavioralModel, DriftModel, NoiseModel
from .telemetry_generator import TelemetryGenerator

__all__ = [
    "BehavioralModel",
    "DriftModel",
    "NoiseModel",
    "TelemetryGenerator"
]
