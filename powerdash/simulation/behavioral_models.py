"""
Behavioral models for simulated electrical readings.

Models perturb a nominal operating value with realistic noise and slow drift
so that simulated telemetry moves across status thresholds now and then.
"""

import random
from abc import ABC, abstractmethod
from typing import Optional


class BehavioralModel(ABC):
    """Abstract base class for reading behavioral models."""

    @abstractmethod
    def apply(self, base_value: float) -> float:
        """Apply behavioral modification to base value."""

    @abstractmethod
    def reset(self) -> None:
        """Reset model state."""


class NoiseModel(BehavioralModel):
    """Gaussian measurement noise with a low-frequency component."""

    def __init__(self, rms_noise: float = 0.001, frequency_noise: bool = True,
                 rng: Optional[random.Random] = None):
        """
        Initialize noise model.

        Args:
            rms_noise: RMS noise level relative to signal
            frequency_noise: Add 1/f noise in addition to white noise
            rng: Random source; a seeded one is created if omitted
        """
        self.rms_noise = rms_noise
        self.frequency_noise = frequency_noise
        self._random = rng or random.Random(42)
        self._pink_noise_state = 0.0

    def apply(self, base_value: float) -> float:
        white_noise = self._random.gauss(0, self.rms_noise * abs(base_value))

        # Simple pink noise approximation
        if self.frequency_noise:
            self._pink_noise_state = 0.95 * self._pink_noise_state + 0.05 * self._random.gauss(0, 1)
            pink_noise = self._pink_noise_state * self.rms_noise * abs(base_value) * 0.3
        else:
            pink_noise = 0.0

        return base_value + white_noise + pink_noise

    def reset(self) -> None:
        self._pink_noise_state = 0.0


class DriftModel(BehavioralModel):
    """Bounded random-walk drift around the nominal value."""

    def __init__(self, step: float, max_offset: float, rng: Optional[random.Random] = None):
        """
        Initialize drift model.

        Args:
            step: Standard deviation of each random-walk step, in metric units
            max_offset: Largest absolute offset from the nominal value
            rng: Random source; a seeded one is created if omitted
        """
        if max_offset < 0:
            raise ValueError("max_offset must be non-negative")
        self.step = step
        self.max_offset = max_offset
        self._random = rng or random.Random(42)
        self.offset = 0.0

    def apply(self, base_value: float) -> float:
        self.offset += self._random.gauss(0, self.step)
        self.offset = max(-self.max_offset, min(self.max_offset, self.offset))
        return base_value + self.offset

    def reset(self) -> None:
        self.offset = 0.0
