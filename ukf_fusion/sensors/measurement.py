"""
Measurement samples produced by the lidar and radar sensors.
"""

import numpy as np
from dataclasses import dataclass, field
from enum import Enum

from ..math.utils import polar_to_cartesian

class SensorType(Enum):
    """Sensor that produced a measurement."""
    LIDAR = "L"
    RADAR = "R"

    @property
    def measurement_dim(self) -> int:
        """Number of components in a raw measurement."""
        return 2 if self is SensorType.LIDAR else 3

@dataclass
class MeasurementSample:
    """
    One sensor reading.

    Raw measurement layout:
    - LIDAR: [px, py] in meters
    - RADAR: [rho, phi, rho_dot] in meters, radians and m/s
    """

    sensor_type: SensorType
    timestamp_us: int
    raw: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        self.raw = np.asarray(self.raw, dtype=float).reshape(-1)
        self.timestamp_us = int(self.timestamp_us)

        expected = self.sensor_type.measurement_dim
        if self.raw.shape != (expected,):
            raise ValueError(
                f"{self.sensor_type.name} measurement must have {expected} elements, "
                f"got {self.raw.size}"
            )
        if not np.all(np.isfinite(self.raw)):
            raise ValueError(f"{self.sensor_type.name} measurement contains non-finite values")

    @property
    def is_lidar(self) -> bool:
        return self.sensor_type is SensorType.LIDAR

    @property
    def is_radar(self) -> bool:
        return self.sensor_type is SensorType.RADAR

    @property
    def position(self) -> np.ndarray:
        """Measured position as [px, py], converting radar from polar."""
        if self.is_lidar:
            return self.raw.copy()
        px, py, _, _ = polar_to_cartesian(*self.raw)
        return np.array([px, py])

    @classmethod
    def lidar(cls, timestamp_us: int, px: float, py: float) -> 'MeasurementSample':
        return cls(SensorType.LIDAR, timestamp_us, np.array([px, py]))

    @classmethod
    def radar(cls, timestamp_us: int, rho: float, phi: float, rho_dot: float) -> 'MeasurementSample':
        return cls(SensorType.RADAR, timestamp_us, np.array([rho, phi, rho_dot]))

@dataclass
class GroundTruth:
    """True object position and velocity recorded alongside a measurement."""

    px: float
    py: float
    vx: float
    vy: float

    @property
    def vector(self) -> np.ndarray:
        """Get ground truth as [px, py, vx, vy]."""
        return np.array([self.px, self.py, self.vx, self.vy])
