"""
Immutable configuration of the Unscented Kalman Filter.
"""

import numpy as np
from dataclasses import dataclass, field, fields
from typing import Any, Dict

from ..math.constants import *

@dataclass(frozen=True)
class LidarNoise:
    """Lidar measurement noise standard deviations (m)."""
    std_px: float = STD_LASER_PX
    std_py: float = STD_LASER_PY

    @property
    def covariance(self) -> np.ndarray:
        """2x2 measurement noise covariance R."""
        return np.diag([self.std_px**2, self.std_py**2])

@dataclass(frozen=True)
class RadarNoise:
    """Radar measurement noise standard deviations."""
    std_rho: float = STD_RADAR_RHO          # m
    std_phi: float = STD_RADAR_PHI          # rad
    std_rho_dot: float = STD_RADAR_RHO_DOT  # m/s

    @property
    def covariance(self) -> np.ndarray:
        """3x3 measurement noise covariance R."""
        return np.diag([self.std_rho**2, self.std_phi**2, self.std_rho_dot**2])

@dataclass(frozen=True)
class UKFConfig:
    """
    Configuration fixed at filter construction.

    Attributes:
        use_lidar: Run the lidar update. Lidar samples still advance time when False.
        use_radar: Run the radar update. Radar samples still advance time when False.
        std_a: Longitudinal acceleration process noise (m/s²)
        std_yawdd: Yaw acceleration process noise (rad/s²)
        lidar_init_v_var: Initial speed variance when seeded from lidar
        lidar_init_yaw_var: Initial yaw variance when seeded from lidar
        lidar_init_yaw_rate_var: Initial yaw rate variance when seeded from lidar
        radar_init_yaw_var: Initial yaw variance when seeded from radar
        radar_init_yaw_rate_var: Initial yaw rate variance when seeded from radar
        lidar_noise: Lidar calibration, not user tunable
        radar_noise: Radar calibration, not user tunable
    """
    use_lidar: bool = True
    use_radar: bool = True
    std_a: float = STD_A
    std_yawdd: float = STD_YAWDD
    lidar_init_v_var: float = LIDAR_INIT_VELOCITY_VAR
    lidar_init_yaw_var: float = LIDAR_INIT_YAW_VAR
    lidar_init_yaw_rate_var: float = LIDAR_INIT_YAW_RATE_VAR
    radar_init_yaw_var: float = RADAR_INIT_YAW_VAR
    radar_init_yaw_rate_var: float = RADAR_INIT_YAW_RATE_VAR
    lidar_noise: LidarNoise = field(default_factory=LidarNoise)
    radar_noise: RadarNoise = field(default_factory=RadarNoise)

    SENSOR_CALIBRATION_FIELDS = ('lidar_noise', 'radar_noise')

    def __post_init__(self):
        if self.std_a <= 0 or self.std_yawdd <= 0:
            raise ValueError("Process noise standard deviations must be positive")

        init_vars = (self.lidar_init_v_var, self.lidar_init_yaw_var, self.lidar_init_yaw_rate_var,
                     self.radar_init_yaw_var, self.radar_init_yaw_rate_var)
        if any(var <= 0 for var in init_vars):
            raise ValueError("Initial variances must be positive")

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> 'UKFConfig':
        """
        Build a configuration from tunable parameters.

        Sensor calibration cannot be overridden this way.

        Args:
            params: Mapping of field name to value, unknown keys are rejected

        Returns:
            UKFConfig
        """
        tunable = {f.name for f in fields(cls)} - set(cls.SENSOR_CALIBRATION_FIELDS)
        unknown = set(params) - tunable
        if unknown:
            raise ValueError(f"Unknown or non-tunable UKF parameters: {sorted(unknown)}")
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        """Tunable parameters as a plain dictionary."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in self.SENSOR_CALIBRATION_FIELDS
        }
