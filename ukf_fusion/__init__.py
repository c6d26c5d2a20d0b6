"""
Lidar and radar sensor fusion with an Unscented Kalman Filter.

This module provides platform-independent implementations of:
- Unscented Kalman Filter with a CTRV motion model
- Lidar/radar measurement samples and log parsing
- Mathematical utilities
"""

__version__ = "1.0.0"
__author__ = "UKF Fusion Team"

from .ukf import UnscentedKalmanFilter, UKFConfig, UpdateStatus
from .sensors import SensorType, MeasurementSample, MeasurementLogParser
from .math import normalize_angle, rmse

__all__ = [
    "UnscentedKalmanFilter",
    "UKFConfig",
    "UpdateStatus",
    "SensorType",
    "MeasurementSample",
    "MeasurementLogParser",
    "normalize_angle",
    "rmse"
]
