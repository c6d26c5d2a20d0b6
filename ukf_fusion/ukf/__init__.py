"""
Unscented Kalman Filter for lidar/radar object tracking.
"""

from .ukf import UnscentedKalmanFilter, UpdateStatus, UpdateResult, PredictedSigmaPoints
from .config import UKFConfig, LidarNoise, RadarNoise
from .state import ObjectState
from .models import CTRVModel, LidarModel, RadarModel
from .sigma_points import SigmaPointGenerator
from .errors import (
    UKFError,
    DegenerateMeasurementError,
    NonPositiveSemiDefiniteCovarianceError,
    SingularInnovationCovarianceError,
    UninitializedStateError,
    StaleSigmaPointsError,
)

__all__ = [
    "UnscentedKalmanFilter", "UpdateStatus", "UpdateResult", "PredictedSigmaPoints",
    "UKFConfig", "LidarNoise", "RadarNoise", "ObjectState",
    "CTRVModel", "LidarModel", "RadarModel", "SigmaPointGenerator",
    "UKFError", "DegenerateMeasurementError", "NonPositiveSemiDefiniteCovarianceError",
    "SingularInnovationCovarianceError", "UninitializedStateError", "StaleSigmaPointsError",
]
