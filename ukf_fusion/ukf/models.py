"""
Motion and measurement models for the Unscented Kalman Filter.
"""

import numpy as np
import math
from typing import Optional

from ..math.constants import *
from ..math.utils import normalize_angle
from .errors import DegenerateMeasurementError

class CTRVModel:
    """
    Constant turn rate and velocity motion model.

    Augmented state: [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
    """

    @staticmethod
    def predict_state(aug_state: np.ndarray, dt: float) -> np.ndarray:
        """
        Predict one augmented sigma point forward in time.

        Args:
            aug_state: Augmented state [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
            dt: Time step in seconds

        Returns:
            Predicted state vector [px, py, v, yaw, yaw_rate]
        """
        px, py, v, yaw, yaw_rate, nu_a, nu_yawdd = aug_state

        # Deterministic part
        if abs(yaw_rate) > YAW_RATE_EPSILON:
            px_new = px + v / yaw_rate * (math.sin(yaw + yaw_rate * dt) - math.sin(yaw))
            py_new = py + v / yaw_rate * (math.cos(yaw) - math.cos(yaw + yaw_rate * dt))
        else:
            # Straight line, avoids dividing by a near zero yaw rate
            px_new = px + v * dt * math.cos(yaw)
            py_new = py + v * dt * math.sin(yaw)

        v_new = v
        yaw_new = yaw + yaw_rate * dt
        yaw_rate_new = yaw_rate

        # Process noise
        half_dt2 = 0.5 * dt * dt
        px_new += half_dt2 * nu_a * math.cos(yaw)
        py_new += half_dt2 * nu_a * math.sin(yaw)
        v_new += nu_a * dt
        yaw_new += half_dt2 * nu_yawdd
        yaw_rate_new += nu_yawdd * dt

        return np.array([px_new, py_new, v_new, yaw_new, yaw_rate_new])

    @staticmethod
    def propagate(aug_sigma_points: np.ndarray, dt: float, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Predict every augmented sigma point.

        Args:
            aug_sigma_points: 7 x n matrix of augmented sigma points
            dt: Time step in seconds
            out: Optional 5 x n buffer to write into

        Returns:
            5 x n matrix of predicted sigma points
        """
        n_points = aug_sigma_points.shape[1]
        if out is None:
            out = np.zeros((STATE_DIM, n_points))

        for i in range(n_points):
            out[:, i] = CTRVModel.predict_state(aug_sigma_points[:, i], dt)

        return out

class MeasurementModel:
    """
    Maps predicted sigma points into a sensor's measurement space.

    Subclasses whose measurement contains an angle set the index of
    that angle.
    """

    angle_index = None

    @staticmethod
    def transform(sigma_points: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    @staticmethod
    def check_measurement(z: np.ndarray):
        """Validate an actual measurement before it is used in an update."""

    @classmethod
    def residual(cls, z: np.ndarray, z_ref: np.ndarray) -> np.ndarray:
        """
        Difference of two measurements with any angle normalized.

        Args:
            z: Measurement vector
            z_ref: Reference measurement vector

        Returns:
            z - z_ref
        """
        diff = np.asarray(z, dtype=float) - z_ref
        if cls.angle_index is not None:
            diff[cls.angle_index] = normalize_angle(diff[cls.angle_index])
        return diff

class LidarModel(MeasurementModel):
    """Lidar measurement model - directly observes position [px, py]."""

    @staticmethod
    def transform(sigma_points: np.ndarray) -> np.ndarray:
        """
        Project predicted sigma points onto position.

        Args:
            sigma_points: 5 x n predicted sigma points

        Returns:
            2 x n sigma points in measurement space
        """
        return sigma_points[PX:PY + 1, :].copy()

class RadarModel(MeasurementModel):
    """Radar measurement model - observes [rho, phi, rho_dot] in polar form."""

    angle_index = 1

    @staticmethod
    def transform(sigma_points: np.ndarray) -> np.ndarray:
        """
        Transform predicted sigma points into polar measurement space.

        Args:
            sigma_points: 5 x n predicted sigma points

        Returns:
            3 x n sigma points in measurement space

        Raises:
            DegenerateMeasurementError: If any sigma point lies within
                MIN_RADAR_RANGE of the sensor
        """
        px = sigma_points[PX, :]
        py = sigma_points[PY, :]
        v = sigma_points[V, :]
        yaw = sigma_points[YAW, :]

        rho = np.hypot(px, py)
        if not np.all(np.isfinite(rho)) or np.any(rho < MIN_RADAR_RANGE):
            raise DegenerateMeasurementError(
                f"Predicted radar range {float(np.min(rho)):.3g} m is below {MIN_RADAR_RANGE} m"
            )

        phi = np.arctan2(py, px)
        rho_dot = (px * v * np.cos(yaw) + py * v * np.sin(yaw)) / rho

        z_sig = np.vstack([rho, phi, rho_dot])
        if not np.all(np.isfinite(z_sig)):
            raise DegenerateMeasurementError("Radar measurement model produced non-finite values")

        return z_sig

    @staticmethod
    def check_measurement(z: np.ndarray):
        """Reject measured ranges where bearing is undefined."""
        if z[0] < MIN_RADAR_RANGE:
            raise DegenerateMeasurementError(
                f"Measured radar range {z[0]:.3g} m is below {MIN_RADAR_RANGE} m"
            )
