"""
Unscented Kalman Filter fusing lidar and radar measurements of one object.
"""

import logging
import numpy as np
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any, Tuple, Type

from .config import UKFConfig
from .state import ObjectState
from .models import CTRVModel, MeasurementModel, LidarModel, RadarModel
from .sigma_points import SigmaPointGenerator
from .errors import (
    DegenerateMeasurementError,
    NonPositiveSemiDefiniteCovarianceError,
    SingularInnovationCovarianceError,
    UninitializedStateError,
    StaleSigmaPointsError,
)
from ..sensors.measurement import MeasurementSample, SensorType
from ..math.constants import *
from ..math.utils import normalize_angle, polar_to_cartesian

logger = logging.getLogger(__name__)

class UpdateStatus(Enum):
    """Outcome of processing one measurement."""
    INITIALIZED = "initialized"
    UPDATED = "updated"
    SENSOR_DISABLED = "sensor_disabled"
    SKIPPED_DEGENERATE = "skipped_degenerate"
    SKIPPED_SINGULAR = "skipped_singular"

@dataclass(frozen=True)
class PredictedSigmaPoints:
    """
    Sigma points produced by one prediction.

    points is a read-only view of the filter's buffer. It is only valid for
    the update that follows the prediction identified by cycle.
    """
    points: np.ndarray
    cycle: int
    dt: float

@dataclass
class UpdateResult:
    """Result of a measurement update."""
    sensor_type: SensorType
    status: UpdateStatus
    innovation: np.ndarray
    innovation_covariance: np.ndarray
    nis: float

def kalman_gain(Tc: np.ndarray, S: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the Kalman gain K = Tc * S^-1.

    Args:
        Tc: Cross correlation between state and measurement space
        S: Innovation covariance

    Returns:
        (K, S_inv)

    Raises:
        SingularInnovationCovarianceError: If S cannot be reliably inverted
    """
    if not np.all(np.isfinite(S)):
        raise SingularInnovationCovarianceError("Innovation covariance contains non-finite values")

    condition = np.linalg.cond(S)
    if not np.isfinite(condition) or condition > MAX_INNOVATION_CONDITION:
        raise SingularInnovationCovarianceError(
            f"Innovation covariance is ill-conditioned (cond={condition:.3g})"
        )

    try:
        S_inv = np.linalg.inv(S)
    except np.linalg.LinAlgError as e:
        raise SingularInnovationCovarianceError(f"Innovation covariance is singular: {e}") from e

    return Tc @ S_inv, S_inv

class UnscentedKalmanFilter:
    """
    Unscented Kalman Filter with a CTRV motion model for lidar/radar fusion.

    The first measurement seeds the state. Every later measurement runs a
    prediction over the elapsed time followed by the update of the sensor
    that produced it. The filter is not thread safe; use one instance per
    tracked object.
    """

    NIS_BOUNDS = {
        SensorType.LIDAR: NIS_95_LIDAR,
        SensorType.RADAR: NIS_95_RADAR,
    }

    def __init__(self, config: Optional[UKFConfig] = None):
        """
        Initialize the Unscented Kalman Filter.

        Args:
            config: Filter configuration, defaults to UKFConfig()
        """
        self._config = config or UKFConfig()

        # Models
        self.motion_model = CTRVModel()
        self.sigma_generator = SigmaPointGenerator(STATE_DIM, AUGMENTED_DIM, SPREADING_LAMBDA)
        self.weights = self.sigma_generator.weights

        # Measurement noise, fixed for the filter lifetime
        self._R = {
            SensorType.LIDAR: self._config.lidar_noise.covariance,
            SensorType.RADAR: self._config.radar_noise.covariance,
        }
        for R in self._R.values():
            R.flags.writeable = False

        # State vector and covariance
        self._x = np.zeros(STATE_DIM)
        self._P = np.eye(STATE_DIM)

        # Sigma point buffers, reused every cycle
        self._aug_sigma_points = np.zeros((AUGMENTED_DIM, N_SIGMA_POINTS))
        self._pred_sigma_points = np.zeros((STATE_DIM, N_SIGMA_POINTS))

        # Timing
        self.is_initialized = False
        self.time_us: Optional[int] = None
        self._cycle = 0
        self._consumed_cycle = 0
        self._faulted = False

        # Statistics
        self.nis_history = {sensor: deque(maxlen=NIS_HISTORY_LENGTH) for sensor in SensorType}
        self._reset_counters()

    def _reset_counters(self):
        self.prediction_count = 0
        self.lidar_update_count = 0
        self.radar_update_count = 0
        self.skipped_update_count = 0
        self.disabled_update_count = 0
        for history in self.nis_history.values():
            history.clear()

    @property
    def config(self) -> UKFConfig:
        return self._config

    @property
    def x(self) -> np.ndarray:
        """Current state mean [px, py, v, yaw, yaw_rate]."""
        self._require_initialized()
        return self._x.copy()

    @property
    def P(self) -> np.ndarray:
        """Current 5x5 state covariance."""
        self._require_initialized()
        return self._P.copy()

    def _require_initialized(self):
        if not self.is_initialized:
            raise UninitializedStateError("No measurement has been processed yet")

    def sensor_enabled(self, sensor_type: SensorType) -> bool:
        if sensor_type is SensorType.LIDAR:
            return self._config.use_lidar
        return self._config.use_radar

    def process_measurement(self, sample: MeasurementSample) -> UpdateStatus:
        """
        Process one measurement.

        Args:
            sample: Lidar or radar measurement, timestamps must not decrease

        Returns:
            UpdateStatus describing what happened to the state

        Raises:
            NonPositiveSemiDefiniteCovarianceError: If the covariance is corrupted.
                The filter refuses further measurements until reset().
            ValueError: If the sample is older than the last one
        """
        if self._faulted:
            raise NonPositiveSemiDefiniteCovarianceError(
                "Filter covariance was corrupted by an earlier cycle, reset() required"
            )

        if not self.is_initialized:
            self._initialize(sample)
            return UpdateStatus.INITIALIZED

        dt = (sample.timestamp_us - self.time_us) / MICROSECONDS_PER_SECOND
        sigma_points = self.predict(dt)
        self.time_us = sample.timestamp_us

        if not self.sensor_enabled(sample.sensor_type):
            self.disabled_update_count += 1
            logger.debug("%s update disabled, prediction only", sample.sensor_type.name)
            return UpdateStatus.SENSOR_DISABLED

        try:
            result = self.update(sample, sigma_points)
        except DegenerateMeasurementError as e:
            self.skipped_update_count += 1
            logger.warning("Skipping %s update at %d us: %s",
                           sample.sensor_type.name, sample.timestamp_us, e)
            return UpdateStatus.SKIPPED_DEGENERATE
        except SingularInnovationCovarianceError as e:
            self.skipped_update_count += 1
            logger.warning("Skipping %s update at %d us: %s",
                           sample.sensor_type.name, sample.timestamp_us, e)
            return UpdateStatus.SKIPPED_SINGULAR

        return result.status

    def _initialize(self, sample: MeasurementSample):
        """Seed state and covariance from the first measurement."""
        cfg = self._config

        if sample.is_radar:
            rho, phi, rho_dot = sample.raw
            px, py, vx, vy = polar_to_cartesian(rho, phi, rho_dot)
            v = np.hypot(vx, vy)

            self._x[:] = [px, py, v, 0.0, 0.0]
            self._P[:] = np.diag([
                cfg.radar_noise.std_rho**2,
                cfg.radar_noise.std_rho**2,
                cfg.radar_noise.std_rho_dot**2,
                cfg.radar_init_yaw_var,
                cfg.radar_init_yaw_rate_var
            ])
        else:
            px, py = sample.raw
            self._x[:] = [px, py, 0.0, 0.0, 0.0]
            self._P[:] = np.diag([
                cfg.lidar_noise.std_px**2,
                cfg.lidar_noise.std_py**2,
                cfg.lidar_init_v_var,
                cfg.lidar_init_yaw_var,
                cfg.lidar_init_yaw_rate_var
            ])

        self.time_us = sample.timestamp_us
        self.is_initialized = True
        logger.info("Filter initialized from %s at %d us: x=%s",
                    sample.sensor_type.name, sample.timestamp_us, np.array2string(self._x, precision=3))

    def predict(self, dt: float) -> PredictedSigmaPoints:
        """
        Prediction step of the Kalman filter.

        Args:
            dt: Elapsed time in seconds since the last measurement

        Returns:
            The propagated sigma points, required by the following update

        Raises:
            NonPositiveSemiDefiniteCovarianceError: If the augmented covariance
                has no Cholesky factor
        """
        self._require_initialized()
        if dt < 0:
            raise ValueError(f"Elapsed time must be non-negative, got {dt}")

        gen = self.sigma_generator
        x_aug, P_aug = gen.augment(self._x, self._P, self._config.std_a, self._config.std_yawdd)

        try:
            gen.generate(x_aug, P_aug, out=self._aug_sigma_points)
        except NonPositiveSemiDefiniteCovarianceError:
            self._faulted = True
            logger.error("State covariance is not positive definite, filter halted:\n%s", self._P)
            raise

        self.motion_model.propagate(self._aug_sigma_points, dt, out=self._pred_sigma_points)

        x_pred = gen.mean(self._pred_sigma_points, angle_index=YAW)
        P_pred = gen.covariance(self._pred_sigma_points, x_pred, angle_index=YAW)

        self._x[:] = x_pred
        self._P[:] = P_pred

        self._cycle += 1
        self.prediction_count += 1
        logger.debug("Predicted %.3f s ahead: x=%s", dt, np.array2string(self._x, precision=3))

        points = self._pred_sigma_points.view()
        points.flags.writeable = False
        return PredictedSigmaPoints(points=points, cycle=self._cycle, dt=dt)

    def update(self, sample: MeasurementSample, sigma_points: PredictedSigmaPoints) -> UpdateResult:
        """Run the update matching the sample's sensor."""
        if sample.is_lidar:
            return self.update_lidar(sample, sigma_points)
        return self.update_radar(sample, sigma_points)

    def update_lidar(self, sample: MeasurementSample, sigma_points: PredictedSigmaPoints) -> UpdateResult:
        """
        Update step with a lidar position measurement.

        Args:
            sample: Lidar measurement [px, py]
            sigma_points: Sigma points returned by the preceding predict()

        Returns:
            UpdateResult
        """
        if not sample.is_lidar:
            raise ValueError(f"Expected a LIDAR sample, got {sample.sensor_type.name}")
        result = self._update(sample, sigma_points, LidarModel)
        self.lidar_update_count += 1
        return result

    def update_radar(self, sample: MeasurementSample, sigma_points: PredictedSigmaPoints) -> UpdateResult:
        """
        Update step with a radar measurement.

        Args:
            sample: Radar measurement [rho, phi, rho_dot]
            sigma_points: Sigma points returned by the preceding predict()

        Returns:
            UpdateResult

        Raises:
            DegenerateMeasurementError: If the measured or predicted range is near zero
            SingularInnovationCovarianceError: If S cannot be inverted
        """
        if not sample.is_radar:
            raise ValueError(f"Expected a RADAR sample, got {sample.sensor_type.name}")
        result = self._update(sample, sigma_points, RadarModel)
        self.radar_update_count += 1
        return result

    def _update(self, sample: MeasurementSample, sigma_points: PredictedSigmaPoints,
                model: Type[MeasurementModel]) -> UpdateResult:
        """
        Unscented measurement update.

        The state is only modified after every guard has passed, so a
        failed update leaves the predicted state in place.
        """
        self._require_initialized()
        if sigma_points.cycle != self._cycle or self._consumed_cycle == self._cycle:
            raise StaleSigmaPointsError(
                f"Sigma points from cycle {sigma_points.cycle} do not belong to "
                f"the latest prediction (cycle {self._cycle})"
            )

        gen = self.sigma_generator
        z = sample.raw
        model.check_measurement(z)

        # Sigma points in measurement space
        X_sig = sigma_points.points
        Z_sig = model.transform(X_sig)
        z_pred = gen.mean(Z_sig, angle_index=model.angle_index)

        # Innovation covariance
        S = gen.covariance(Z_sig, z_pred, angle_index=model.angle_index) + self._R[sample.sensor_type]

        # Cross correlation between state and measurement space
        Tc = gen.cross_covariance(X_sig, self._x, Z_sig, z_pred,
                                  angle_index_a=YAW, angle_index_b=model.angle_index)

        K, S_inv = kalman_gain(Tc, S)

        # Residual
        y = model.residual(z, z_pred)
        nis = float(y @ S_inv @ y)

        # Update state and covariance
        self._x += K @ y
        self._x[YAW] = normalize_angle(self._x[YAW])
        self._P -= K @ S @ K.T

        self._consumed_cycle = self._cycle
        self.nis_history[sample.sensor_type].append(nis)
        logger.debug("%s update: residual=%s NIS=%.3f", sample.sensor_type.name,
                     np.array2string(y, precision=3), nis)

        return UpdateResult(
            sensor_type=sample.sensor_type,
            status=UpdateStatus.UPDATED,
            innovation=y,
            innovation_covariance=S,
            nis=nis
        )

    def get_current_state(self) -> ObjectState:
        """Get current estimated state."""
        current_state = ObjectState(timestamp_us=self.time_us)
        current_state.state_vector = self.x
        return current_state

    def get_uncertainty(self) -> np.ndarray:
        """Get current state uncertainty (standard deviation of each component)."""
        return np.sqrt(np.diag(self.P))

    def get_position_uncertainty(self) -> float:
        """Get position uncertainty (2D RMS error)."""
        P = self.P
        return float(np.sqrt(P[PX, PX] + P[PY, PY]))

    def nis_exceed_ratio(self, sensor_type: SensorType) -> Optional[float]:
        """
        Fraction of recent updates whose NIS exceeded the 95% chi-square bound.

        A consistent filter exceeds the bound about 5% of the time.
        """
        history = self.nis_history[sensor_type]
        if not history:
            return None
        bound = self.NIS_BOUNDS[sensor_type]
        return sum(1 for nis in history if nis > bound) / len(history)

    def reset(self):
        """Discard the estimate. The next measurement re-initializes the filter."""
        self._x[:] = 0.0
        self._P[:] = np.eye(STATE_DIM)
        self.is_initialized = False
        self.time_us = None
        self._faulted = False
        self._consumed_cycle = self._cycle
        self._reset_counters()
        logger.info("Filter reset")

    def get_statistics(self) -> Dict[str, Any]:
        """Get filter statistics."""
        stats = {
            'initialized': self.is_initialized,
            'predictions': self.prediction_count,
            'lidar_updates': self.lidar_update_count,
            'radar_updates': self.radar_update_count,
            'skipped_updates': self.skipped_update_count,
            'disabled_updates': self.disabled_update_count,
            'nis_exceed_ratio': {
                sensor.name.lower(): self.nis_exceed_ratio(sensor) for sensor in SensorType
            },
            'position_uncertainty': None,
            'state_uncertainty': None
        }

        if self.is_initialized:
            stats['position_uncertainty'] = self.get_position_uncertainty()
            stats['state_uncertainty'] = self.get_uncertainty().tolist()

        return stats
