#!/usr/bin/env python3
"""
Unit tests for the Unscented Kalman Filter implementation.
"""

import dataclasses
import math
import unittest
import numpy as np
import sys
import os

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from ukf_fusion.ukf import (
    UnscentedKalmanFilter, UKFConfig, UpdateStatus, ObjectState,
    CTRVModel, LidarModel, RadarModel, SigmaPointGenerator,
    DegenerateMeasurementError, NonPositiveSemiDefiniteCovarianceError,
    SingularInnovationCovarianceError, UninitializedStateError, StaleSigmaPointsError,
)
from ukf_fusion.ukf.ukf import kalman_gain
from ukf_fusion.sensors import MeasurementSample, SensorType
from ukf_fusion.math import normalize_angle

def lidar(t_us, px, py):
    return MeasurementSample.lidar(t_us, px, py)

def radar(t_us, rho, phi, rho_dot):
    return MeasurementSample.radar(t_us, rho, phi, rho_dot)

class TestNormalizeAngle(unittest.TestCase):
    """Test angle normalization."""

    def test_range(self):
        """Normalized angles lie in (-pi, pi]."""
        for angle in np.linspace(-50.0, 50.0, 1001):
            normalized = normalize_angle(angle)
            self.assertGreater(normalized, -math.pi)
            self.assertLessEqual(normalized, math.pi)

    def test_range_at_odd_multiples_of_pi(self):
        """Odd multiples of pi, where rounding is tightest, stay in range."""
        for k in range(-300, 301):
            for angle in ((2 * k + 1) * math.pi, math.pi + 2 * math.pi * k,
                          -math.pi + 2 * math.pi * k):
                normalized = normalize_angle(angle)
                self.assertGreater(normalized, -math.pi, angle)
                self.assertLessEqual(normalized, math.pi, angle)
                self.assertAlmostEqual(abs(normalized), math.pi, places=9)

        self.assertLessEqual(normalize_angle(-11 * math.pi), math.pi)
        self.assertLessEqual(normalize_angle(-34.55751918948772), math.pi)

    def test_range_for_large_angles(self):
        """Random angles up to a thousand radians stay in range."""
        rng = np.random.default_rng(11)
        for angle in rng.uniform(-1e3, 1e3, 20000):
            normalized = normalize_angle(angle)
            self.assertGreater(normalized, -math.pi)
            self.assertLessEqual(normalized, math.pi)
            self.assertAlmostEqual(math.cos(normalized), math.cos(angle), places=9)
            self.assertAlmostEqual(math.sin(normalized), math.sin(angle), places=9)

    def test_periodicity(self):
        """Adding whole turns does not change the result."""
        for angle in (-3.0, -1.2, 0.0, 0.4, 2.9):
            for k in (-5, -1, 1, 3, 10):
                self.assertAlmostEqual(normalize_angle(angle + 2 * math.pi * k),
                                       normalize_angle(angle), places=9)

    def test_identity_inside_range(self):
        """Angles already in range are returned unchanged."""
        for angle in (-3.1, -0.5, 0.0, 1.0, 3.1):
            self.assertEqual(normalize_angle(angle), angle)

    def test_boundaries(self):
        """-pi maps to pi, pi stays pi."""
        self.assertEqual(normalize_angle(math.pi), math.pi)
        self.assertAlmostEqual(normalize_angle(-math.pi), math.pi)
        self.assertAlmostEqual(normalize_angle(3 * math.pi), math.pi)

class TestObjectState(unittest.TestCase):
    """Test ObjectState class."""

    def test_state_vector_property(self):
        """Test state vector conversion."""
        state = ObjectState(px=1.0, py=2.0, v=3.0, yaw=0.5, yaw_rate=0.1)

        np.testing.assert_array_equal(state.state_vector, [1.0, 2.0, 3.0, 0.5, 0.1])

        state.state_vector = np.array([10.0, 20.0, 30.0, 1.5, 0.2])
        self.assertEqual(state.px, 10.0)
        self.assertEqual(state.py, 20.0)
        self.assertEqual(state.v, 30.0)
        self.assertEqual(state.yaw, 1.5)
        self.assertEqual(state.yaw_rate, 0.2)

        with self.assertRaises(ValueError):
            state.state_vector = np.zeros(6)

    def test_velocity(self):
        """Cartesian velocity follows the heading."""
        state = ObjectState(v=2.0, yaw=math.pi / 2)
        np.testing.assert_allclose(state.velocity, [0.0, 2.0], atol=1e-12)
        np.testing.assert_allclose(state.cartesian_vector, [0.0, 0.0, 0.0, 2.0], atol=1e-12)

class TestCTRVModel(unittest.TestCase):
    """Test CTRVModel class."""

    def test_straight_line(self):
        """Zero yaw rate moves along the heading."""
        predicted = CTRVModel.predict_state(np.array([0.0, 0.0, 5.0, 0.0, 0.0, 0.0, 0.0]), 1.0)
        np.testing.assert_allclose(predicted, [5.0, 0.0, 5.0, 0.0, 0.0])

    def test_turning(self):
        """Quarter turn follows the exact arc."""
        aug = np.array([0.0, 0.0, 1.0, 0.0, math.pi / 2, 0.0, 0.0])
        predicted = CTRVModel.predict_state(aug, 1.0)

        self.assertAlmostEqual(predicted[0], 2 / math.pi)
        self.assertAlmostEqual(predicted[1], 2 / math.pi)
        self.assertAlmostEqual(predicted[2], 1.0)
        self.assertAlmostEqual(predicted[3], math.pi / 2)
        self.assertAlmostEqual(predicted[4], math.pi / 2)

    def test_small_yaw_rate_fallback(self):
        """Both branches agree around the yaw rate threshold."""
        straight = CTRVModel.predict_state(np.array([1.0, 2.0, 4.0, 0.3, 1.0e-3, 0.0, 0.0]), 0.5)
        exact = CTRVModel.predict_state(np.array([1.0, 2.0, 4.0, 0.3, 1.1e-3, 0.0, 0.0]), 0.5)

        self.assertTrue(np.all(np.isfinite(straight)))
        np.testing.assert_allclose(straight[:2], exact[:2], atol=1e-3)

    def test_process_noise_terms(self):
        """Noise components enter analytically."""
        aug = np.array([0.0, 0.0, 0.0, 0.0, 0.0, 2.0, 1.0])
        predicted = CTRVModel.predict_state(aug, 2.0)

        # px = 0.5 * nu_a * dt² * cos(yaw) = 0.5 * 2 * 4
        np.testing.assert_allclose(predicted, [4.0, 0.0, 4.0, 2.0, 2.0])

    def test_zero_dt(self):
        """No time, no motion."""
        aug = np.array([1.0, -2.0, 3.0, 0.7, 0.4, 1.5, -0.8])
        np.testing.assert_array_equal(CTRVModel.predict_state(aug, 0.0), aug[:5])

class TestSigmaPointGenerator(unittest.TestCase):
    """Test SigmaPointGenerator class."""

    def setUp(self):
        self.generator = SigmaPointGenerator()
        self.x = np.array([1.0, 2.0, 3.0, 0.5, 0.1])
        self.P = np.array([
            [0.5, 0.1, 0.0, 0.0, 0.0],
            [0.1, 0.4, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.3, 0.05, 0.0],
            [0.0, 0.0, 0.05, 0.2, 0.01],
            [0.0, 0.0, 0.0, 0.01, 0.1],
        ])

    def test_weights(self):
        """Weights sum to one with lambda = 3 - n_aug."""
        weights = self.generator.weights

        self.assertEqual(len(weights), 15)
        self.assertAlmostEqual(weights.sum(), 1.0)
        self.assertAlmostEqual(weights[0], -4.0 / 3.0)
        for w in weights[1:]:
            self.assertAlmostEqual(w, 1.0 / 6.0)

    def test_weights_sum_for_other_spreading(self):
        """Weights sum to one for any spreading parameter."""
        for spreading in (-2.0, 0.0, 1.0, 3.0):
            generator = SigmaPointGenerator(spreading=spreading)
            self.assertAlmostEqual(generator.weights.sum(), 1.0)

    def test_augment(self):
        """Process noise variances fill the new diagonal entries."""
        x_aug, P_aug = self.generator.augment(self.x, self.P, 3.0, 2.0)

        np.testing.assert_array_equal(x_aug, [1.0, 2.0, 3.0, 0.5, 0.1, 0.0, 0.0])
        np.testing.assert_array_equal(P_aug[:5, :5], self.P)
        self.assertEqual(P_aug[5, 5], 9.0)
        self.assertEqual(P_aug[6, 6], 4.0)
        self.assertTrue(np.all(P_aug[5:, :5] == 0.0))
        self.assertEqual(P_aug[5, 6], 0.0)

    def test_generate_layout(self):
        """Column 0 is the mean, the rest are symmetric about it."""
        x_aug, P_aug = self.generator.augment(self.x, self.P, 3.0, 2.0)
        points = self.generator.generate(x_aug, P_aug)

        self.assertEqual(points.shape, (7, 15))
        np.testing.assert_array_equal(points[:, 0], x_aug)

        L = np.linalg.cholesky(P_aug)
        for i in range(7):
            np.testing.assert_allclose(points[:, i + 1], x_aug + math.sqrt(3.0) * L[:, i])
            np.testing.assert_allclose(points[:, i + 8], x_aug - math.sqrt(3.0) * L[:, i])

    def test_mean_reconstruction(self):
        """Weighted mean of the sigma points is the augmented mean."""
        x_aug, P_aug = self.generator.augment(self.x, self.P, 3.0, 2.0)
        points = self.generator.generate(x_aug, P_aug)

        np.testing.assert_allclose(self.generator.mean(points), x_aug, atol=1e-12)

    def test_covariance_reconstruction(self):
        """Weighted covariance of the sigma points is the augmented covariance."""
        x_aug, P_aug = self.generator.augment(self.x, self.P, 3.0, 2.0)
        points = self.generator.generate(x_aug, P_aug)

        np.testing.assert_allclose(self.generator.covariance(points, x_aug), P_aug, atol=1e-12)

    def test_non_positive_definite(self):
        """Cholesky failure raises the fatal covariance error."""
        x_aug, P_aug = self.generator.augment(self.x, -self.P, 3.0, 2.0)
        with self.assertRaises(NonPositiveSemiDefiniteCovarianceError):
            self.generator.generate(x_aug, P_aug)

        P_aug[0, 0] = np.nan
        with self.assertRaises(NonPositiveSemiDefiniteCovarianceError):
            self.generator.generate(x_aug, P_aug)

    def test_angle_mean_across_wrap(self):
        """Angles either side of +-pi average to the right side."""
        center = math.pi - 0.01
        row = np.empty((1, 15))
        row[0, 0] = center
        row[0, 1:8] = normalize_angle(center + 0.02)   # wraps to about -pi + 0.01
        row[0, 8:] = center - 0.02

        mean = self.generator.mean(row, angle_index=0)
        self.assertAlmostEqual(mean[0], center)

        deviations = self.generator.deviations(row, mean, angle_index=0)
        np.testing.assert_allclose(np.abs(deviations[0, 1:]), 0.02, atol=1e-12)

class TestMeasurementModels(unittest.TestCase):
    """Test lidar and radar measurement models."""

    def test_lidar_transform(self):
        """Lidar observes position only."""
        points = np.arange(15.0).reshape(5, 3)
        np.testing.assert_array_equal(LidarModel.transform(points), points[:2, :])

    def test_radar_transform(self):
        """Radar observes range, bearing and range rate."""
        yaw = math.atan2(4.0, 3.0)
        points = np.array([[3.0], [4.0], [5.0], [yaw], [0.0]])

        z = RadarModel.transform(points)

        np.testing.assert_allclose(z[:, 0], [5.0, yaw, 5.0])

    def test_radar_degenerate(self):
        """A sigma point at the sensor has no bearing."""
        points = np.zeros((5, 3))
        points[0, 1:] = 1.0
        with self.assertRaises(DegenerateMeasurementError):
            RadarModel.transform(points)

        with self.assertRaises(DegenerateMeasurementError):
            RadarModel.check_measurement(np.array([0.0, 0.0, 1.0]))

    def test_residuals(self):
        """Only the radar bearing is normalized."""
        residual = RadarModel.residual(np.array([1.0, math.pi - 0.01, 0.0]),
                                       np.array([1.0, -math.pi + 0.01, 0.0]))
        np.testing.assert_allclose(residual, [0.0, -0.02, 0.0], atol=1e-12)

        residual = LidarModel.residual(np.array([0.0, 7.0]), np.array([0.0, 0.0]))
        np.testing.assert_array_equal(residual, [0.0, 7.0])

class TestMeasurementSample(unittest.TestCase):
    """Test MeasurementSample class."""

    def test_dimensions(self):
        """Raw dimension must match the sensor."""
        with self.assertRaises(ValueError):
            MeasurementSample(SensorType.LIDAR, 0, [1.0, 2.0, 3.0])
        with self.assertRaises(ValueError):
            MeasurementSample(SensorType.RADAR, 0, [1.0, 2.0])
        with self.assertRaises(ValueError):
            MeasurementSample(SensorType.LIDAR, 0, [1.0, np.inf])

    def test_radar_position(self):
        """Radar samples convert to Cartesian position."""
        sample = radar(0, 2.0, math.pi / 2, 0.0)
        np.testing.assert_allclose(sample.position, [0.0, 2.0], atol=1e-12)

class TestUKFConfig(unittest.TestCase):
    """Test UKFConfig class."""

    def test_immutable(self):
        """Configuration cannot change after construction."""
        config = UKFConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.std_a = 1.0
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.radar_noise.std_phi = 0.1

    def test_calibration_defaults(self):
        """Sensor noise matches the manufacturer values."""
        config = UKFConfig()
        np.testing.assert_allclose(np.diag(config.lidar_noise.covariance), [0.0225, 0.0225])
        np.testing.assert_allclose(np.diag(config.radar_noise.covariance), [0.09, 0.0009, 0.09])

    def test_from_dict(self):
        """Only tunable parameters are accepted."""
        config = UKFConfig.from_dict({'std_a': 1.5, 'use_radar': False})
        self.assertEqual(config.std_a, 1.5)
        self.assertFalse(config.use_radar)
        self.assertEqual(config.to_dict()['std_a'], 1.5)

        with self.assertRaises(ValueError):
            UKFConfig.from_dict({'radar_noise': None})
        with self.assertRaises(ValueError):
            UKFConfig.from_dict({'std_unknown': 1.0})

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            UKFConfig(std_a=0.0)
        with self.assertRaises(ValueError):
            UKFConfig(radar_init_yaw_var=-1.0)

class TestUnscentedKalmanFilter(unittest.TestCase):
    """Test UnscentedKalmanFilter class."""

    def setUp(self):
        """Set up test fixtures."""
        self.ukf = UnscentedKalmanFilter()

    def test_uninitialized_access(self):
        """State is unavailable before the first measurement."""
        self.assertFalse(self.ukf.is_initialized)
        with self.assertRaises(UninitializedStateError):
            _ = self.ukf.x
        with self.assertRaises(UninitializedStateError):
            _ = self.ukf.P
        with self.assertRaises(UninitializedStateError):
            self.ukf.predict(0.1)

        stats = self.ukf.get_statistics()
        self.assertFalse(stats['initialized'])
        self.assertIsNone(stats['position_uncertainty'])

    def test_radar_initialization(self):
        """Radar range 5 at bearing 0 seeds [5, 0, 0, 0, 0]."""
        status = self.ukf.process_measurement(radar(0, 5.0, 0.0, 0.0))

        self.assertEqual(status, UpdateStatus.INITIALIZED)
        self.assertTrue(self.ukf.is_initialized)
        np.testing.assert_allclose(self.ukf.x, [5.0, 0.0, 0.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(np.diag(self.ukf.P), [0.09, 0.09, 0.09, 0.03, 0.03])
        self.assertEqual(self.ukf.prediction_count, 0)

    def test_radar_initialization_speed(self):
        """Speed is the magnitude of the radial velocity."""
        self.ukf.process_measurement(radar(0, 2.0, math.pi / 3, -1.5))

        x = self.ukf.x
        self.assertAlmostEqual(x[0], 1.0)
        self.assertAlmostEqual(x[1], math.sqrt(3.0))
        self.assertAlmostEqual(x[2], 1.5)

    def test_lidar_initialization(self):
        """Lidar [2, 3] seeds [2, 3, 0, 0, 0]."""
        status = self.ukf.process_measurement(lidar(0, 2.0, 3.0))

        self.assertEqual(status, UpdateStatus.INITIALIZED)
        np.testing.assert_allclose(self.ukf.x, [2.0, 3.0, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(np.diag(self.ukf.P), [0.0225, 0.0225, 1.0, 1.0, 1.0])
        self.assertEqual(self.ukf.time_us, 0)

    def test_radar_init_yaw_variances_are_independent(self):
        """Yaw and yaw rate initial variances are separate settings.

        Both default to 0.03, the radar bearing standard deviation, which is
        the value the reference tracker placed on both diagonal entries.
        """
        defaults = UKFConfig()
        self.assertEqual(defaults.radar_init_yaw_var, 0.03)
        self.assertEqual(defaults.radar_init_yaw_rate_var, 0.03)

        ukf = UnscentedKalmanFilter(UKFConfig(radar_init_yaw_var=0.2, radar_init_yaw_rate_var=0.5))
        ukf.process_measurement(radar(0, 5.0, 0.0, 0.0))
        self.assertEqual(ukf.P[3, 3], 0.2)
        self.assertEqual(ukf.P[4, 4], 0.5)

    def test_zero_elapsed_prediction(self):
        """predict(0) leaves mean and covariance unchanged."""
        self.ukf.process_measurement(radar(0, 5.0, 0.4, 1.0))
        x_before, P_before = self.ukf.x, self.ukf.P

        self.ukf.predict(0.0)

        np.testing.assert_allclose(self.ukf.x, x_before, atol=1e-12)
        np.testing.assert_allclose(self.ukf.P, P_before, atol=1e-12)

    def test_prediction_moves_state(self):
        """A moving object advances and uncertainty grows."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        P_before = self.ukf.P

        sigma_points = self.ukf.predict(0.1)

        self.assertEqual(sigma_points.points.shape, (5, 15))
        self.assertFalse(sigma_points.points.flags.writeable)
        self.assertEqual(self.ukf.prediction_count, 1)
        self.assertGreater(self.ukf.P[0, 0], P_before[0, 0])
        self.assertGreater(self.ukf.P[2, 2], P_before[2, 2])

    def test_zero_residual_update(self):
        """A measurement equal to the prediction keeps x and shrinks P."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        sigma_points = self.ukf.predict(0.1)
        x_pred, P_pred = self.ukf.x, self.ukf.P

        z_pred = self.ukf.sigma_generator.mean(LidarModel.transform(sigma_points.points))
        result = self.ukf.update_lidar(lidar(100000, *z_pred), sigma_points)

        self.assertEqual(result.status, UpdateStatus.UPDATED)
        np.testing.assert_array_equal(result.innovation, [0.0, 0.0])
        self.assertEqual(result.nis, 0.0)
        np.testing.assert_allclose(self.ukf.x, x_pred, atol=1e-12)

        # P shrinks by K S K^T, a positive semi-definite matrix
        reduction = P_pred - self.ukf.P
        self.assertGreater(np.trace(reduction), 0.0)
        self.assertTrue(np.all(np.linalg.eigvalsh(0.5 * (reduction + reduction.T)) > -1e-12))

    def test_repeated_lidar_updates_never_increase_position_variance(self):
        """Lidar at a fixed position keeps shrinking position variance."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        previous = np.diag(self.ukf.P)[:2]

        for _ in range(10):
            status = self.ukf.process_measurement(lidar(0, 2.0, 3.0))
            self.assertEqual(status, UpdateStatus.UPDATED)
            current = np.diag(self.ukf.P)[:2]
            self.assertTrue(np.all(current <= previous + 1e-12))
            previous = current

    def test_lidar_updates_over_time_stay_below_sensor_noise(self):
        """Position variance after a lidar update is below the lidar variance."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))

        for k in range(1, 21):
            self.ukf.process_measurement(lidar(k * 100000, 2.0, 3.0))
            P = self.ukf.P
            self.assertLess(P[0, 0], 0.0225)
            self.assertLess(P[1, 1], 0.0225)

    def test_degenerate_radar_measurement(self):
        """Radar range 0 is skipped and the prediction stands."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        status = self.ukf.process_measurement(radar(100000, 0.0, 0.0, 1.0))

        reference = UnscentedKalmanFilter()
        reference.process_measurement(lidar(0, 2.0, 3.0))
        reference.predict(0.1)

        self.assertEqual(status, UpdateStatus.SKIPPED_DEGENERATE)
        np.testing.assert_allclose(self.ukf.x, reference.x)
        np.testing.assert_allclose(self.ukf.P, reference.P)
        self.assertEqual(self.ukf.skipped_update_count, 1)
        self.assertEqual(self.ukf.radar_update_count, 0)
        self.assertEqual(self.ukf.time_us, 100000)

    def test_degenerate_predicted_range(self):
        """An object predicted at the sensor cannot be radar updated."""
        self.ukf.process_measurement(lidar(0, 0.0, 0.0))
        sigma_points = self.ukf.predict(0.1)
        x_pred = self.ukf.x

        with self.assertRaises(DegenerateMeasurementError):
            self.ukf.update_radar(radar(100000, 1.0, 0.0, 0.0), sigma_points)
        np.testing.assert_array_equal(self.ukf.x, x_pred)

    def test_radar_bearing_wrap(self):
        """A bearing just across -pi updates like a small residual."""
        self.ukf.process_measurement(lidar(0, -10.0, 0.0))
        sigma_points = self.ukf.predict(0.05)

        result = self.ukf.update_radar(radar(50000, 10.0, -math.pi + 0.001, 0.0), sigma_points)

        self.assertLess(abs(result.innovation[1]), 0.05)
        self.assertLess(result.innovation_covariance[1, 1], 0.01)
        x = self.ukf.x
        self.assertAlmostEqual(x[0], -10.0, delta=0.3)
        self.assertAlmostEqual(x[1], 0.0, delta=0.3)
        self.assertTrue(np.all(np.isfinite(self.ukf.P)))
        self.assertTrue(np.all(np.linalg.eigvalsh(self.ukf.P) > 0.0))

    def test_stale_sigma_points(self):
        """Updates only accept the latest, unused sigma points."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        first = self.ukf.predict(0.1)
        second = self.ukf.predict(0.1)

        with self.assertRaises(StaleSigmaPointsError):
            self.ukf.update_lidar(lidar(200000, 2.0, 3.0), first)

        self.ukf.update_lidar(lidar(200000, 2.0, 3.0), second)
        with self.assertRaises(StaleSigmaPointsError):
            self.ukf.update_lidar(lidar(200000, 2.0, 3.0), second)

    def test_wrong_sensor_update(self):
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        sigma_points = self.ukf.predict(0.1)
        with self.assertRaises(ValueError):
            self.ukf.update_lidar(radar(100000, 5.0, 0.0, 0.0), sigma_points)

    def test_disabled_sensor(self):
        """Disabled sensors advance time without updating."""
        ukf = UnscentedKalmanFilter(UKFConfig(use_radar=False))
        ukf.process_measurement(lidar(0, 2.0, 3.0))
        status = ukf.process_measurement(radar(100000, 4.0, 1.0, 0.0))

        reference = UnscentedKalmanFilter()
        reference.process_measurement(lidar(0, 2.0, 3.0))
        reference.predict(0.1)

        self.assertEqual(status, UpdateStatus.SENSOR_DISABLED)
        self.assertEqual(ukf.time_us, 100000)
        self.assertEqual(ukf.prediction_count, 1)
        self.assertEqual(ukf.radar_update_count, 0)
        np.testing.assert_allclose(ukf.x, reference.x)

    def test_disabled_sensor_still_initializes(self):
        ukf = UnscentedKalmanFilter(UKFConfig(use_lidar=False))
        self.assertEqual(ukf.process_measurement(lidar(0, 2.0, 3.0)), UpdateStatus.INITIALIZED)
        np.testing.assert_allclose(ukf.x, [2.0, 3.0, 0.0, 0.0, 0.0])

    def test_non_positive_definite_covariance_is_fatal(self):
        """A corrupted covariance halts the filter until reset."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        self.ukf._P[:] = -np.eye(5)

        with self.assertRaises(NonPositiveSemiDefiniteCovarianceError):
            self.ukf.process_measurement(lidar(100000, 2.0, 3.0))
        with self.assertRaises(NonPositiveSemiDefiniteCovarianceError):
            self.ukf.process_measurement(lidar(200000, 2.0, 3.0))

        self.ukf.reset()
        self.assertEqual(self.ukf.process_measurement(lidar(300000, 1.0, 1.0)),
                         UpdateStatus.INITIALIZED)
        np.testing.assert_allclose(self.ukf.x, [1.0, 1.0, 0.0, 0.0, 0.0])

    def test_decreasing_timestamp(self):
        """Out of order samples are rejected."""
        self.ukf.process_measurement(lidar(1000000, 2.0, 3.0))
        with self.assertRaises(ValueError):
            self.ukf.process_measurement(lidar(500000, 2.0, 3.0))
        self.assertEqual(self.ukf.time_us, 1000000)

    def test_singular_innovation_covariance(self):
        """A singular S is detected before inversion."""
        S = np.array([[1.0, 1.0], [1.0, 1.0]])
        with self.assertRaises(SingularInnovationCovarianceError):
            kalman_gain(np.ones((5, 2)), S)

        with self.assertRaises(SingularInnovationCovarianceError):
            kalman_gain(np.ones((5, 2)), np.array([[np.nan, 0.0], [0.0, 1.0]]))

        K, S_inv = kalman_gain(np.ones((5, 2)), 2.0 * np.eye(2))
        np.testing.assert_allclose(K, 0.5 * np.ones((5, 2)))
        np.testing.assert_allclose(S_inv, 0.5 * np.eye(2))

    def test_get_statistics(self):
        """Test statistics retrieval."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        self.ukf.process_measurement(lidar(100000, 2.1, 3.0))
        self.ukf.process_measurement(radar(200000, 3.7, 0.98, 0.5))

        stats = self.ukf.get_statistics()

        self.assertEqual(stats['predictions'], 2)
        self.assertEqual(stats['lidar_updates'], 1)
        self.assertEqual(stats['radar_updates'], 1)
        self.assertIsInstance(stats['position_uncertainty'], float)
        self.assertEqual(len(stats['state_uncertainty']), 5)
        self.assertIn('lidar', stats['nis_exceed_ratio'])
        self.assertIn('radar', stats['nis_exceed_ratio'])
        self.assertEqual(len(self.ukf.nis_history[SensorType.LIDAR]), 1)

    def test_reset(self):
        """Test filter reset."""
        self.ukf.process_measurement(lidar(0, 2.0, 3.0))
        self.ukf.process_measurement(lidar(100000, 2.0, 3.0))

        self.ukf.reset()

        self.assertFalse(self.ukf.is_initialized)
        self.assertIsNone(self.ukf.time_us)
        self.assertEqual(self.ukf.prediction_count, 0)
        self.assertEqual(self.ukf.lidar_update_count, 0)

        self.ukf.process_measurement(radar(0, 5.0, 0.0, 0.0))
        current_state = self.ukf.get_current_state()
        self.assertAlmostEqual(current_state.px, 5.0)
        self.assertAlmostEqual(current_state.py, 0.0)

if __name__ == '__main__':
    unittest.main()
