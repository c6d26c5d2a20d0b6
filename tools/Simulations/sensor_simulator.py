"""
sensor_simulator.py

This module defines a simple sensor simulation for the lidar and radar used
by the tracker. It converts ground truth target motion into measurement
samples by adding white Gaussian noise with the sensors' calibrated
standard deviations. Each sensor produces samples at its own rate.

Classes:
SensorSimulator:
    Simulates lidar (Cartesian position) and radar (range, bearing,
    range rate) measurements.
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from ukf_fusion.sensors import MeasurementSample, SensorType
from ukf_fusion.ukf import LidarNoise, RadarNoise
from ukf_fusion.math import cartesian_to_polar, normalize_angle

@dataclass
class SensorSimulator:
    """Simulate lidar and radar measurements from ground truth motion

    Parameters:
        lidar_noise (LidarNoise): Lidar noise standard deviations.
        radar_noise (RadarNoise): Radar noise standard deviations.
        lidar_rate (float): Lidar measurement rate in Hz, if zero no lidar samples are generated.
        radar_rate (float): Radar measurement rate in Hz, if zero no radar samples are generated.
        random_state(Optional[np.random.Generator]): Random number generator for reproducibility. If
            None, a new default generator is created.
    """
    lidar_noise: LidarNoise = field(default_factory=LidarNoise)
    radar_noise: RadarNoise = field(default_factory=RadarNoise)
    lidar_rate: float = 10.0 # Hz
    radar_rate: float = 10.0 # Hz
    random_state: Optional[np.random.Generator] = field(default=None)

    def __post_init__(self):
        # RNG for reproducibility
        if self.random_state is None:
            self.rng = np.random.default_rng()
        else:
            self.rng = self.random_state
        # Compute intervals from rates
        self.lidar_interval: float = 1.0 / self.lidar_rate if self.lidar_rate > 0 else float('inf')
        self.radar_interval: float = 1.0 / self.radar_rate if self.radar_rate > 0 else float('inf')
        # Radar fires half a lidar period later so the sensors interleave
        self._lidar_timer: float = self.lidar_interval
        self._radar_timer: float = 0.5 * self.lidar_interval if self.lidar_rate > 0 else self.radar_interval

    def measure_lidar(self, pos: np.ndarray, timestamp_us: int) -> MeasurementSample:
        """ Generate a noisy lidar position measurement.

        Args:
            pos (np.ndarray): True position in world frame (2,).
            timestamp_us (int): Measurement time in microseconds.

        Returns:
            MeasurementSample: Lidar sample [px, py].
        """
        pos = np.asarray(pos, dtype=float)
        noise = self.rng.normal(scale=[self.lidar_noise.std_px, self.lidar_noise.std_py])
        return MeasurementSample(SensorType.LIDAR, timestamp_us, pos + noise)

    def measure_radar(self, pos: np.ndarray, vel: np.ndarray,
                      timestamp_us: int) -> Optional[MeasurementSample]:
        """ Generate a noisy radar measurement.

        Args:
            pos (np.ndarray): True position in world frame (2,).
            vel (np.ndarray): True velocity in world frame (2,).
            timestamp_us (int): Measurement time in microseconds.

        Returns:
            MeasurementSample: Radar sample [rho, phi, rho_dot], or None when the
                target sits on the sensor and bearing is undefined.
        """
        pos = np.asarray(pos, dtype=float)
        try:
            rho, phi, rho_dot = cartesian_to_polar(pos[0], pos[1], vel[0], vel[1])
        except ValueError:
            return None
        noise = self.rng.normal(scale=[self.radar_noise.std_rho,
                                       self.radar_noise.std_phi,
                                       self.radar_noise.std_rho_dot])
        rho += noise[0]
        phi += noise[1]
        rho_dot += noise[2]
        if rho < 0.0:
            # Same point and velocity seen with a positive range
            rho, rho_dot = -rho, -rho_dot
            phi += np.pi
        return MeasurementSample(SensorType.RADAR, timestamp_us, [rho, normalize_angle(phi), rho_dot])

    def step(self, pos: np.ndarray, vel: np.ndarray, t: float, dt: float) -> List[MeasurementSample]:
        """ Generate every measurement due in the interval (t - dt, t].

        The function accumulates dt internally per sensor and returns the
        samples whose interval elapsed, ordered lidar before radar.

        Args:
            pos (np.ndarray): True position in world frame (2,).
            vel (np.ndarray): True velocity in world frame (2,).
            t (float): Current time in seconds.
            dt (float): Time step since the last call in seconds.

        Returns:
            List[MeasurementSample]: Samples produced at this step, possibly empty.
        """
        samples = []
        timestamp_us = int(round(t * 1e6))

        self._lidar_timer -= dt
        if self._lidar_timer <= 1e-9:
            self._lidar_timer += self.lidar_interval
            samples.append(self.measure_lidar(pos, timestamp_us))

        self._radar_timer -= dt
        if self._radar_timer <= 1e-9:
            self._radar_timer += self.radar_interval
            sample = self.measure_radar(pos, vel, timestamp_us)
            if sample is not None:
                samples.append(sample)

        return samples
