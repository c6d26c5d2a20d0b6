#!/usr/bin/env python3
"""
Basic usage example of the lidar/radar UKF tracker.

This example demonstrates how to use the core tracking algorithms
without a recorded measurement log or the simulation tools.
"""

import sys
import os
import numpy as np

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from ukf_fusion.ukf import UnscentedKalmanFilter, UKFConfig, UpdateStatus, ObjectState
from ukf_fusion.sensors import MeasurementSample
from ukf_fusion.math import cartesian_to_polar

def simulate_object_motion(duration=20, dt=0.05, seed=42):
    """
    Simulate an object driving a circle, alternating lidar and radar samples.

    Args:
        duration: Simulation duration in seconds
        dt: Time between samples in seconds
        seed: Random seed for the measurement noise

    Yields:
        (sample, true_state) tuples
    """
    rng = np.random.default_rng(seed)

    # Object motion parameters
    speed = 5.0  # m/s
    turn_radius = 25.0  # meters
    yaw_rate = speed / turn_radius  # rad/s
    center = np.array([10.0, 30.0])

    t = 0.0
    step = 0
    while t < duration:
        timestamp_us = int(round(t * 1e6))

        # Object state on the circle, starting heading along +x
        yaw = -np.pi / 2 + yaw_rate * t
        px = center[0] + turn_radius * np.cos(yaw)
        py = center[1] + turn_radius * np.sin(yaw)
        heading = yaw + np.pi / 2
        vx = speed * np.cos(heading)
        vy = speed * np.sin(heading)
        truth = ObjectState(px=px, py=py, v=speed, yaw=heading, yaw_rate=yaw_rate,
                            timestamp_us=timestamp_us)

        if step % 2 == 0:
            sample = MeasurementSample.lidar(
                timestamp_us,
                px + rng.normal(0, 0.15),
                py + rng.normal(0, 0.15)
            )
        else:
            rho, phi, rho_dot = cartesian_to_polar(px, py, vx, vy)
            sample = MeasurementSample.radar(
                timestamp_us,
                rho + rng.normal(0, 0.3),
                phi + rng.normal(0, 0.03),
                rho_dot + rng.normal(0, 0.3)
            )

        yield sample, truth

        t += dt
        step += 1

def main():
    """Main example function."""
    print("Lidar/Radar UKF Tracker - Basic Usage Example")
    print("=" * 50)

    # Default tuning, both sensors enabled
    ukf = UnscentedKalmanFilter(UKFConfig(std_a=1.0, std_yawdd=0.5))

    print("Starting simulation (circular motion, 20 seconds)...")

    last_print_time = 0.0
    print_interval = 5.0  # Print status every 5 seconds

    for sample, truth in simulate_object_motion(duration=20, dt=0.05):
        status = ukf.process_measurement(sample)

        if status is UpdateStatus.INITIALIZED:
            print(f"Initialized from {sample.sensor_type.name}: {ukf.get_current_state()}")
            print()
            continue

        t = sample.timestamp_us / 1e6
        if t - last_print_time >= print_interval:
            print_status(ukf.get_current_state(), truth, ukf, t)
            last_print_time = t

    print("\nSimulation completed!")

    # Final statistics
    final_stats = ukf.get_statistics()
    print("\n=== Final Statistics ===")
    print(f"UKF Predictions: {final_stats['predictions']}")
    print(f"Lidar Updates: {final_stats['lidar_updates']}")
    print(f"Radar Updates: {final_stats['radar_updates']}")
    print(f"NIS above 95% bound: {final_stats['nis_exceed_ratio']}")
    print(f"Final Position Uncertainty: {final_stats['position_uncertainty']:.3f} m")

def print_status(state: ObjectState, truth: ObjectState, ukf: UnscentedKalmanFilter, t: float):
    """Print current system status."""
    uncertainty = ukf.get_position_uncertainty()
    error = np.linalg.norm(state.position - truth.position)

    print(f"Time: {t:.1f}s")
    print(f"  Position: [{state.px:6.2f}, {state.py:6.2f}] m (error {error:.3f} m)")
    print(f"  Speed:    {state.v:5.2f} m/s (true {truth.v:5.2f} m/s)")
    print(f"  Heading:  {state.yaw:6.3f} rad ({np.degrees(state.yaw):6.1f}°)")
    print(f"  Yaw rate: {state.yaw_rate:6.3f} rad/s (true {truth.yaw_rate:6.3f} rad/s)")
    print(f"  Uncertainty: {uncertainty:5.3f} m")
    print()

if __name__ == "__main__":
    main()
