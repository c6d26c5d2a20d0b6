"""
main.py

Executable entry point for the lidar/radar target tracking simulation.
The script ties together the ground truth target, sensor simulator,
Unscented Kalman Filter and plotter into a complete application. A scripted
scenario drives the target; the filter only sees the noisy samples.

Usage:
    python tools/Simulations/main.py

Optional arguments set the simulation duration, time step, sensor rates,
random seed, process noise and whether to plot or write a measurement log.
Use the --help flag for details.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
import numpy as np

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ukf_fusion.ukf import UnscentedKalmanFilter, UKFConfig, UpdateStatus
from ukf_fusion.math import rmse
from motion_model import TargetState, scenario_command
from sensor_simulator import SensorSimulator
from plotter import Plotter

logger = logging.getLogger("ukf_simulation")

def run_simulation(dt: float,
                   duration: float,
                   lidar_rate: float = 10.0,
                   radar_rate: float = 10.0,
                   config: UKFConfig | None = None,
                   seed: int | None = None,
                   plotting: bool = True,
                   log_path: str | None = None) -> np.ndarray:
    """Execute the tracking simulation for a given duration.

    Args:
        dt (float): Ground truth integration step in seconds.
        duration (float): Total simulation duration in seconds.
        lidar_rate (float): Lidar rate in Hz, zero disables lidar.
        radar_rate (float): Radar rate in Hz, zero disables radar.
        config (UKFConfig): Filter configuration.
        seed (int): Random seed for reproducible noise.
        plotting (bool): If True, enable real-time plotting via Matplotlib.
        log_path (str): If given, write the samples as a measurement log
            that platforms/replay can replay.

    Returns:
        np.ndarray: RMSE of [px, py, vx, vy] over all filtered samples.
    """
    # Initialize Subsystems
    ukf = UnscentedKalmanFilter(config or UKFConfig())
    target = TargetState(x=5.0, y=2.0, v=2.0, yaw=0.2)
    sensor = SensorSimulator(
        lidar_rate=lidar_rate,
        radar_rate=radar_rate,
        random_state=np.random.default_rng(seed)
    )
    plotter = Plotter(enable=plotting)
    log_file = open(log_path, 'w') if log_path else None

    estimates = []
    ground_truth = []
    sim_time = 0.0
    step = 0
    try:
        while sim_time < duration:
            # Update true target state
            accel, yaw_rate = scenario_command(sim_time)
            target.update(accel, yaw_rate, dt)
            sim_time += dt
            step += 1

            # Generate and filter the samples due at this step
            for sample in sensor.step(target.position, target.velocity, sim_time, dt):
                status = ukf.process_measurement(sample)
                if status is UpdateStatus.UPDATED:
                    sensor_name = sample.sensor_type.name.lower()
                    plotter.add_nis(sim_time, sensor_name, ukf.nis_history[sample.sensor_type][-1])

                estimates.append(ukf.get_current_state().cartesian_vector)
                ground_truth.append(target.cartesian_vector)

                if log_file is not None:
                    meas = " ".join(f"{value:.6f}" for value in sample.raw)
                    truth = " ".join(f"{value:.6f}" for value in target.cartesian_vector)
                    log_file.write(f"{sample.sensor_type.value} {meas} {sample.timestamp_us} {truth}\n")

            # Update Plots
            if ukf.is_initialized:
                state = ukf.get_current_state()
                plotter.update(
                    t=sim_time,
                    true_speed=target.v,
                    est_speed=state.v,
                    true_yaw=target.yaw,
                    est_yaw=state.yaw,
                    true_pos=target.position,
                    est_pos=state.position,
                    redraw=step % 10 == 0
                )
    finally:
        if log_file is not None:
            log_file.close()

    error = rmse(estimates, ground_truth)
    stats = ukf.get_statistics()
    logger.info("UKF: %d predictions, %d lidar updates, %d radar updates, %d skipped",
                stats['predictions'], stats['lidar_updates'], stats['radar_updates'],
                stats['skipped_updates'])
    logger.info("NIS above 95%% bound: %s", stats['nis_exceed_ratio'])
    logger.info("RMSE px=%.4f py=%.4f vx=%.4f vy=%.4f", *error)

    plotter.show()
    return error

def main() -> None:
    """ Entry point when running this module as a script."""
    parser = argparse.ArgumentParser(description="Lidar/Radar Target Tracking Simulation with UKF")
    parser.add_argument('--dt', type=float, default=0.01, help='Ground truth time step in seconds (default: 0.01s)')
    parser.add_argument('--duration', type=float, default=25.0, help='Total simulation duration in seconds (default: 25s)')
    parser.add_argument('--lidar-rate', type=float, default=10.0, help='Lidar rate in Hz, 0 disables (default: 10)')
    parser.add_argument('--radar-rate', type=float, default=10.0, help='Radar rate in Hz, 0 disables (default: 10)')
    parser.add_argument('--std-a', type=float, default=UKFConfig.std_a, help='Longitudinal acceleration noise (m/s^2)')
    parser.add_argument('--std-yawdd', type=float, default=UKFConfig.std_yawdd, help='Yaw acceleration noise (rad/s^2)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--write-log', metavar='PATH', help='Write the simulated samples as a measurement log')
    parser.add_argument('--no-plotting', action='store_true', help='Disable real-time plotting.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    config = UKFConfig(std_a=args.std_a, std_yawdd=args.std_yawdd)
    run_simulation(dt=args.dt,
                   duration=args.duration,
                   lidar_rate=args.lidar_rate,
                   radar_rate=args.radar_rate,
                   config=config,
                   seed=args.seed,
                   plotting=not args.no_plotting,
                   log_path=args.write_log)

if __name__ == "__main__":
    main()
