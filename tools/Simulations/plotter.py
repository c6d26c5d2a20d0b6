"""
plotter.py

This module provides a simple helper for real time visualization of
target tracking simulations. The Plotter class encapsulates the creation
and update of a matplotlib figure with multiple subplots: speed, yaw,
trajectory and NIS per sensor. The figure is updated incrementally as the
simulation runs.

Use of this module is optional: if Matplotlib cannot be imported or
interactive plotting is not possible (e.g. in a headless environment),
the class will gracefully do nothing when update() is called.

Classes:
Plotter:
    Maintains a figure with subplots and provides an update() method to
    append new data points.
"""

from __future__ import annotations

import numpy as np
import warnings
from dataclasses import dataclass, field
from typing import List, Optional

@dataclass
class Plotter:
    """Real time plot manager for target tracking simulations

    Parameters:
    enable : bool, optional
        If False, the plotter will not attempt to create plots. Default is True
        if matplotlib can be imported.
    """

    enable : bool = field(default=True)
    # Data buffers
    time_log: List[float] = field(default_factory=list)
    speed_true: List[float] = field(default_factory=list)
    speed_est: List[float] = field(default_factory=list)
    yaw_true: List[float] = field(default_factory=list)
    yaw_est: List[float] = field(default_factory=list)
    x_true: List[float] = field(default_factory=list)
    y_true: List[float] = field(default_factory=list)
    x_est: List[float] = field(default_factory=list)
    y_est: List[float] = field(default_factory=list)
    nis_time: dict = field(default_factory=lambda: {'lidar': [], 'radar': []})
    nis_value: dict = field(default_factory=lambda: {'lidar': [], 'radar': []})

    def __post_init__(self):
        # Try to import matplotlib for plotting
        self._fig = None
        self._lines = {}
        if self.enable:
            try:
                import matplotlib.pyplot as plt
                plt.ion()  # Enable interactive mode
                self._fig, axes = plt.subplots(2, 2, figsize=(10, 8))
                ax_speed = axes[0, 0]
                ax_yaw = axes[0, 1]
                ax_traj = axes[1, 0]
                ax_nis = axes[1, 1]
                # Setup plots
                ax_speed.set_title("Speed")
                ax_speed.set_xlabel("Time (s)")
                ax_speed.set_ylabel("Speed (m/s)")
                l1, = ax_speed.plot([], [], label="True Speed")
                l2, = ax_speed.plot([], [], label="Estimated Speed", linestyle='--')
                ax_speed.legend()
                ax_yaw.set_title("Yaw Angle")
                ax_yaw.set_xlabel("Time (s)")
                ax_yaw.set_ylabel("Yaw (deg)")
                l3, = ax_yaw.plot([], [], label="True Yaw")
                l4, = ax_yaw.plot([], [], label="Estimated Yaw", linestyle='--')
                ax_yaw.legend()
                ax_traj.set_title("Trajectory")
                ax_traj.set_xlabel("X (m)")
                ax_traj.set_ylabel("Y (m)")
                ax_traj.set_aspect('equal', 'box')
                l5, = ax_traj.plot([], [], label="True Position")
                l6, = ax_traj.plot([], [], label="Estimated Position", linestyle='--')
                ax_traj.legend()
                ax_nis.set_title("Normalized Innovation Squared")
                ax_nis.set_xlabel("Time (s)")
                ax_nis.set_ylabel("NIS")
                l7, = ax_nis.plot([], [], '.', label="Lidar NIS")
                l8, = ax_nis.plot([], [], '.', label="Radar NIS")
                ax_nis.axhline(5.991, color='C0', linestyle=':', label="Lidar 95%")
                ax_nis.axhline(7.815, color='C1', linestyle=':', label="Radar 95%")
                ax_nis.legend()
                plt.tight_layout()
                # Store line handles
                self._axes = {
                    'speed': ax_speed,
                    'yaw': ax_yaw,
                    'traj': ax_traj,
                    'nis': ax_nis
                }
                self._lines = {
                    'speed_true': l1,
                    'speed_est': l2,
                    'yaw_true': l3,
                    'yaw_est': l4,
                    'traj_true': l5,
                    'traj_est': l6,
                    'nis_lidar': l7,
                    'nis_radar': l8
                }
                self._plt = plt
            except Exception as e:
                warnings.warn(f"Plotter disabled: could not initialize matplotlib plots. {e}")
                self.enable = False

    def add_nis(self, t: float, sensor: str, nis: float) -> None:
        """Record the NIS of one update for 'lidar' or 'radar'."""
        self.nis_time[sensor].append(t)
        self.nis_value[sensor].append(nis)

    def update(self, t: float,
               true_speed: float,
               est_speed: float,
               true_yaw: float,
               est_yaw: float,
               true_pos: np.ndarray,
               est_pos: np.ndarray,
               redraw: bool = True) -> None:
        """ Append new data and update the figures.

        Parameters:
        t : float
            Current simulation time in seconds.
        true_speed : float
            True target speed in m/s.
        est_speed : float
            Estimated target speed in m/s.
        true_yaw : float
            True target yaw angle in radians.
        est_yaw : float
            Estimated target yaw angle in radians.
        true_pos : np.ndarray
            True target position as (x, y) in meters.
        est_pos : np.ndarray
            Estimated target position as (x, y) in meters.
        redraw : bool
            If False only the buffers are updated.
        """

        # Append to logs
        self.time_log.append(t)
        self.speed_true.append(true_speed)
        self.speed_est.append(est_speed)
        self.yaw_true.append(np.degrees(true_yaw))
        self.yaw_est.append(np.degrees(est_yaw))
        self.x_true.append(true_pos[0])
        self.y_true.append(true_pos[1])
        self.x_est.append(est_pos[0])
        self.y_est.append(est_pos[1])
        # Update plots if enabled
        if not redraw or not self.enable or self._fig is None:
            return
        # Update line data
        self._lines['speed_true'].set_data(self.time_log, self.speed_true)
        self._lines['speed_est'].set_data(self.time_log, self.speed_est)
        self._lines['yaw_true'].set_data(self.time_log, self.yaw_true)
        self._lines['yaw_est'].set_data(self.time_log, self.yaw_est)
        self._lines['traj_true'].set_data(self.x_true, self.y_true)
        self._lines['traj_est'].set_data(self.x_est, self.y_est)
        self._lines['nis_lidar'].set_data(self.nis_time['lidar'], self.nis_value['lidar'])
        self._lines['nis_radar'].set_data(self.nis_time['radar'], self.nis_value['radar'])
        # Rescale axes, time plots share the x range
        for name in ('speed', 'yaw', 'nis'):
            ax = self._axes[name]
            ax.set_xlim(0, max(5, self.time_log[-1]))
            ax.relim()
            ax.autoscale_view()
        ax_traj = self._axes['traj']
        ax_traj.relim()
        ax_traj.autoscale_view()
        self._plt.pause(0.001)

    def show(self) -> None:
        """Block on the final figure."""
        if self.enable and self._fig is not None:
            self._plt.ioff()
            self._plt.show()
