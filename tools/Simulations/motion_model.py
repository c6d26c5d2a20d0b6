"""
motion_model.py

This module defines the ground truth target used by the tracking
simulation. The target follows constant turn rate and velocity motion
between commands, and the scenario script changes its acceleration and
yaw rate over time to produce straight segments, turns and speed changes.

Classes:
TargetState:
    Holds the true position, speed, heading and yaw rate of the target
    and integrates them forward in time.
"""
from __future__ import annotations

import numpy as np
from dataclasses import dataclass

@dataclass
class TargetState:
    """Ground truth state for a planar target.

    Attributes:
        x (float): X position in meters.
        y (float): Y position in meters.
        v (float): Speed in meters per second.
        yaw (float): Heading angle in radians.
        yaw_rate (float): Heading rate in radians per second.
    """
    x: float = 0.0
    y: float = 0.0
    v: float = 0.0
    yaw: float = 0.0
    yaw_rate: float = 0.0

    def update(self, accel: float, yaw_rate: float, dt: float) -> None:
        """
        Advance the target using commanded acceleration and yaw rate.

        Position is integrated exactly for a constant turn rate and the
        average speed over the step. Speed is clamped to stay non-negative.

        Args:
            accel (float): Longitudinal acceleration in meters per second squared.
            yaw_rate (float): Commanded yaw rate in radians per second.
            dt (float): Time step in seconds.
        """
        self.yaw_rate = yaw_rate
        v_old = self.v
        self.v = max(0.0, self.v + accel * dt)
        v_mean = 0.5 * (v_old + self.v)

        yaw_new = self.yaw + yaw_rate * dt
        if abs(yaw_rate) > 1e-6:
            self.x += v_mean / yaw_rate * (np.sin(yaw_new) - np.sin(self.yaw))
            self.y += v_mean / yaw_rate * (np.cos(self.yaw) - np.cos(yaw_new))
        else:
            self.x += v_mean * dt * np.cos(self.yaw)
            self.y += v_mean * dt * np.sin(self.yaw)
        self.yaw = yaw_new

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y])

    @property
    def velocity(self) -> np.ndarray:
        return np.array([self.v * np.cos(self.yaw), self.v * np.sin(self.yaw)])

    @property
    def cartesian_vector(self) -> np.ndarray:
        """State as [px, py, vx, vy] for comparison with estimates."""
        return np.concatenate([self.position, self.velocity])

def scenario_command(t: float) -> tuple[float, float]:
    """Scripted (acceleration, yaw rate) command for the default scenario.

    The target accelerates, drives straight, makes a left turn, brakes
    gently and then turns right.

    Args:
        t (float): Scenario time in seconds.

    Returns:
        tuple: (acceleration m/s^2, yaw rate rad/s)
    """
    if t < 3.0:
        return 1.5, 0.0
    if t < 8.0:
        return 0.0, 0.0
    if t < 12.0:
        return 0.0, 0.35
    if t < 15.0:
        return -0.8, 0.0
    return 0.0, -0.25
