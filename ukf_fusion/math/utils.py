"""
Mathematical utility functions for the tracker.
"""

import numpy as np
import math
from typing import Sequence, Tuple

from .constants import PI, TWO_PI

def normalize_angle(angle):
    """
    Normalize angle to the (-pi, pi] range.

    Args:
        angle (float): Angle in radians

    Returns:
        float: Normalized angle in (-pi, pi]
    """
    angle = float(angle)
    if -PI < angle <= PI:
        return angle
    # Exact IEEE remainder lies in [-PI, PI] since TWO_PI / 2 == PI
    remainder = math.remainder(angle, TWO_PI)
    return PI if remainder == -PI else remainder

def polar_to_cartesian(rho, phi, rho_dot=0.0):
    """
    Convert a radar measurement to Cartesian position and velocity.

    The radial velocity is projected along the bearing, so the tangential
    component of the true velocity is lost.

    Args:
        rho (float): Range in meters
        phi (float): Bearing in radians
        rho_dot (float): Range rate in m/s

    Returns:
        tuple: (px, py, vx, vy)
    """
    cos_phi = math.cos(phi)
    sin_phi = math.sin(phi)
    return rho * cos_phi, rho * sin_phi, rho_dot * cos_phi, rho_dot * sin_phi

def cartesian_to_polar(px, py, vx=0.0, vy=0.0) -> Tuple[float, float, float]:
    """
    Convert Cartesian position and velocity to (range, bearing, range rate).

    Raises:
        ValueError: If the position is at the origin, where bearing and
            range rate are undefined
    """
    rho = math.hypot(px, py)
    if rho == 0.0:
        raise ValueError("Bearing is undefined at the origin")
    phi = math.atan2(py, px)
    rho_dot = (px * vx + py * vy) / rho
    return rho, phi, rho_dot

def rmse(estimates: Sequence[Sequence[float]], ground_truth: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Root mean squared error between estimates and ground truth.

    Args:
        estimates: Rows of [px, py, vx, vy] estimates
        ground_truth: Rows of [px, py, vx, vy] true values

    Returns:
        np.ndarray: RMSE per column
    """
    estimates = np.asarray(estimates, dtype=float)
    ground_truth = np.asarray(ground_truth, dtype=float)

    if estimates.size == 0 or estimates.shape != ground_truth.shape:
        raise ValueError(
            f"Invalid RMSE inputs: estimates {estimates.shape}, "
            f"ground truth {ground_truth.shape}"
        )

    residuals = estimates - ground_truth
    return np.sqrt(np.mean(residuals**2, axis=0))
