"""
Mathematical utilities for tracking calculations.
"""

from .utils import normalize_angle, polar_to_cartesian, cartesian_to_polar, rmse
from .constants import *

__all__ = ["normalize_angle", "polar_to_cartesian", "cartesian_to_polar", "rmse"]
