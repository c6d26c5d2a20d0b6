"""
Object state representation for the UKF.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

@dataclass
class ObjectState:
    """
    Kinematic state of the tracked object (CTRV model).

    State vector: [px, py, v, yaw, yaw_rate]
    - px, py: Position in meters (fixed 2D frame)
    - v: Speed along the heading in m/s
    - yaw: Heading in radians
    - yaw_rate: Heading rate in rad/s
    """

    # Position (meters)
    px: float = 0.0
    py: float = 0.0

    # Speed (m/s)
    v: float = 0.0

    # Orientation (radians)
    yaw: float = 0.0
    yaw_rate: float = 0.0

    # Timestamp of the measurement this state was estimated at
    timestamp_us: Optional[int] = None

    @property
    def state_vector(self) -> np.ndarray:
        """Get state as numpy vector."""
        return np.array([
            self.px,
            self.py,
            self.v,
            self.yaw,
            self.yaw_rate
        ])

    @state_vector.setter
    def state_vector(self, vector: np.ndarray):
        """Set state from numpy vector."""
        if len(vector) != 5:
            raise ValueError("State vector must have 5 elements")

        self.px = float(vector[0])
        self.py = float(vector[1])
        self.v = float(vector[2])
        self.yaw = float(vector[3])
        self.yaw_rate = float(vector[4])

    @property
    def position(self) -> np.ndarray:
        """Get position as [px, py] vector."""
        return np.array([self.px, self.py])

    @property
    def vx(self) -> float:
        return self.v * np.cos(self.yaw)

    @property
    def vy(self) -> float:
        return self.v * np.sin(self.yaw)

    @property
    def velocity(self) -> np.ndarray:
        """Get Cartesian velocity as [vx, vy] vector."""
        return np.array([self.vx, self.vy])

    @property
    def cartesian_vector(self) -> np.ndarray:
        """State as [px, py, vx, vy], comparable to ground truth."""
        return np.array([self.px, self.py, self.vx, self.vy])

    def __str__(self) -> str:
        return (
            f"ObjectState(pos=[{self.px:.2f}, {self.py:.2f}], "
            f"v={self.v:.2f}, "
            f"yaw={self.yaw:.3f}, "
            f"yaw_rate={self.yaw_rate:.3f})"
        )
