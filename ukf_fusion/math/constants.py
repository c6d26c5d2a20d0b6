"""
Mathematical constants and sensor calibration values for the UKF tracker.
"""

import math

# Mathematical constants
PI = math.pi
TWO_PI = 2 * math.pi

# Time conversion
MICROSECONDS_PER_SECOND = 1_000_000.0

# Filter dimensions
STATE_DIM = 5                        # [px, py, v, yaw, yaw_rate]
AUGMENTED_DIM = 7                    # state + [nu_a, nu_yawdd]
N_SIGMA_POINTS = 2 * AUGMENTED_DIM + 1
SPREADING_LAMBDA = 3 - AUGMENTED_DIM

# State vector indices
PX, PY, V, YAW, YAW_RATE = range(STATE_DIM)

# Process noise (tunable)
STD_A = 3.0           # Longitudinal acceleration noise (m/s²)
STD_YAWDD = 2.0       # Yaw acceleration noise (rad/s²)

# Sensor measurement noise, provided by the sensor manufacturer.
# Do not tune these.
STD_LASER_PX = 0.15   # Lidar position x noise (m)
STD_LASER_PY = 0.15   # Lidar position y noise (m)
STD_RADAR_RHO = 0.3   # Radar range noise (m)
STD_RADAR_PHI = 0.03  # Radar bearing noise (rad)
STD_RADAR_RHO_DOT = 0.3  # Radar range rate noise (m/s)

# Initial uncertainty of components a sensor does not observe
LIDAR_INIT_VELOCITY_VAR = 1.0
LIDAR_INIT_YAW_VAR = 1.0
LIDAR_INIT_YAW_RATE_VAR = 1.0
RADAR_INIT_YAW_VAR = 0.03
RADAR_INIT_YAW_RATE_VAR = 0.03

# Numerical guards
YAW_RATE_EPSILON = 1e-3               # Below this the CTRV model drives straight
MIN_RADAR_RANGE = 1e-4                # Bearing is undefined below this range (m)
MAX_INNOVATION_CONDITION = 1e12       # S above this condition number is singular

# Normalized innovation squared, 95% chi-square bounds
NIS_95_LIDAR = 5.991  # 2 degrees of freedom
NIS_95_RADAR = 7.815  # 3 degrees of freedom
NIS_HISTORY_LENGTH = 1000
