#!/usr/bin/env python3
import sys
import csv
import numpy as np
import matplotlib.pyplot as plt

# Chi-square 95% bounds for 2 and 3 degrees of freedom
NIS_95 = {"L": 5.991, "R": 7.815}

def to_float(value):
    try:
        return float(value)
    except ValueError:
        return np.nan

# ------------------------------------------
# Read CSV file
# ------------------------------------------
if len(sys.argv) < 2:
    print("Usage: plot_track.py <ukf_output.csv>")
    sys.exit(1)

csvfile = sys.argv[1]

# Columns (in order)
# timestamp_us, sensor, status,
# px_est, py_est, v_est, yaw_est, yaw_rate_est,
# px_meas, py_meas, px_gt, py_gt, vx_gt, vy_gt, nis

t = []
sensor = []
px_est, py_est = [], []
px_meas, py_meas = [], []
px_gt, py_gt = [], []
nis = []

with open(csvfile, "r") as f:
    reader = csv.reader(f)
    header = next(reader, None)   # skip header

    for row in reader:
        if len(row) < 15:
            continue

        t.append(int(row[0]) / 1e6)
        sensor.append(row[1])
        px_est.append(to_float(row[3]))
        py_est.append(to_float(row[4]))
        px_meas.append(to_float(row[8]))
        py_meas.append(to_float(row[9]))
        px_gt.append(to_float(row[10]))
        py_gt.append(to_float(row[11]))
        nis.append(to_float(row[14]))

if not t:
    print(f"No rows found in {csvfile}")
    sys.exit(1)

t = np.array(t) - t[0]
sensor = np.array(sensor)
nis = np.array(nis)
is_lidar = sensor == "L"
is_radar = sensor == "R"

# ------------------------------------------
# Plot
# ------------------------------------------
fig, (ax_traj, ax_nis) = plt.subplots(1, 2, figsize=(14, 6))

ax_traj.plot(px_est, py_est, 'b-', label="UKF Estimate", linewidth=2)
if not np.all(np.isnan(px_gt)):
    ax_traj.plot(px_gt, py_gt, 'k--', label="Ground Truth", linewidth=1)
ax_traj.scatter(np.array(px_meas)[is_lidar], np.array(py_meas)[is_lidar],
                s=10, c='green', label="Lidar", alpha=0.6)
ax_traj.scatter(np.array(px_meas)[is_radar], np.array(py_meas)[is_radar],
                s=10, c='red', label="Radar", alpha=0.6)
ax_traj.set_xlabel("X (m)")
ax_traj.set_ylabel("Y (m)")
ax_traj.set_title("Object Trajectory")
ax_traj.grid(True)
ax_traj.axis('equal')
ax_traj.legend()

for code, name, color in (("L", "Lidar", "green"), ("R", "Radar", "red")):
    mask = (sensor == code) & ~np.isnan(nis)
    ax_nis.plot(t[mask], nis[mask], '.', color=color, label=f"{name} NIS")
    ax_nis.axhline(NIS_95[code], color=color, linestyle=':', label=f"{name} 95%")
ax_nis.set_xlabel("Time (s)")
ax_nis.set_ylabel("NIS")
ax_nis.set_title("Filter Consistency")
ax_nis.grid(True)
ax_nis.legend()

plt.tight_layout()
plt.show()


#Sample run command: python3 plot_track.py ukf_output.csv
