#!/usr/bin/env python3
"""
Measurement replay application.

Feeds a recorded lidar/radar measurement log through the Unscented Kalman
Filter and writes the estimates to a CSV file.
"""

import argparse
import csv
import logging
import sys
import os
import time
from typing import Optional

# Add core modules to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from ukf_fusion.ukf import UnscentedKalmanFilter, UpdateStatus, UKFError
from ukf_fusion.sensors import MeasurementLogParser, MeasurementSample, GroundTruth
from ukf_fusion.math import rmse
from config import Config

logger = logging.getLogger("ukf_replay")

OUTPUT_COLUMNS = [
    "timestamp_us", "sensor", "status",
    "px_est", "py_est", "v_est", "yaw_est", "yaw_rate_est",
    "px_meas", "py_meas",
    "px_gt", "py_gt", "vx_gt", "vy_gt",
    "nis"
]

def setup_logging(config: Config):
    """Configure root logging from the application config."""
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    handlers = [logging.StreamHandler()]
    if config.enable_logging:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers
    )

class TrackingReplay:
    """Replays a measurement log through the filter."""

    def __init__(self, config: Config):
        """Initialize the replay."""
        self.config = config
        self.parser = MeasurementLogParser()
        self.ukf = UnscentedKalmanFilter(config.ukf_config())

        # Results for RMSE
        self.estimates = []
        self.ground_truth = []

        # Statistics
        self.status_counts = {status: 0 for status in UpdateStatus}
        self.start_time = None

    def run(self, measurement_file: Optional[str] = None, output_file: Optional[str] = None) -> bool:
        """
        Process every sample of the measurement log.

        Returns:
            True if the whole log was processed
        """
        measurement_file = measurement_file or self.config.measurement_file
        output_file = output_file or self.config.output_file

        if not os.path.exists(measurement_file):
            logger.error("Measurement file %s not found", measurement_file)
            return False

        logger.info("Replaying %s -> %s", measurement_file, output_file)
        self.start_time = time.time()

        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(OUTPUT_COLUMNS)

            for count, (sample, truth) in enumerate(self.parser.parse_file(measurement_file), start=1):
                try:
                    status = self.ukf.process_measurement(sample)
                except UKFError:
                    logger.exception("Filter failed at %d us, aborting replay", sample.timestamp_us)
                    return False
                except ValueError as e:
                    logger.error("Rejected sample at %d us: %s", sample.timestamp_us, e)
                    continue

                self.status_counts[status] += 1
                writer.writerow(self._output_row(sample, truth, status))

                if truth is not None:
                    self.estimates.append(self.ukf.get_current_state().cartesian_vector)
                    self.ground_truth.append(truth.vector)

                if count % self.config.status_interval == 0:
                    self._log_status(count)

        self._log_summary()
        return True

    def _output_row(self, sample: MeasurementSample, truth: Optional[GroundTruth],
                    status: UpdateStatus) -> list:
        x = self.ukf.x
        meas = sample.position

        nis = ""
        if status is UpdateStatus.UPDATED:
            nis = self.ukf.nis_history[sample.sensor_type][-1]

        gt = list(truth.vector) if truth is not None else ["", "", "", ""]

        return [sample.timestamp_us, sample.sensor_type.value, status.value,
                *x, *meas, *gt, nis]

    def _log_status(self, count: int):
        state = self.ukf.get_current_state()
        logger.info("%d samples: %s, position uncertainty %.3f m",
                    count, state, self.ukf.get_position_uncertainty())

    def _log_summary(self):
        elapsed = time.time() - self.start_time
        stats = self.ukf.get_statistics()
        parser_stats = self.parser.get_statistics()

        logger.info("=== Replay Summary (%.2fs) ===", elapsed)
        logger.info("Parsed: %d lidar, %d radar, %d errors",
                    parser_stats['lidar_samples'], parser_stats['radar_samples'],
                    parser_stats['parse_errors'])
        logger.info("UKF: %d predictions, %d lidar updates, %d radar updates, %d skipped",
                    stats['predictions'], stats['lidar_updates'], stats['radar_updates'],
                    stats['skipped_updates'])
        logger.info("NIS above 95%% bound: %s", stats['nis_exceed_ratio'])

        if self.estimates:
            error = rmse(self.estimates, self.ground_truth)
            logger.info("RMSE px=%.4f py=%.4f vx=%.4f vy=%.4f", *error)

def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Replay a lidar/radar log through the UKF")
    parser.add_argument('measurement_file', nargs='?', help='Measurement log (overrides config)')
    parser.add_argument('-c', '--config', default='config.json', help='Configuration file (default: config.json)')
    parser.add_argument('-o', '--output', help='Output CSV file (overrides config)')
    args = parser.parse_args()

    config = Config(args.config)
    setup_logging(config)
    logger.debug("Configuration:\n%s", config.dumps())

    replay = TrackingReplay(config)
    if not replay.run(args.measurement_file, args.output):
        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
