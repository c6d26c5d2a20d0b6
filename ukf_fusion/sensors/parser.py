"""
Parsing of recorded lidar/radar measurement logs.
"""

import logging
from typing import Iterator, Optional, Tuple

from .measurement import MeasurementSample, SensorType, GroundTruth

logger = logging.getLogger(__name__)

ParsedRecord = Tuple[MeasurementSample, Optional[GroundTruth]]

class MeasurementLogParser:
    """
    Parser for whitespace separated measurement logs.

    Supported lines:
    - L px py timestamp [gt_px gt_py gt_vx gt_vy]
    - R rho phi rho_dot timestamp [gt_px gt_py gt_vx gt_vy]

    Blank lines and lines starting with '#' are ignored. Malformed lines
    are counted and skipped.
    """

    GROUND_TRUTH_FIELDS = 4

    def __init__(self):
        self.line_count = 0
        self.lidar_count = 0
        self.radar_count = 0
        self.parse_errors = 0

    def parse_line(self, line: str) -> Optional[ParsedRecord]:
        """
        Parse one log line.

        Args:
            line: Raw log line

        Returns:
            (sample, ground_truth) or None for blank, comment and invalid lines
        """
        line = line.strip()
        if not line or line.startswith('#'):
            return None

        self.line_count += 1
        fields = line.split()

        try:
            sensor_type = SensorType(fields[0].upper())
        except ValueError:
            return self._reject(line, f"unknown sensor '{fields[0]}'")

        n_meas = sensor_type.measurement_dim
        n_required = 1 + n_meas + 1
        if len(fields) not in (n_required, n_required + self.GROUND_TRUTH_FIELDS):
            return self._reject(line, f"expected {n_required} or "
                                      f"{n_required + self.GROUND_TRUTH_FIELDS} fields, got {len(fields)}")

        try:
            raw = [float(value) for value in fields[1:1 + n_meas]]
            timestamp_us = int(fields[1 + n_meas])
            sample = MeasurementSample(sensor_type, timestamp_us, raw)

            ground_truth = None
            if len(fields) > n_required:
                ground_truth = GroundTruth(*(float(value) for value in fields[n_required:]))
        except ValueError as e:
            return self._reject(line, str(e))

        if sample.is_lidar:
            self.lidar_count += 1
        else:
            self.radar_count += 1

        return sample, ground_truth

    def parse_file(self, path: str) -> Iterator[ParsedRecord]:
        """
        Parse every valid record of a log file.

        Args:
            path: Path to the measurement log

        Yields:
            (sample, ground_truth) tuples in file order
        """
        with open(path, 'r') as f:
            for line in f:
                record = self.parse_line(line)
                if record is not None:
                    yield record

    def _reject(self, line: str, reason: str) -> None:
        self.parse_errors += 1
        logger.warning("Skipping malformed measurement line %r: %s", line, reason)
        return None

    def get_statistics(self) -> dict:
        """Get parser statistics."""
        return {
            'lines': self.line_count,
            'lidar_samples': self.lidar_count,
            'radar_samples': self.radar_count,
            'parse_errors': self.parse_errors
        }
