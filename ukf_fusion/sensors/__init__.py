"""
Sensor measurement types and log parsing.
"""

from .measurement import SensorType, MeasurementSample, GroundTruth
from .parser import MeasurementLogParser

__all__ = ["SensorType", "MeasurementSample", "GroundTruth", "MeasurementLogParser"]
