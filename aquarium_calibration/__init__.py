"""Calibration engine for aquarium water-quality sensors (pH, TDS, DO)."""

from __future__ import annotations

from .calibration.dissolved_oxygen import DOCalibrationSession
from .calibration.ph import PHCalibrationSession
from .calibration.tds import TDSCalibrationSession
from .readings import SensorReading

__all__ = [
    "DOCalibrationSession",
    "PHCalibrationSession",
    "SensorReading",
    "TDSCalibrationSession",
]

__version__ = "0.4.0"
