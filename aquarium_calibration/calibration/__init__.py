"""Sensor calibration models and workflows."""

from __future__ import annotations

from .dissolved_oxygen import DOCalibrationSession
from .ph import PHCalibrationSession
from .schema import CalibrationPayload, CalibrationPoint, FitQuality, LinearModel, TDSCompensation
from .services import CalibrationService
from .tds import TDSCalibrationSession

__all__ = [
    "CalibrationPayload",
    "CalibrationPoint",
    "CalibrationService",
    "DOCalibrationSession",
    "FitQuality",
    "LinearModel",
    "PHCalibrationSession",
    "TDSCalibrationSession",
    "TDSCompensation",
]
