from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from ..const import QUALITY_EXCELLENT, QUALITY_GOOD, QUALITY_POOR, R2_EXCELLENT, R2_GOOD, TDS_MAX_PPM
from .session import now_iso


@dataclass(frozen=True, slots=True)
class CalibrationPoint:
    reference_value: float
    measured_voltage: float  # volts
    captured_at: str = field(default_factory=now_iso)  # ISO8601
    temperature: float | None = None  # °C, DO points only

    def __post_init__(self) -> None:
        if not math.isfinite(self.reference_value):
            raise ValueError("reference_value must be finite")
        if not math.isfinite(self.measured_voltage):
            raise ValueError("measured_voltage must be finite")
        if self.temperature is not None and not math.isfinite(self.temperature):
            raise ValueError("temperature must be finite")


@dataclass(frozen=True, slots=True)
class LinearModel:
    slope: float
    intercept: float

    def predict(self, voltage: float) -> float:
        return self.slope * voltage + self.intercept


def quality_band(r_squared: float) -> str:
    """Return ``excellent`` above 0.99, ``good`` from 0.95, otherwise ``poor``."""
    if r_squared > R2_EXCELLENT:
        return QUALITY_EXCELLENT
    if r_squared >= R2_GOOD:
        return QUALITY_GOOD
    return QUALITY_POOR


@dataclass(frozen=True, slots=True)
class FitQuality:
    r_squared: float
    rmse: float = 0.0
    n: int = 0

    @property
    def band(self) -> str:
        return quality_band(self.r_squared)

    @property
    def needs_attention(self) -> bool:
        return self.band == QUALITY_POOR


@dataclass(frozen=True, slots=True)
class TDSCompensation:
    temperature_coefficient: float
    compensated_voltage: float
    raw_estimate: float  # ppm, clamped to >= 0
    scale_constant: float  # K

    @property
    def calibrated_value(self) -> float:
        return max(0.0, min(TDS_MAX_PPM, self.raw_estimate * self.scale_constant))


@dataclass(frozen=True, slots=True)
class CalibrationPayload:
    sensor_type: str
    calibration_data: dict[str, Any]

    def to_json(self) -> dict[str, Any]:
        return {
            "sensor_type": self.sensor_type,
            "calibration_data": dict(self.calibration_data),
        }
