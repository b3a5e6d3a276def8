"""TDS calibration against a single reference solution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..const import (
    SENSOR_TDS,
    TDS_CURVE,
    TDS_CURVE_SCALE,
    TDS_CUSTOM,
    TDS_REFERENCE_TEMP_C,
    TDS_STANDARDS,
    TDS_TEMP_COEFFICIENT,
)
from .schema import CalibrationPayload, TDSCompensation
from .session import CalibrationSession

_LOGGER = logging.getLogger(__name__)


def compensation_coefficient(temperature_c: float) -> float:
    """Return the 2 %/°C compensation factor relative to 25 °C."""
    return 1.0 + TDS_TEMP_COEFFICIENT * (temperature_c - TDS_REFERENCE_TEMP_C)


def raw_tds(compensated_voltage: float) -> float:
    """Evaluate the cubic probe curve for a 25 °C-equivalent voltage (ppm)."""
    a, b, c = TDS_CURVE
    v = compensated_voltage
    return (a * v**3 + b * v**2 + c * v) * TDS_CURVE_SCALE


def compute_tds(
    voltage: float, temperature_c: float, reference_standard: float | None = None
) -> TDSCompensation:
    coefficient = compensation_coefficient(temperature_c)
    compensated = voltage / coefficient if coefficient != 0 else 0.0
    estimate = raw_tds(compensated)
    scale = 1.0
    if reference_standard and estimate > 0:
        scale = reference_standard / estimate
    return TDSCompensation(
        temperature_coefficient=coefficient,
        compensated_voltage=compensated,
        raw_estimate=max(0.0, estimate),
        scale_constant=scale,
    )


def resolve_standard(selection: str | float | None, custom_value: str | float | None = None) -> float:
    """Return the chosen standard in ppm, 0.0 when nothing usable is selected."""
    raw = custom_value if selection == TDS_CUSTOM else selection
    if raw is None or raw == "":
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def build_tds_payload(voltage: float, standard: float, temperature_c: float) -> CalibrationPayload:
    return CalibrationPayload(
        sensor_type=SENSOR_TDS,
        calibration_data={
            "v": round(voltage, 4),
            "std": round(standard, 2),
            "t": round(temperature_c, 2),
        },
    )


@dataclass
class TDSCalibrationSession(CalibrationSession):
    sensor_type = SENSOR_TDS

    selection: str | float | None = None
    custom_value: str | float | None = None
    compensation: TDSCompensation | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._recompute()

    @property
    def standards(self) -> tuple[float, ...]:
        return TDS_STANDARDS

    @property
    def reference_standard(self) -> float:
        return resolve_standard(self.selection, self.custom_value)

    def select_standard(self, selection: str | float | None, custom_value: str | float | None = None) -> None:
        self.selection = selection
        self.custom_value = custom_value if selection == TDS_CUSTOM else None
        self._recompute()

    def _recompute(self) -> None:
        standard = self.reference_standard
        reading = self.reading
        if reading.voltage > 0 and reading.temperature > 0 and standard > 0:
            self.compensation = compute_tds(reading.voltage, reading.temperature, standard)
            _LOGGER.debug(
                "TDS for %s: coeff=%.4f raw=%.2f K=%.4f",
                self.device_id,
                self.compensation.temperature_coefficient,
                self.compensation.raw_estimate,
                self.compensation.scale_constant,
            )
        else:
            self.compensation = None

    @property
    def can_calibrate(self) -> bool:
        reading = self.reading
        return (
            self.reference_standard > 0
            and reading.voltage > 0
            and reading.temperature > 0
            and reading.connected
        )

    def build_payload(self) -> CalibrationPayload | None:
        if not self.can_calibrate:
            return None
        return build_tds_payload(self.reading.voltage, self.reference_standard, self.reading.temperature)
