"""Dissolved oxygen calibration.

Conversion is table driven: the live probe voltage is scaled against the
voltage observed at air saturation (``v_sat``) and the saturation
concentration for the current water temperature. Single-point calibration
takes ``v_sat`` from one captured point; two-point calibration interpolates
it linearly over temperature between two captured points.

The capture workflow is expressed as a pure :func:`transition` over a frozen
:class:`DOState`; :class:`DOCalibrationSession` only holds the current state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace

from ..const import (
    DO_MAX_MG_L,
    DO_SATURATION_POLY,
    DO_SATURATION_TABLE,
    DO_TABLE_MAX_INDEX,
    DO_UNCALIBRATED_FACTOR,
    MODE_DOUBLE,
    MODE_SINGLE,
    SENSOR_DO,
)
from ..readings import SensorReading
from .schema import CalibrationPayload, CalibrationPoint
from .session import CalibrationSession, now_iso

_LOGGER = logging.getLogger(__name__)

MODES = (MODE_SINGLE, MODE_DOUBLE)

PHASE_AWAITING_POINT1 = "awaiting_point1"
PHASE_AWAITING_POINT2 = "awaiting_point2"
PHASE_BOTH_CAPTURED = "both_captured"
PHASE_POINT_CAPTURED = "point_captured"


def saturation_from_table(temperature_c: float) -> int:
    """Return table saturation (µg/L) for the whole degree, clamped to 0..40 °C."""
    idx = max(0, min(DO_TABLE_MAX_INDEX, math.floor(temperature_c)))
    return DO_SATURATION_TABLE[idx]


def saturation_polynomial(temperature_c: float) -> float:
    """Return the cubic approximation of saturated DO in mg/L."""
    a, b, c, d = DO_SATURATION_POLY
    t = temperature_c
    return a + b * t + c * t**2 + d * t**3


def uncalibrated_do(voltage_mv: float) -> float:
    return (voltage_mv * DO_UNCALIBRATED_FACTOR) / 1000.0


def saturation_voltage(
    voltage_mv: float,
    temperature_c: float,
    mode: str,
    point1: CalibrationPoint | None = None,
    point2: CalibrationPoint | None = None,
) -> float:
    """Return the air-saturation voltage (V) used to scale the live reading.

    Without a usable calibration the live reading stands in for itself, which
    degrades to a table lookup rather than a calibrated value.
    """
    if (
        mode == MODE_DOUBLE
        and point1 is not None
        and point2 is not None
        and point1.temperature != point2.temperature
    ):
        t1 = point1.temperature or 0.0
        t2 = point2.temperature or 0.0
        v1 = point1.measured_voltage
        v2 = point2.measured_voltage
        return v1 + ((temperature_c - t1) * (v2 - v1)) / (t2 - t1)
    if mode == MODE_SINGLE and point1 is not None:
        return point1.measured_voltage
    return voltage_mv / 1000.0


def calibrated_do(
    voltage_mv: float,
    temperature_c: float,
    mode: str,
    point1: CalibrationPoint | None = None,
    point2: CalibrationPoint | None = None,
) -> float:
    """Return calibrated dissolved oxygen in mg/L, clamped to 0..20."""
    saturation = saturation_from_table(temperature_c)
    v_sat = saturation_voltage(voltage_mv, temperature_c, mode, point1, point2)
    if v_sat <= 0:
        return 0.0
    mg_l = (voltage_mv * saturation) / (v_sat * 1000.0)
    return max(0.0, min(DO_MAX_MG_L, mg_l))


def can_calibrate(voltage: float, temperature_c: float, connected: bool) -> bool:
    return voltage > 0 and temperature_c > 0 and bool(connected)


@dataclass(frozen=True, slots=True)
class DOState:
    mode: str = MODE_SINGLE
    step: int = 1
    point1: CalibrationPoint | None = None
    point2: CalibrationPoint | None = None


@dataclass(frozen=True, slots=True)
class CapturePoint:
    reading: SensorReading
    captured_at: str = field(default_factory=now_iso)


@dataclass(frozen=True, slots=True)
class Reset:
    pass


@dataclass(frozen=True, slots=True)
class SetMode:
    mode: str


DOEvent = CapturePoint | Reset | SetMode


def point_from_reading(reading: SensorReading, captured_at: str | None = None) -> CalibrationPoint:
    return CalibrationPoint(
        reference_value=saturation_from_table(reading.temperature) / 1000.0,
        measured_voltage=reading.voltage,
        captured_at=captured_at or now_iso(),
        temperature=reading.temperature,
    )


def transition(state: DOState, event: DOEvent) -> DOState:
    """Return the state that follows ``event``; illegal events leave it unchanged."""
    if isinstance(event, Reset):
        return DOState(mode=state.mode)
    if isinstance(event, SetMode):
        if event.mode not in MODES:
            raise ValueError(f"unknown DO calibration mode {event.mode}")
        if event.mode == state.mode:
            return state
        return DOState(mode=event.mode)
    if isinstance(event, CapturePoint):
        reading = event.reading
        if not can_calibrate(reading.voltage, reading.temperature, reading.connected):
            return state
        point = point_from_reading(reading, event.captured_at)
        if state.mode == MODE_SINGLE:
            return replace(state, point1=point)
        if state.point1 is None:
            return replace(state, point1=point, step=2)
        if state.point2 is None:
            return replace(state, point2=point)
        return state
    raise TypeError(f"unsupported event {event!r}")


def phase(state: DOState) -> str:
    if state.mode == MODE_SINGLE:
        return PHASE_POINT_CAPTURED if state.point1 is not None else PHASE_AWAITING_POINT1
    if state.point1 is None:
        return PHASE_AWAITING_POINT1
    if state.point2 is None:
        return PHASE_AWAITING_POINT2
    return PHASE_BOTH_CAPTURED


def _mv(voltage: float) -> float:
    return round(voltage * 1000.0, 2)


def build_do_payload(state: DOState, reading: SensorReading) -> CalibrationPayload | None:
    """Return the payload for a completed capture, ``None`` while incomplete.

    Single mode reports the live snapshot (``v``, ``t`` and ``ref`` from one
    reading) and needs a captured point plus a usable live reading. Double
    mode reports both captured points with ``ref`` at the live temperature.
    """
    ref = saturation_polynomial(reading.temperature)
    if state.mode == MODE_SINGLE:
        if state.point1 is None:
            return None
        if not can_calibrate(reading.voltage, reading.temperature, reading.connected):
            return None
        data = {"ref": ref, "v": _mv(reading.voltage), "t": round(reading.temperature, 2)}
    else:
        p1, p2 = state.point1, state.point2
        if p1 is None or p2 is None:
            return None
        data = {
            "ref": ref,
            "v1": _mv(p1.measured_voltage),
            "t1": round(p1.temperature or 0.0, 2),
            "v2": _mv(p2.measured_voltage),
            "t2": round(p2.temperature or 0.0, 2),
        }
    data["calibrated"] = True
    return CalibrationPayload(sensor_type=SENSOR_DO, calibration_data=data)


@dataclass
class DOCalibrationSession(CalibrationSession):
    sensor_type = SENSOR_DO

    state: DOState = field(default_factory=DOState)

    def dispatch(self, event: DOEvent) -> bool:
        """Apply ``event`` and return whether the state changed."""
        new_state = transition(self.state, event)
        changed = new_state != self.state
        if changed:
            _LOGGER.debug(
                "DO session %s: %s -> %s", self.session_id, phase(self.state), phase(new_state)
            )
        self.state = new_state
        return changed

    def capture_point(self) -> bool:
        return self.dispatch(CapturePoint(self.reading))

    def reset(self) -> None:
        self.dispatch(Reset())

    def set_mode(self, mode: str) -> None:
        self.dispatch(SetMode(mode))

    @property
    def mode(self) -> str:
        return self.state.mode

    @property
    def step(self) -> int:
        return self.state.step

    @property
    def point1(self) -> CalibrationPoint | None:
        return self.state.point1

    @property
    def point2(self) -> CalibrationPoint | None:
        return self.state.point2

    @property
    def phase(self) -> str:
        return phase(self.state)

    @property
    def can_capture(self) -> bool:
        r = self.reading
        return can_calibrate(r.voltage, r.temperature, r.connected)

    @property
    def saturation(self) -> float:
        return saturation_polynomial(self.reading.temperature)

    @property
    def uncalibrated_value(self) -> float:
        return uncalibrated_do(self.reading.voltage_mv)

    @property
    def calibrated_value(self) -> float:
        return calibrated_do(
            self.reading.voltage_mv,
            self.reading.temperature,
            self.state.mode,
            self.state.point1,
            self.state.point2,
        )

    def build_payload(self) -> CalibrationPayload | None:
        return build_do_payload(self.state, self.reading)
