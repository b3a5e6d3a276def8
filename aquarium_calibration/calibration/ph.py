"""pH calibration: buffer points, linear fit and submission payload."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..const import PH_BUFFERS, PH_CUSTOM, PH_DUPLICATE_TOLERANCE, PH_MIN_POINTS, SENSOR_PH
from .fit import assess_fit
from .schema import CalibrationPayload, CalibrationPoint, FitQuality, LinearModel
from .session import CalibrationSession, now_iso

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "PHCalibrationSession",
    "add_point",
    "build_ph_payload",
    "can_add_point",
    "remove_point",
    "resolve_reference",
]


def resolve_reference(source: str | None, custom_value: str | float | None = None) -> float | None:
    """Return the reference pH for a buffer selection or custom entry."""
    if not source:
        return None
    raw = custom_value if source == PH_CUSTOM else source
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def is_duplicate(points: Sequence[CalibrationPoint], reference: float) -> bool:
    return any(abs(p.reference_value - reference) < PH_DUPLICATE_TOLERANCE for p in points)


def add_point(
    points: Sequence[CalibrationPoint],
    source: str | None,
    custom_value: str | float | None,
    voltage: float | None,
    *,
    captured_at: str | None = None,
    on_duplicate: Callable[[float], None] | None = None,
) -> tuple[CalibrationPoint, ...] | None:
    """Return ``points`` plus a new point sorted by reference, or ``None``.

    ``None`` means nothing was added: no selection, no voltage, an unparsable
    custom value, or a reference already present within 0.01 pH. The caller
    is told about duplicates through ``on_duplicate``.
    """
    if not source or not voltage or not math.isfinite(voltage):
        return None
    reference = resolve_reference(source, custom_value)
    if reference is None:
        return None
    if is_duplicate(points, reference):
        _LOGGER.warning("pH %.2f is already a calibration point; ignoring", reference)
        if on_duplicate is not None:
            on_duplicate(reference)
        return None
    point = CalibrationPoint(
        reference_value=reference,
        measured_voltage=float(voltage),
        captured_at=captured_at or now_iso(),
    )
    return tuple(sorted((*points, point), key=lambda p: p.reference_value))


def remove_point(points: Sequence[CalibrationPoint], index: int) -> tuple[CalibrationPoint, ...]:
    return tuple(p for i, p in enumerate(points) if i != index)


def can_add_point(
    source: str | None,
    voltage: float | None,
    connected: bool,
    custom_value: str | float | None = None,
) -> bool:
    if not source or not voltage or not connected:
        return False
    if source == PH_CUSTOM:
        return resolve_reference(source, custom_value) is not None
    return True


def build_ph_payload(model: LinearModel) -> CalibrationPayload:
    return CalibrationPayload(
        sensor_type=SENSOR_PH,
        calibration_data={
            "m": round(model.slope, 5),
            "c": round(model.intercept, 5),
        },
    )


@dataclass
class PHCalibrationSession(CalibrationSession):
    """Multi-point pH calibration against buffer solutions."""

    sensor_type = SENSOR_PH

    points: tuple[CalibrationPoint, ...] = ()
    model: LinearModel | None = field(default=None, init=False)
    quality: FitQuality | None = field(default=None, init=False)
    on_duplicate: Callable[[float], None] | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.points = tuple(sorted(self.points, key=lambda p: p.reference_value))
        self._recompute()

    @property
    def buffers(self) -> tuple[str, ...]:
        return PH_BUFFERS

    def _recompute(self) -> None:
        result = assess_fit(self.points)
        if result is None:
            if len(self.points) >= PH_MIN_POINTS:
                _LOGGER.warning(
                    "pH fit unavailable for device %s: all %d points share one voltage",
                    self.device_id,
                    len(self.points),
                )
            self.model, self.quality = None, None
            return
        self.model, self.quality = result
        _LOGGER.debug(
            "pH fit for %s: m=%.5f c=%.5f r2=%.4f",
            self.device_id,
            self.model.slope,
            self.model.intercept,
            self.quality.r_squared,
        )

    def can_add_point(self, source: str | None, custom_value: str | float | None = None) -> bool:
        return can_add_point(source, self.reading.voltage, self.reading.connected, custom_value)

    def add_point(
        self,
        source: str | None,
        custom_value: str | float | None = None,
        voltage: float | None = None,
    ) -> bool:
        """Capture a point at ``voltage`` (the live reading by default)."""
        if voltage is None:
            voltage = self.reading.voltage
        updated = add_point(
            self.points, source, custom_value, voltage, on_duplicate=self.on_duplicate
        )
        if updated is None:
            return False
        self.points = updated
        self._recompute()
        return True

    def remove_point(self, index: int) -> None:
        self.points = remove_point(self.points, index)
        self._recompute()

    def reset(self) -> None:
        self.points = ()
        self._recompute()

    @property
    def r_squared(self) -> float:
        return self.quality.r_squared if self.quality else 0.0

    @property
    def calibrated_ph(self) -> float | None:
        if self.model is None:
            return None
        return self.model.predict(self.reading.voltage)

    def build_payload(self) -> CalibrationPayload | None:
        if len(self.points) < PH_MIN_POINTS or self.model is None:
            return None
        return build_ph_payload(self.model)
