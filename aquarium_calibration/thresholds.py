"""Alert threshold configuration for a device.

Thresholds are edited as a flat form of ``<sensor>_min``/``<sensor>_max``
strings; an empty string means "not set".
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import voluptuous as vol

from .const import RECOMMENDED_THRESHOLDS, THRESHOLD_SENSORS
from .exceptions import CalibrationError
from .validators import validate_thresholds

_LOGGER = logging.getLogger(__name__)

ThresholdForm = dict[str, str]


class ThresholdAdapter(Protocol):
    async def submit_thresholds(self, device_id: str, payload: Mapping[str, Any]) -> Any: ...


def _keys(sensor: str) -> tuple[str, str]:
    if sensor not in THRESHOLD_SENSORS:
        raise ValueError(f"unknown threshold sensor {sensor}")
    return f"{sensor}_min", f"{sensor}_max"


def empty_form() -> ThresholdForm:
    form: ThresholdForm = {}
    for sensor in THRESHOLD_SENSORS:
        low, high = _keys(sensor)
        form[low] = ""
        form[high] = ""
    return form


def _parse(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_pair(form: Mapping[str, Any], sensor: str) -> bool:
    """A pair is valid when both sides are empty, or both parse with min < max."""
    low_key, high_key = _keys(sensor)
    low, high = form.get(low_key, ""), form.get(high_key, "")
    if low in ("", None) and high in ("", None):
        return True
    if low in ("", None) or high in ("", None):
        return False
    low_val, high_val = _parse(low), _parse(high)
    if low_val is None or high_val is None:
        return False
    return low_val < high_val


def form_errors(form: Mapping[str, Any]) -> list[str]:
    errors = [f"{sensor}: min and max must both be set with min < max"
              for sensor in THRESHOLD_SENSORS if not validate_pair(form, sensor)]
    if not any(form.get(key) not in ("", None) for key in form):
        errors.append("at least one threshold must be set")
    return errors


def is_form_valid(form: Mapping[str, Any]) -> bool:
    return not form_errors(form)


def apply_recommended(form: Mapping[str, str], sensor: str) -> ThresholdForm:
    low_key, high_key = _keys(sensor)
    low, high = RECOMMENDED_THRESHOLDS[sensor]
    return {**form, low_key: str(low), high_key: str(high)}


def clear_sensor(form: Mapping[str, str], sensor: str) -> ThresholdForm:
    low_key, high_key = _keys(sensor)
    return {**form, low_key: "", high_key: ""}


def build_threshold_payload(form: Mapping[str, Any]) -> dict[str, float]:
    """Return the wire payload with unset fields omitted."""
    errors = form_errors(form)
    if errors:
        raise CalibrationError("; ".join(errors))
    payload = {key: value for key, value in form.items() if value not in ("", None)}
    try:
        return validate_thresholds(payload)
    except vol.Invalid as err:
        raise CalibrationError(f"invalid thresholds: {err}") from err


async def async_submit_thresholds(
    adapter: ThresholdAdapter, device_id: str, form: Mapping[str, Any]
) -> dict[str, float]:
    payload = build_threshold_payload(form)
    await adapter.submit_thresholds(device_id, payload)
    _LOGGER.info("Updated alert thresholds for %s: %s", device_id, payload)
    return payload
