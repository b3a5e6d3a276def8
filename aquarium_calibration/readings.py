"""Live telemetry snapshots consumed by the calibration sessions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .const import ONLINE_WINDOW_SECONDS, SENSOR_DO, SENSOR_PH, SENSOR_TDS

_LOGGER = logging.getLogger(__name__)

# Keys used by the device feed for each calibratable sensor.
SENSOR_DATA_KEYS: dict[str, str] = {
    SENSOR_PH: "ph",
    SENSOR_TDS: "tds",
    SENSOR_DO: "do_level",
}


@dataclass(frozen=True, slots=True)
class SensorReading:
    """Latest snapshot for one sensor of one device.

    ``voltage`` is in volts and ``temperature`` in °C. A default instance
    represents a device that has not reported yet.
    """

    voltage: float = 0.0
    temperature: float = 0.0
    raw: float = 0.0
    connected: bool = False

    @property
    def voltage_mv(self) -> float:
        return self.voltage * 1000.0


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Return an aware datetime for ``value`` or ``None`` if it cannot be parsed."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        stamp = value
    else:
        try:
            stamp = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            _LOGGER.debug("Unparseable timestamp %r", value)
            return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=UTC)
    return stamp


def is_online(last_seen: str | datetime | None, now: datetime | None = None) -> bool:
    """Return ``True`` when ``last_seen`` lies within the online window."""
    seen = parse_timestamp(last_seen)
    if seen is None:
        return False
    now = now or datetime.now(UTC)
    return (now - seen).total_seconds() < ONLINE_WINDOW_SECONDS


def device_online(device: Mapping[str, Any], now: datetime | None = None) -> bool:
    if "online" in device:
        return bool(device["online"])
    return is_online(device.get("last_seen"), now)


def is_device_ready(device: Mapping[str, Any] | None, now: datetime | None = None) -> bool:
    """Return ``True`` if the device is online and reports calibratable sensors."""
    if not device:
        return False
    data = device.get("latestSensorData") or {}
    has_sensor = any(data.get(key) for key in SENSOR_DATA_KEYS.values())
    return device_online(device, now) and has_sensor


def readings_from_device(
    device: Mapping[str, Any], sensor_type: str, now: datetime | None = None
) -> SensorReading:
    """Build a :class:`SensorReading` for ``sensor_type`` from a device record."""
    try:
        key = SENSOR_DATA_KEYS[sensor_type]
    except KeyError as err:
        raise ValueError(f"unknown sensor type {sensor_type}") from err
    data = device.get("latestSensorData") or {}
    block = data.get(key) or {}
    temperature = (data.get("temperature") or {}).get("value")
    return SensorReading(
        voltage=_as_float(block.get("voltage")),
        temperature=_as_float(temperature),
        raw=_as_float(block.get("raw")),
        connected=device_online(device, now),
    )
