"""voluptuous schemas for wire payloads and configuration."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from .const import SENSOR_DO, SENSOR_PH, SENSOR_TDS, SENSOR_TYPES, THRESHOLD_SENSORS


def finite_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise vol.Invalid(f"expected a number, got {value!r}") from err
    if not math.isfinite(number):
        raise vol.Invalid(f"expected a finite number, got {value!r}")
    return number


POSITIVE_FLOAT = vol.All(finite_float, vol.Range(min=0, min_included=False))

PH_DATA_SCHEMA = vol.Schema(
    {
        vol.Required("m"): finite_float,
        vol.Required("c"): finite_float,
    }
)

TDS_DATA_SCHEMA = vol.Schema(
    {
        vol.Required("v"): POSITIVE_FLOAT,
        vol.Required("std"): POSITIVE_FLOAT,
        vol.Required("t"): POSITIVE_FLOAT,
    }
)

DO_SINGLE_SCHEMA = vol.Schema(
    {
        vol.Required("ref"): finite_float,
        vol.Required("v"): finite_float,
        vol.Required("t"): finite_float,
        vol.Required("calibrated"): True,
    }
)

DO_DOUBLE_SCHEMA = vol.Schema(
    {
        vol.Required("ref"): finite_float,
        vol.Required("v1"): finite_float,
        vol.Required("t1"): finite_float,
        vol.Required("v2"): finite_float,
        vol.Required("t2"): finite_float,
        vol.Required("calibrated"): True,
    }
)

DATA_SCHEMAS: dict[str, vol.Schema] = {
    SENSOR_PH: PH_DATA_SCHEMA,
    SENSOR_TDS: TDS_DATA_SCHEMA,
    SENSOR_DO: vol.Any(DO_SINGLE_SCHEMA, DO_DOUBLE_SCHEMA),
}

PAYLOAD_SCHEMA = vol.Schema(
    {
        vol.Required("sensor_type"): vol.In(SENSOR_TYPES),
        vol.Required("calibration_data"): dict,
    }
)

THRESHOLDS_SCHEMA = vol.Schema(
    {
        vol.Optional(f"{sensor}_{bound}"): finite_float
        for sensor in THRESHOLD_SENSORS
        for bound in ("min", "max")
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required("api_url"): vol.All(str, vol.Length(min=1)),
        vol.Optional("api_token"): vol.Any(None, str),
        vol.Required("timeout"): POSITIVE_FLOAT,
        vol.Required("max_retries"): vol.All(vol.Coerce(int), vol.Range(min=0)),
        vol.Optional("log_level"): vol.In(["DEBUG", "INFO", "WARNING", "ERROR"]),
    },
    extra=vol.ALLOW_EXTRA,
)


def validate_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Return a validated copy of a calibration payload or raise ``vol.Invalid``."""
    outer = PAYLOAD_SCHEMA(dict(payload))
    outer["calibration_data"] = DATA_SCHEMAS[outer["sensor_type"]](outer["calibration_data"])
    return outer


def validate_thresholds(payload: Mapping[str, Any]) -> dict[str, Any]:
    return THRESHOLDS_SCHEMA(dict(payload))
