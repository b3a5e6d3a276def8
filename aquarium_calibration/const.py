"""Constants for the aquarium calibration engine."""

from __future__ import annotations

from types import MappingProxyType
from typing import Final

SENSOR_PH: Final = "ph"
SENSOR_TDS: Final = "tds"
SENSOR_DO: Final = "do"
SENSOR_TYPES: Final = (SENSOR_PH, SENSOR_TDS, SENSOR_DO)

MODE_SINGLE: Final = "single"
MODE_DOUBLE: Final = "double"

# pH buffer solutions offered to the operator, plus free entry.
PH_BUFFERS: Final = ("4.01", "6.86", "9.18")
PH_CUSTOM: Final = "custom"
PH_DUPLICATE_TOLERANCE: Final = 0.01
PH_MIN_POINTS: Final = 2

# R² cutpoints for calibration quality.
R2_EXCELLENT: Final = 0.99
R2_GOOD: Final = 0.95

QUALITY_EXCELLENT: Final = "excellent"
QUALITY_GOOD: Final = "good"
QUALITY_POOR: Final = "poor"

# TDS reference solutions in ppm.
TDS_STANDARDS: Final = (342.0, 500.0, 1000.0)
TDS_CUSTOM: Final = "custom"
TDS_REFERENCE_TEMP_C: Final = 25.0
TDS_TEMP_COEFFICIENT: Final = 0.02
TDS_CURVE: Final = (133.42, -255.86, 857.39)
TDS_CURVE_SCALE: Final = 0.5
TDS_MAX_PPM: Final = 1000.0

# Dissolved oxygen saturation in µg/L for 0..40 °C at sea level.
DO_SATURATION_TABLE: Final = (
    14460, 14220, 13820, 13440, 13090, 12740, 12420, 12110, 11810, 11530,
    11260, 11010, 10770, 10530, 10300, 10080, 9860, 9660, 9460, 9270,
    9080, 8900, 8730, 8570, 8410, 8250, 8110, 7960, 7820, 7690,
    7560, 7430, 7300, 7180, 7070, 6950, 6840, 6730, 6630, 6530,
    6410,
)
DO_TABLE_MAX_INDEX: Final = len(DO_SATURATION_TABLE) - 1
DO_SATURATION_POLY: Final = (14.652, -0.41022, 0.007991, -0.000077774)
DO_UNCALIBRATED_FACTOR: Final = 6.5
DO_MAX_MG_L: Final = 20.0

# Default alert thresholds suggested to operators.
RECOMMENDED_THRESHOLDS: Final = MappingProxyType(
    {
        "ph": (6.5, 8.5),
        "tds": (50.0, 500.0),
        "do": (5.0, 15.0),
        "temp": (20.0, 30.0),
    }
)
THRESHOLD_SENSORS: Final = tuple(RECOMMENDED_THRESHOLDS)

# A device counts as online when it reported within this window.
ONLINE_WINDOW_SECONDS: Final = 5 * 60

DEFAULT_API_URL: Final = "http://localhost:3000/api"
DEFAULT_TIMEOUT: Final = 15.0
DEFAULT_MAX_RETRIES: Final = 3
RETRYABLE_STATUS: Final = (429, 500, 502, 503, 504)

EVENT_CALIBRATION_SUBMITTED: Final = "calibration_submitted"
EVENT_CALIBRATION_FAILED: Final = "calibration_failed"
