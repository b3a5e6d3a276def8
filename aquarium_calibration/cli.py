"""Command line access to the calibration models.

Usage::

    aquarium-calibration ph-fit --point 4.01:0.180 --point 6.86:0.050
    aquarium-calibration tds --voltage 1.2 --temperature 26 --standard 500
    aquarium-calibration do --voltage-mv 1200 --temperature 24 --mode single --point1 1.25:25
    aquarium-calibration saturation --temperature 21.5
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any

from .calibration.dissolved_oxygen import (
    MODES,
    calibrated_do,
    saturation_from_table,
    saturation_polynomial,
    uncalibrated_do,
)
from .calibration.fit import assess_fit
from .calibration.ph import build_ph_payload
from .calibration.schema import CalibrationPoint
from .calibration.tds import build_tds_payload, compute_tds
from .const import MODE_SINGLE

_LOGGER = logging.getLogger(__name__)


def _pair(text: str) -> tuple[float, float]:
    try:
        first, second = text.split(":", 1)
        return float(first), float(second)
    except ValueError as err:
        raise argparse.ArgumentTypeError(f"expected A:B numbers, got {text!r}") from err


def _cmd_ph_fit(args: argparse.Namespace) -> dict[str, Any]:
    points = [CalibrationPoint(reference_value=ref, measured_voltage=v) for ref, v in args.point]
    result = assess_fit(points)
    if result is None:
        return {"fit": None, "error": "fit unavailable: need two points with distinct voltages"}
    model, quality = result
    return {
        "slope": model.slope,
        "intercept": model.intercept,
        "r_squared": quality.r_squared,
        "rmse": quality.rmse,
        "quality": quality.band,
        "payload": build_ph_payload(model).to_json(),
    }


def _cmd_tds(args: argparse.Namespace) -> dict[str, Any]:
    comp = compute_tds(args.voltage, args.temperature, args.standard)
    out: dict[str, Any] = asdict(comp)
    out["calibrated_value"] = comp.calibrated_value
    if args.standard:
        out["payload"] = build_tds_payload(args.voltage, args.standard, args.temperature).to_json()
    return out


def _dopoint(pair: tuple[float, float] | None) -> CalibrationPoint | None:
    if pair is None:
        return None
    voltage, temperature = pair
    return CalibrationPoint(
        reference_value=saturation_from_table(temperature) / 1000.0,
        measured_voltage=voltage,
        temperature=temperature,
    )


def _cmd_do(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "uncalibrated": uncalibrated_do(args.voltage_mv),
        "calibrated": calibrated_do(
            args.voltage_mv, args.temperature, args.mode, _dopoint(args.point1), _dopoint(args.point2)
        ),
        "saturation_table": saturation_from_table(args.temperature),
        "saturation_polynomial": saturation_polynomial(args.temperature),
    }


def _cmd_saturation(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "table": saturation_from_table(args.temperature),
        "polynomial": saturation_polynomial(args.temperature),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Aquarium sensor calibration models")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    ph = sub.add_parser("ph-fit", help="Fit pH = m*V + c through buffer points")
    ph.add_argument("--point", type=_pair, action="append", required=True, help="PH:VOLTAGE")
    ph.set_defaults(func=_cmd_ph_fit)

    tds = sub.add_parser("tds", help="Temperature compensated TDS estimate")
    tds.add_argument("--voltage", type=float, required=True)
    tds.add_argument("--temperature", type=float, required=True)
    tds.add_argument("--standard", type=float, default=None, help="Reference solution in ppm")
    tds.set_defaults(func=_cmd_tds)

    do = sub.add_parser("do", help="Dissolved oxygen from probe voltage")
    do.add_argument("--voltage-mv", type=float, required=True)
    do.add_argument("--temperature", type=float, required=True)
    do.add_argument("--mode", choices=MODES, default=MODE_SINGLE)
    do.add_argument("--point1", type=_pair, default=None, help="VOLTAGE_V:TEMP_C")
    do.add_argument("--point2", type=_pair, default=None, help="VOLTAGE_V:TEMP_C")
    do.set_defaults(func=_cmd_do)

    sat = sub.add_parser("saturation", help="Saturated DO for a temperature")
    sat.add_argument("--temperature", type=float, required=True)
    sat.set_defaults(func=_cmd_saturation)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))
    result = args.func(args)
    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
