from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from ..const import PH_MIN_POINTS
from ..exceptions import DegenerateFitError
from .schema import CalibrationPoint, FitQuality, LinearModel


def _arrays(points: Sequence[CalibrationPoint]) -> tuple[np.ndarray, np.ndarray]:
    voltage = np.array([p.measured_voltage for p in points], dtype=float)
    reference = np.array([p.reference_value for p in points], dtype=float)
    return voltage, reference


def fit_linear_model(points: Sequence[CalibrationPoint]) -> LinearModel | None:
    """Least-squares fit of ``reference = slope * voltage + intercept``.

    Returns ``None`` for fewer than two points or when every point shares the
    same voltage, since no line is defined in that case.
    """
    if len(points) < PH_MIN_POINTS:
        return None
    voltage, reference = _arrays(points)
    n = len(points)
    if np.ptp(voltage) == 0:
        return None
    sum_v = float(np.sum(voltage))
    sum_p = float(np.sum(reference))
    denom = n * float(np.sum(voltage * voltage)) - sum_v * sum_v
    if denom == 0:
        return None
    slope = (n * float(np.sum(voltage * reference)) - sum_v * sum_p) / denom
    intercept = (sum_p - slope * sum_v) / n
    if not (math.isfinite(slope) and math.isfinite(intercept)):
        return None
    return LinearModel(slope=slope, intercept=intercept)


def require_linear_model(points: Sequence[CalibrationPoint]) -> LinearModel:
    model = fit_linear_model(points)
    if model is None:
        raise DegenerateFitError(
            f"cannot fit a line through {len(points)} point(s) with these voltages"
        )
    return model


def _residuals(points: Sequence[CalibrationPoint], slope: float, intercept: float) -> tuple[np.ndarray, np.ndarray]:
    voltage, reference = _arrays(points)
    return reference, reference - (slope * voltage + intercept)


def compute_r_squared(points: Sequence[CalibrationPoint], slope: float, intercept: float) -> float:
    """Coefficient of determination of the line against ``points``.

    Not clamped: a fit worse than the mean gives a negative value. Returns 0.0
    with fewer than two points or when all reference values are identical.
    """
    if len(points) < PH_MIN_POINTS:
        return 0.0
    reference, residual = _residuals(points, slope, intercept)
    ss_res = float(np.sum(residual**2))
    ss_tot = float(np.sum((reference - np.mean(reference)) ** 2))
    return 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0


def compute_rmse(points: Sequence[CalibrationPoint], slope: float, intercept: float) -> float:
    if not points:
        return 0.0
    _, residual = _residuals(points, slope, intercept)
    return float(np.sqrt(np.sum(residual**2) / len(points)))


def assess_fit(points: Sequence[CalibrationPoint]) -> tuple[LinearModel, FitQuality] | None:
    model = fit_linear_model(points)
    if model is None:
        return None
    quality = FitQuality(
        r_squared=compute_r_squared(points, model.slope, model.intercept),
        rmse=compute_rmse(points, model.slope, model.intercept),
        n=len(points),
    )
    return model, quality
