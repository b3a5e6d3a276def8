"""Errors raised by the calibration engine."""

from __future__ import annotations


class CalibrationError(Exception):
    """Base error for calibration failures."""


class DegenerateFitError(CalibrationError):
    """Raised when a regression cannot be computed from the given points."""


class SubmissionError(CalibrationError):
    """Raised when the backend rejects or cannot receive a payload."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SubmissionInProgressError(CalibrationError):
    """Raised when a session already has a submission in flight."""
