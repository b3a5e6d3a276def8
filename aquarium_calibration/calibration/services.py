from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import voluptuous as vol

from ..const import (
    EVENT_CALIBRATION_FAILED,
    EVENT_CALIBRATION_SUBMITTED,
    SENSOR_DO,
    SENSOR_PH,
    SENSOR_TDS,
)
from ..exceptions import CalibrationError, SubmissionInProgressError
from ..readings import SensorReading, readings_from_device
from ..validators import validate_payload
from .dissolved_oxygen import DOCalibrationSession
from .ph import PHCalibrationSession
from .session import CalibrationSession
from .tds import TDSCalibrationSession

_LOGGER = logging.getLogger(__name__)

SESSION_TYPES: dict[str, type[CalibrationSession]] = {
    SENSOR_PH: PHCalibrationSession,
    SENSOR_TDS: TDSCalibrationSession,
    SENSOR_DO: DOCalibrationSession,
}

Listener = Callable[[str, dict[str, Any]], None]


class SubmissionAdapter(Protocol):
    async def submit_calibration(self, device_id: str, payload: Mapping[str, Any]) -> Any: ...


class CalibrationService:
    """Open calibration workflows and deliver their results.

    At most one workflow is open per device and sensor. A workflow has at most
    one submission in flight; a failed submission leaves it untouched so the
    operator can retry, a successful one closes it.
    """

    def __init__(self, adapter: SubmissionAdapter) -> None:
        self._adapter = adapter
        self._sessions: dict[str, CalibrationSession] = {}
        self._in_flight: set[str] = set()
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def _fire(self, event: str, data: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, data)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Calibration listener failed for %s", event)

    def open_session(
        self,
        device_id: str,
        sensor_type: str,
        reading: SensorReading | None = None,
        **kwargs: Any,
    ) -> CalibrationSession:
        """Start a workflow, discarding any open one for the same sensor."""
        try:
            session_cls = SESSION_TYPES[sensor_type]
        except KeyError as err:
            raise CalibrationError(f"unknown sensor type {sensor_type}") from err
        for existing in self.sessions_for_device(device_id):
            if existing.sensor_type == sensor_type:
                self.close_session(existing.session_id)
        session = session_cls(device_id=device_id, **kwargs)
        if reading is not None:
            session.update_reading(reading)
        self._sessions[session.session_id] = session
        _LOGGER.info("Started %s calibration %s for %s", sensor_type, session.session_id, device_id)
        return session

    def get_session(self, session_id: str) -> CalibrationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise CalibrationError(f"unknown session {session_id}")
        return session

    def sessions_for_device(self, device_id: str) -> list[CalibrationSession]:
        return [s for s in self._sessions.values() if s.device_id == device_id]

    def close_session(self, session_id: str) -> bool:
        if session_id in self._in_flight:
            raise SubmissionInProgressError(f"session {session_id} is submitting")
        session = self._sessions.pop(session_id, None)
        if session is not None:
            _LOGGER.info("Closed calibration %s", session_id)
        return session is not None

    def update_reading(self, device_id: str, reading: SensorReading) -> None:
        """Push a live snapshot to every open workflow of ``device_id``."""
        for session in self.sessions_for_device(device_id):
            session.update_reading(reading)

    def update_from_device(self, device: Mapping[str, Any]) -> None:
        """Route a device record from the live feed to its open workflows."""
        device_id = device.get("device_id") or device.get("id")
        for session in self.sessions_for_device(str(device_id)):
            session.update_reading(readings_from_device(device, session.sensor_type))

    def is_submitting(self, session_id: str) -> bool:
        return session_id in self._in_flight

    async def async_submit(self, session_id: str) -> dict[str, Any]:
        """Send the session's payload; return it once the backend accepted it."""
        session = self.get_session(session_id)
        if session_id in self._in_flight:
            raise SubmissionInProgressError(f"session {session_id} is already submitting")
        payload = session.build_payload()
        if payload is None:
            raise CalibrationError(f"{session.sensor_type} calibration {session_id} is not ready")
        try:
            data = validate_payload(payload.to_json())
        except vol.Invalid as err:
            raise CalibrationError(f"invalid {session.sensor_type} payload: {err}") from err

        self._in_flight.add(session_id)
        try:
            await self._adapter.submit_calibration(session.device_id, data)
        except Exception as err:
            _LOGGER.warning(
                "Calibration %s for %s failed: %s", session_id, session.device_id, err
            )
            self._fire(
                EVENT_CALIBRATION_FAILED,
                {"session_id": session_id, "device_id": session.device_id, "error": str(err)},
            )
            raise
        finally:
            self._in_flight.discard(session_id)

        self._sessions.pop(session_id, None)
        _LOGGER.info(
            "Submitted %s calibration for %s: %s",
            session.sensor_type,
            session.device_id,
            data["calibration_data"],
        )
        self._fire(
            EVENT_CALIBRATION_SUBMITTED,
            {"session_id": session_id, "device_id": session.device_id, "payload": data},
        )
        return data
