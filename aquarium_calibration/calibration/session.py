from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from ..readings import SensorReading

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .schema import CalibrationPayload


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class CalibrationSession:
    """State shared by every sensor calibration workflow.

    Subclasses set ``sensor_type`` and implement :meth:`build_payload`. A
    session belongs to one device and is never shared between workflows.
    """

    sensor_type: ClassVar[str] = ""

    device_id: str
    session_id: str = field(default_factory=new_session_id)
    reading: SensorReading = field(default_factory=SensorReading)
    notes: str | None = None
    started_at: str = field(default_factory=now_iso)

    def update_reading(self, reading: SensorReading) -> None:
        """Replace the live snapshot and recompute derived values."""
        self.reading = reading
        self._recompute()

    def _recompute(self) -> None:
        return None

    def build_payload(self) -> CalibrationPayload | None:
        raise NotImplementedError

    @property
    def can_submit(self) -> bool:
        return self.build_payload() is not None
