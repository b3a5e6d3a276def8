import pytest

from aquarium_calibration.calibration import ph
from aquarium_calibration.calibration.ph import PHCalibrationSession
from aquarium_calibration.readings import SensorReading


def test_resolve_reference():
    assert ph.resolve_reference("6.86") == 6.86
    assert ph.resolve_reference("custom", "7.5") == 7.5
    assert ph.resolve_reference("custom", "abc") is None
    assert ph.resolve_reference("custom", "") is None
    assert ph.resolve_reference("") is None


def test_add_point_sorts_by_reference():
    points = ph.add_point((), "9.18", None, 0.02)
    points = ph.add_point(points, "4.01", None, 0.18)
    points = ph.add_point(points, "custom", "6.5", 0.07)
    assert [p.reference_value for p in points] == [4.01, 6.5, 9.18]


def test_duplicate_point_is_rejected():
    seen = []
    points = ph.add_point((), "6.86", None, 0.05)
    result = ph.add_point(points, "custom", "6.865", 0.06, on_duplicate=seen.append)
    assert result is None
    assert seen == [6.865]
    assert len(points) == 1
    assert points[0].measured_voltage == 0.05


def test_add_point_needs_selection_and_voltage():
    assert ph.add_point((), "", None, 0.1) is None
    assert ph.add_point((), "4.01", None, 0.0) is None
    assert ph.add_point((), "4.01", None, None) is None
    assert ph.add_point((), "custom", "x", 0.1) is None


def test_remove_point():
    points = ph.add_point((), "4.01", None, 0.18)
    points = ph.add_point(points, "6.86", None, 0.05)
    assert [p.reference_value for p in ph.remove_point(points, 0)] == [6.86]
    assert ph.remove_point(points, 5) == points
    assert ph.remove_point(points, -1) == points


def test_can_add_point():
    assert ph.can_add_point("4.01", 0.2, True)
    assert not ph.can_add_point("4.01", 0.2, False)
    assert not ph.can_add_point("4.01", 0, True)
    assert not ph.can_add_point("", 0.2, True)
    assert ph.can_add_point("custom", 0.2, True, "7.2")
    assert not ph.can_add_point("custom", 0.2, True, "")


def _session():
    session = PHCalibrationSession(device_id="dev-1")
    session.update_reading(SensorReading(voltage=0.180, temperature=25.0, connected=True))
    return session


def test_session_fit_and_payload():
    session = _session()
    assert session.add_point("4.01")
    assert session.build_payload() is None
    session.update_reading(SensorReading(voltage=0.050, temperature=25.0, connected=True))
    assert session.add_point("6.86")
    assert session.can_submit
    assert session.r_squared == pytest.approx(1.0)
    assert session.quality.band == "excellent"
    payload = session.build_payload().to_json()
    assert payload == {
        "sensor_type": "ph",
        "calibration_data": {"m": -21.92308, "c": 7.95615},
    }
    assert session.calibrated_ph == pytest.approx(6.86)


def test_session_duplicate_callback():
    warnings = []
    session = _session()
    session.on_duplicate = warnings.append
    assert session.add_point("4.01")
    assert not session.add_point("custom", "4.015", voltage=0.2)
    assert warnings == [4.015]
    assert len(session.points) == 1


def test_session_degenerate_fit_disables_submit():
    session = _session()
    session.add_point("4.01")
    session.add_point("9.18")
    assert session.model is None
    assert session.quality is None
    assert not session.can_submit


def test_session_remove_and_reset():
    session = _session()
    session.add_point("4.01")
    session.add_point("6.86", voltage=0.05)
    session.add_point("9.18", voltage=-0.07)
    session.remove_point(1)
    assert [p.reference_value for p in session.points] == [4.01, 9.18]
    assert session.model is not None
    session.reset()
    assert session.points == ()
    assert session.model is None
    assert session.r_squared == 0.0
