import pytest

from aquarium_calibration.calibration import dissolved_oxygen as do
from aquarium_calibration.calibration.dissolved_oxygen import (
    CapturePoint,
    DOCalibrationSession,
    DOState,
    Reset,
    SetMode,
    transition,
)
from aquarium_calibration.calibration.schema import CalibrationPoint
from aquarium_calibration.readings import SensorReading

ONLINE = SensorReading(voltage=1.25, temperature=25.0, connected=True)
OFFLINE = SensorReading(voltage=1.25, temperature=25.0, connected=False)


def _point(voltage, temperature):
    return CalibrationPoint(reference_value=0.0, measured_voltage=voltage, temperature=temperature)


def test_table_lookup_clamps():
    assert do.saturation_from_table(-5) == do.saturation_from_table(0) == 14460
    assert do.saturation_from_table(99) == do.saturation_from_table(40) == 6410
    assert do.saturation_from_table(25.9) == 8250


def test_polynomial_and_uncalibrated():
    assert do.saturation_polynomial(0) == pytest.approx(14.652)
    assert do.saturation_polynomial(25) == pytest.approx(8.1757, abs=1e-3)
    assert do.uncalibrated_do(1000) == 6.5


def test_two_point_interpolation_is_exact():
    p1, p2 = _point(7.0, 20.0), _point(8.0, 30.0)
    assert do.saturation_voltage(1000, 25.0, "double", p1, p2) == 7.5


def test_double_mode_with_equal_temperatures_falls_back():
    p1, p2 = _point(1.0, 25.0), _point(1.2, 25.0)
    assert do.saturation_voltage(900, 25.0, "double", p1, p2) == 0.9


def test_single_point_value():
    assert do.calibrated_do(1.0, 25.0, "single", _point(1.0, 25.0)) == pytest.approx(8.25)


def test_uncalibrated_fallback_saturates():
    # live reading as its own reference returns the table value, capped at 20
    assert do.calibrated_do(1200, 25.0, "single") == 20.0


def test_non_positive_saturation_voltage_gives_zero():
    assert do.calibrated_do(100, 25.0, "single", _point(0.0, 25.0)) == 0.0
    assert do.calibrated_do(-100, 25.0, "double") == 0.0


@pytest.mark.parametrize("voltage_mv", [-500.0, -1.0, 0.5, 3.0, 5000.0])
def test_result_is_clamped(voltage_mv):
    value = do.calibrated_do(voltage_mv, 22.0, "single", _point(1.0, 22.0))
    assert 0.0 <= value <= 20.0


def test_can_calibrate():
    assert do.can_calibrate(1.0, 25.0, True)
    assert not do.can_calibrate(0.0, 25.0, True)
    assert not do.can_calibrate(1.0, 0.0, True)
    assert not do.can_calibrate(1.0, 25.0, False)


def test_capture_refused_when_not_ready():
    state = DOState(mode="double")
    assert transition(state, CapturePoint(OFFLINE)) is state
    assert transition(state, CapturePoint(SensorReading(connected=True))) is state


def test_two_point_sequence():
    state = DOState(mode="double")
    state = transition(state, CapturePoint(ONLINE))
    assert do.phase(state) == "awaiting_point2"
    assert state.step == 2
    assert state.point1.measured_voltage == 1.25
    assert state.point1.reference_value == pytest.approx(8.25)

    second = SensorReading(voltage=1.1, temperature=30.0, connected=True)
    state = transition(state, CapturePoint(second))
    assert do.phase(state) == "both_captured"
    assert state.point2.temperature == 30.0

    assert transition(state, CapturePoint(ONLINE)) is state

    state = transition(state, Reset())
    assert state == DOState(mode="double")


def test_transition_does_not_mutate():
    start = DOState(mode="double")
    transition(start, CapturePoint(ONLINE))
    assert start.point1 is None
    assert start.step == 1


def test_single_mode_capture_keeps_step():
    state = transition(DOState(), CapturePoint(ONLINE))
    assert state.step == 1
    assert do.phase(state) == "point_captured"
    recaptured = transition(state, CapturePoint(SensorReading(voltage=1.3, temperature=24.0, connected=True)))
    assert recaptured.point1.measured_voltage == 1.3


def test_mode_switch_resets():
    state = DOState(mode="double")
    state = transition(state, CapturePoint(ONLINE))
    state = transition(state, CapturePoint(ONLINE))
    state = transition(state, SetMode("single"))
    assert state == DOState(mode="single")
    state = transition(state, SetMode("double"))
    assert state == DOState(mode="double")
    assert do.phase(state) == "awaiting_point1"
    assert transition(state, SetMode("double")) is state
    with pytest.raises(ValueError):
        transition(state, SetMode("triple"))


def test_session_single_payload():
    session = DOCalibrationSession(device_id="dev-1")
    session.update_reading(OFFLINE)
    assert not session.capture_point()
    assert session.build_payload() is None

    session.update_reading(SensorReading(voltage=1.23456, temperature=24.5, connected=True))
    assert session.capture_point()
    payload = session.build_payload().to_json()
    assert payload["sensor_type"] == "do"
    data = payload["calibration_data"]
    assert data["ref"] == pytest.approx(do.saturation_polynomial(24.5))
    assert data["v"] == 1234.56
    assert data["t"] == 24.5
    assert data["calibrated"] is True
    assert set(data) == {"ref", "v", "t", "calibrated"}


def test_single_payload_uses_one_snapshot_after_temperature_change():
    session = DOCalibrationSession(device_id="dev-1")
    session.update_reading(SensorReading(voltage=1.2, temperature=20.0, connected=True))
    assert session.capture_point()
    session.update_reading(SensorReading(voltage=1.1, temperature=28.0, connected=True))

    data = session.build_payload().calibration_data
    assert data["t"] == 28.0
    assert data["v"] == 1100.0
    assert data["ref"] == pytest.approx(do.saturation_polynomial(data["t"]))


def test_single_payload_requires_live_reading():
    session = DOCalibrationSession(device_id="dev-1")
    session.update_reading(SensorReading(voltage=1.2, temperature=20.0, connected=True))
    assert session.capture_point()
    assert session.can_submit

    session.update_reading(SensorReading(voltage=0.0, temperature=0.0, connected=False))
    assert session.point1 is not None
    assert session.build_payload() is None
    assert not session.can_submit


def test_session_double_payload():
    session = DOCalibrationSession(device_id="dev-1")
    session.set_mode("double")
    session.update_reading(SensorReading(voltage=1.2, temperature=22.0, connected=True))
    session.capture_point()
    assert not session.can_submit
    session.update_reading(SensorReading(voltage=1.05, temperature=28.0, connected=True))
    session.capture_point()
    assert session.can_submit
    data = session.build_payload().calibration_data
    assert data == {
        "ref": pytest.approx(do.saturation_polynomial(28.0)),
        "v1": 1200.0,
        "t1": 22.0,
        "v2": 1050.0,
        "t2": 28.0,
        "calibrated": True,
    }


def test_session_readings():
    session = DOCalibrationSession(device_id="dev-1")
    session.update_reading(SensorReading(voltage=1.0, temperature=25.0, connected=True))
    assert session.uncalibrated_value == pytest.approx(6.5)
    assert session.saturation == pytest.approx(do.saturation_polynomial(25.0))
    assert session.can_capture
    assert session.calibrated_value == 20.0
    session.capture_point()
    assert session.point1.measured_voltage == 1.0
    assert session.calibrated_value == 20.0
    session.update_reading(SensorReading(voltage=0.0005, temperature=25.0, connected=True))
    assert session.calibrated_value == pytest.approx(4.125)
