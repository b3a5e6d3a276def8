import pytest
import voluptuous as vol

from aquarium_calibration.validators import validate_payload, validate_thresholds


def test_valid_payloads():
    assert validate_payload({"sensor_type": "ph", "calibration_data": {"m": -21.9, "c": 7.9}})
    single = {"ref": 8.2, "v": 1234.5, "t": 24.5, "calibrated": True}
    assert validate_payload({"sensor_type": "do", "calibration_data": single})["calibration_data"] == single
    double = {"ref": 8.2, "v1": 1200.0, "t1": 22.0, "v2": 1050.0, "t2": 28.0, "calibrated": True}
    assert validate_payload({"sensor_type": "do", "calibration_data": double})


@pytest.mark.parametrize(
    "payload",
    [
        {"sensor_type": "orp", "calibration_data": {}},
        {"sensor_type": "ph", "calibration_data": {"m": float("nan"), "c": 1.0}},
        {"sensor_type": "ph", "calibration_data": {"m": 1.0}},
        {"sensor_type": "tds", "calibration_data": {"v": 0.0, "std": 500, "t": 25}},
        {"sensor_type": "do", "calibration_data": {"ref": 8.2, "v": 1.0, "t": 25.0}},
    ],
)
def test_invalid_payloads(payload):
    with pytest.raises(vol.Invalid):
        validate_payload(payload)


def test_thresholds_schema():
    assert validate_thresholds({"ph_min": "6.5"}) == {"ph_min": 6.5}
    with pytest.raises(vol.Invalid):
        validate_thresholds({"orp_min": 1})
