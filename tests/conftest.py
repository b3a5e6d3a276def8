import pytest

from aquarium_calibration.readings import SensorReading
from aquarium_calibration.utils.logging import reset_warnings


@pytest.fixture(autouse=True)
def _clear_warn_once():
    reset_warnings()
    yield
    reset_warnings()


@pytest.fixture
def live_reading():
    """Connected probe sitting in a 25 °C tank."""
    return SensorReading(voltage=1.5, temperature=25.0, raw=0.0, connected=True)
