import logging

from aquarium_calibration.utils.logging import reset_warnings, warn_once


def test_warn_once_rate_limits(caplog):
    reset_warnings()
    logger = logging.getLogger("aquarium_calibration.test")
    with caplog.at_level(logging.WARNING):
        warn_once(logger, "net", "first")
        warn_once(logger, "net", "second")
        warn_once(logger, "other", "third")
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert messages == ["net: first", "other: third"]


def test_warn_once_reports_suppressed_repeats(caplog, monkeypatch):
    ticks = [0.0, 10.0, 20.0, 100.0]
    monkeypatch.setattr(
        "aquarium_calibration.utils.logging.time.monotonic",
        lambda: ticks.pop(0) if ticks else 100.0,
    )
    logger = logging.getLogger("aquarium_calibration.test")
    with caplog.at_level(logging.WARNING):
        for attempt in range(4):
            warn_once(logger, "calibration_api", f"attempt {attempt}")
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert messages == [
        "calibration_api: attempt 0",
        "calibration_api: attempt 3 (2 similar suppressed)",
    ]
