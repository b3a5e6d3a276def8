from __future__ import annotations

import logging
import time

_LAST: dict[str, float] = {}
_SUPPRESSED: dict[str, int] = {}
_MAX_CODES = 256


def warn_once(logger: logging.Logger, code: str, message: str, window: int = 60) -> None:
    """Warn about ``code`` at most once per ``window`` seconds.

    Repeats inside the window go to debug and are counted; the next warning
    for the code reports how many were held back.
    """
    now = time.monotonic()
    last = _LAST.get(code)
    if last is not None and now - last <= window:
        _SUPPRESSED[code] = _SUPPRESSED.get(code, 0) + 1
        logger.debug("%s: %s", code, message)
        return
    if code not in _LAST and len(_LAST) >= _MAX_CODES:
        stalest = min(_LAST, key=_LAST.get)
        del _LAST[stalest]
        _SUPPRESSED.pop(stalest, None)
    _LAST[code] = now
    held = _SUPPRESSED.pop(code, 0)
    if held:
        logger.warning("%s: %s (%d similar suppressed)", code, message, held)
    else:
        logger.warning("%s: %s", code, message)


def reset_warnings() -> None:
    """Forget every rate-limited warning code."""
    _LAST.clear()
    _SUPPRESSED.clear()
