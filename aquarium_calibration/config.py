"""Loading and saving engine settings."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import voluptuous as vol

from .const import DEFAULT_API_URL, DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from .validators import CONFIG_SCHEMA

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE = "aquarium_calibration.json"

DEFAULTS: dict[str, Any] = {
    "api_url": DEFAULT_API_URL,
    "api_token": None,
    "timeout": DEFAULT_TIMEOUT,
    "max_retries": DEFAULT_MAX_RETRIES,
    "log_level": "INFO",
}

ENV_OVERRIDES: dict[str, str] = {
    "AQUARIUM_API_URL": "api_url",
    "AQUARIUM_API_TOKEN": "api_token",
    "AQUARIUM_API_TIMEOUT": "timeout",
}


def _load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_config(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Return settings from ``path`` merged over :data:`DEFAULTS`.

    Environment variables in :data:`ENV_OVERRIDES` take precedence over the
    file. A missing or unreadable file falls back to the defaults.
    """
    merged = dict(DEFAULTS)
    if path is not None:
        p = Path(path)
        try:
            stored = _load_json(p)
        except FileNotFoundError:
            _LOGGER.debug("Config file %s not found; using defaults", p)
            stored = {}
        except (OSError, json.JSONDecodeError) as err:
            _LOGGER.warning("Could not read config %s: %s", p, err)
            stored = {}
        if isinstance(stored, dict):
            merged.update(stored)
        else:
            _LOGGER.warning("Ignoring config %s: expected an object", p)
    env = os.environ if env is None else env
    for var, key in ENV_OVERRIDES.items():
        if env.get(var):
            merged[key] = env[var]
    try:
        return CONFIG_SCHEMA(merged)
    except vol.Invalid as err:
        raise ValueError(f"invalid configuration: {err}") from err


def save_config(cfg: Mapping[str, Any], path: str | Path) -> None:
    p = Path(path)
    data = CONFIG_SCHEMA(dict(cfg))
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2)
