from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import aiohttp

from .const import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT, RETRYABLE_STATUS
from .exceptions import SubmissionError
from .utils.logging import warn_once

_LOGGER = logging.getLogger(__name__)


class CalibrationApi:
    """Backend client that delivers calibration and threshold payloads.

    Retries are handled here and only here: 429/5xx answers and network
    errors are retried with exponential backoff, other 4xx answers fail at
    once. Every failure surfaces as :class:`SubmissionError`.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = 1.0,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._token = (token or "").strip()
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._initial_delay = initial_delay
        self.last_status: int | None = None

    @classmethod
    def from_config(cls, session: aiohttp.ClientSession, cfg: Mapping[str, Any]) -> CalibrationApi:
        return cls(
            session,
            cfg["api_url"],
            token=cfg.get("api_token"),
            timeout=float(cfg.get("timeout", DEFAULT_TIMEOUT)),
            max_retries=int(cfg.get("max_retries", DEFAULT_MAX_RETRIES)),
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url(self, device_id: str, resource: str) -> str:
        return f"{self._base_url}/devices/{quote(str(device_id), safe='')}/{resource}"

    async def _post(self, url: str, payload: Mapping[str, Any]) -> Any:
        attempts = self._max_retries + 1
        delay = self._initial_delay
        self.last_status = None
        for attempt in range(attempts):
            try:
                async with asyncio.timeout(self._timeout):
                    async with self._session.post(url, headers=self._headers(), json=dict(payload)) as resp:
                        self.last_status = resp.status
                        if resp.status in RETRYABLE_STATUS:
                            raise aiohttp.ClientError(f"retryable status {resp.status}")
                        resp.raise_for_status()
                        if resp.status == 204:
                            return None
                        return await resp.json(content_type=None)
            except aiohttp.ClientResponseError as err:
                _LOGGER.warning("POST %s rejected with %s: %s", url, err.status, err.message)
                raise SubmissionError(f"backend rejected payload ({err.status})", status=err.status) from err
            except (TimeoutError, aiohttp.ClientError) as err:
                warn_once(_LOGGER, "calibration_api", f"POST {url} failed: {err or type(err).__name__}")
                if attempt == attempts - 1:
                    raise SubmissionError(
                        f"backend unreachable after {attempts} attempt(s)", status=self.last_status
                    ) from err
                await asyncio.sleep(delay + 0.25 * random.random())
                delay = min(delay * 2, 30)
        raise SubmissionError("backend unreachable")

    async def submit_calibration(self, device_id: str, payload: Mapping[str, Any]) -> Any:
        """POST ``payload`` to ``/devices/{device_id}/calibrations``."""
        return await self._post(self._url(device_id, "calibrations"), payload)

    async def submit_thresholds(self, device_id: str, payload: Mapping[str, Any]) -> Any:
        """POST ``payload`` to ``/devices/{device_id}/thresholds``."""
        return await self._post(self._url(device_id, "thresholds"), payload)
