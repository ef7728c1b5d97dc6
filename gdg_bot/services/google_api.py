"""Shared httpx plumbing for the Google REST APIs (Calendar v3, Sheets v4).

Every request is authorised through :class:`GoogleAuth`, bounded by
``GOOGLE_REQUEST_TIMEOUT_SECONDS`` and retried with exponential backoff on
timeouts, connection errors, ``429`` and ``5xx`` responses.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from gdg_bot.config import GOOGLE_REQUEST_TIMEOUT_SECONDS
from gdg_bot.services.cache import TTLCache
from gdg_bot.services.google_auth import GoogleAuth
from gdg_bot.services.metrics import metrics

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 1.0


class GoogleAPIError(Exception):
    """Raised when a Google API call fails (after retries, where applicable)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.status_code is not None and (
            self.status_code == 429 or self.status_code >= 500
        )


def _error_detail(response: httpx.Response) -> str:
    """Pull Google's ``error.message`` out of a JSON error body if there is one."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]


class GoogleAPIClient:
    """Base class: one ``httpx.Client`` per API, shared auth and cache."""

    service_name = "google"

    def __init__(
        self,
        base_url: str,
        *,
        auth: GoogleAuth | None = None,
        cache: TTLCache | None = None,
        timeout: float | None = None,
    ) -> None:
        self._auth = auth or GoogleAuth()
        self._cache = cache or TTLCache()
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout or GOOGLE_REQUEST_TIMEOUT_SECONDS,
        )

    def close(self) -> None:
        self._client.close()

    def _get(
        self,
        path: str,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET *path* with exponential-backoff retries.

        *operation* labels the call in logs and metrics (e.g. ``events.list``).
        """
        last_error: Exception | None = None
        for attempt in range(1, MAX_RETRIES + 1):
            headers, auth_params = self._auth.authorize()
            try:
                with metrics.timed(self.service_name, operation):
                    response = self._client.get(
                        path, params={**(params or {}), **auth_params}, headers=headers,
                    )
                    if response.status_code >= 400:
                        raise GoogleAPIError(
                            f"{self.service_name} error {response.status_code}: "
                            f"{_error_detail(response)}",
                            status_code=response.status_code,
                        )
                return response.json()

            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_error = exc
            except GoogleAPIError as exc:
                if not exc.retryable:
                    raise
                last_error = exc

            if attempt < MAX_RETRIES:
                backoff = INITIAL_BACKOFF_SECONDS * (2 ** (attempt - 1))
                logger.warning(
                    "%s %s attempt %d/%d failed (%s). Retrying in %.1fs…",
                    self.service_name, operation, attempt, MAX_RETRIES, last_error, backoff,
                )
                time.sleep(backoff)

        raise GoogleAPIError(
            f"{self.service_name} request failed after {MAX_RETRIES} attempts: {last_error}"
        )
