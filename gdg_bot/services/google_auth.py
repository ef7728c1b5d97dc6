"""Credentials for the Google Calendar and Sheets REST APIs.

Resolution order (first match wins):
  1. Service-account key file (``GOOGLE_SERVICE_ACCOUNT_FILE``)
  2. OAuth2 refresh token (``GOOGLE_CLIENT_ID`` / ``GOOGLE_CLIENT_SECRET`` /
     ``GOOGLE_REFRESH_TOKEN``)
  3. Plain API key (``GOOGLE_API_KEY``), enough for public calendars and
     sheets shared as "anyone with the link"

Nothing is resolved at import time; the first API call triggers it, so a
missing credential surfaces as a failed tool result instead of a crash.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import google.auth.transport.requests
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

from gdg_bot import config

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/spreadsheets.readonly",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleAuthError(Exception):
    """Raised when no usable Google credential is configured."""


class GoogleAuth:
    """Produces request headers / query params authorising a Google API call."""

    def __init__(
        self,
        *,
        service_account_file: str | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        refresh_token: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self._service_account_file = (
            service_account_file
            if service_account_file is not None
            else config.GOOGLE_SERVICE_ACCOUNT_FILE
        )
        self._client_id = client_id if client_id is not None else config.GOOGLE_CLIENT_ID
        self._client_secret = (
            client_secret if client_secret is not None else config.GOOGLE_CLIENT_SECRET
        )
        self._refresh_token = (
            refresh_token if refresh_token is not None else config.GOOGLE_REFRESH_TOKEN
        )
        self._api_key = api_key if api_key is not None else config.GOOGLE_API_KEY
        self._credentials = None
        self._lock = threading.Lock()

    def _load_credentials(self):
        if self._service_account_file and Path(self._service_account_file).is_file():
            logger.info("Using Google service account %s", self._service_account_file)
            return service_account.Credentials.from_service_account_file(
                self._service_account_file, scopes=SCOPES,
            )
        if self._client_id and self._client_secret and self._refresh_token:
            logger.info("Using Google OAuth2 refresh token")
            return oauth2_credentials.Credentials(
                None,
                refresh_token=self._refresh_token,
                client_id=self._client_id,
                client_secret=self._client_secret,
                token_uri=TOKEN_URI,
                scopes=SCOPES,
            )
        return None

    def authorize(self) -> tuple[dict[str, str], dict[str, str]]:
        """Return ``(headers, params)`` to attach to the next request.

        Raises:
            GoogleAuthError: if no credential source is configured or the
                token refresh fails.
        """
        with self._lock:
            if self._credentials is None:
                self._credentials = self._load_credentials()

            if self._credentials is not None:
                if not self._credentials.valid:
                    try:
                        self._credentials.refresh(google.auth.transport.requests.Request())
                    except Exception as exc:
                        raise GoogleAuthError(f"Google token refresh failed: {exc}") from exc
                return {"Authorization": f"Bearer {self._credentials.token}"}, {}

        if self._api_key:
            return {}, {"key": self._api_key}

        raise GoogleAuthError(
            "Google API credentials not configured. Provide a service account file, "
            "an OAuth2 refresh token, or GOOGLE_API_KEY."
        )
