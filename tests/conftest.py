"""Shared test fixtures for the GDG bot test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    ``gdg_bot.config`` reads required secrets at import time.
    """
    os.environ.setdefault("LLM_PROVIDER", "google")
    os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key-123")
    os.environ.setdefault("TWILIO_ACCOUNT_SID", "ACtest0000000000000000000000000000")
    os.environ.setdefault("TWILIO_AUTH_TOKEN", "test-twilio-token-456")
    os.environ.setdefault("TWILIO_WHATSAPP_NUMBER", "+14155238886")
    os.environ.setdefault("GOOGLE_CALENDAR_ID", "gdg-test@group.calendar.google.com")
    os.environ.setdefault("GOOGLE_SHEET_ID", "test-sheet-id")
    os.environ["GOOGLE_SERVICE_ACCOUNT_FILE"] = ""
    os.environ["METRICS_ENABLED"] = "false"


def make_google_event(
    event_id: str,
    title: str,
    start: str = "2026-11-05T18:00:00Z",
    end: str = "2026-11-05T20:00:00Z",
    **extra,
) -> dict:
    """A Calendar API v3 event resource."""
    return {
        "id": event_id,
        "summary": title,
        "description": extra.pop("description", f"{title} description"),
        "start": {"dateTime": start},
        "end": {"dateTime": end},
        "location": extra.pop("location", "Google Office, Dublin"),
        "htmlLink": f"https://calendar.google.com/event?eid={event_id}",
        "status": "confirmed",
        **extra,
    }


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating mock httpx responses."""

    def _make(data: dict, status_code: int = 200):
        mock = MagicMock()
        mock.status_code = status_code
        mock.json.return_value = data
        mock.text = str(data)
        return mock

    return _make
