"""Tests for the Google Calendar / Sheets REST clients."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import httpx
import pytest

from conftest import make_google_event
from gdg_bot.services import google_calendar, google_sheets
from gdg_bot.services.cache import TTLCache
from gdg_bot.services.google_api import MAX_RETRIES, GoogleAPIError
from gdg_bot.services.google_auth import GoogleAuthError
from gdg_bot.services.google_calendar import GoogleCalendarClient, check_connectivity, format_event
from gdg_bot.services.google_sheets import GoogleSheetsClient, rows_to_records


@pytest.fixture
def fake_auth():
    auth = MagicMock()
    auth.authorize.return_value = ({}, {"key": "test-api-key"})
    return auth


@pytest.fixture
def calendar_client(fake_auth):
    return GoogleCalendarClient("gdg@group.calendar.google.com", auth=fake_auth, cache=TTLCache())


@pytest.fixture
def sheets_client(fake_auth):
    return GoogleSheetsClient("sheet-123", auth=fake_auth, cache=TTLCache())


WINDOW = (datetime(2026, 11, 1, tzinfo=UTC), datetime(2026, 12, 1, tzinfo=UTC))


# ── Formatting helpers ───────────────────────────────────────────────


class TestFormatEvent:
    def test_timed_event(self):
        event = make_google_event(
            "evt1", "DevFest",
            attendees=[{"email": "a@example.com", "displayName": "Ada", "responseStatus": "accepted"}],
            organizer={"displayName": "GDG Dublin"},
        )
        formatted = format_event(event)
        assert formatted["title"] == "DevFest"
        assert formatted["start"] == "2026-11-05T18:00:00Z"
        assert formatted["isAllDay"] is False
        assert formatted["organizer"] == "GDG Dublin"
        assert formatted["attendees"] == [
            {"email": "a@example.com", "name": "Ada", "responseStatus": "accepted"},
        ]

    def test_all_day_event_without_title(self):
        formatted = format_event({"id": "x", "start": {"date": "2026-11-05"}, "end": {"date": "2026-11-06"}})
        assert formatted["title"] == "Untitled Event"
        assert formatted["start"] == "2026-11-05"
        assert formatted["isAllDay"] is True
        assert formatted["attendees"] == []


class TestRowsToRecords:
    def test_header_keys_are_lower_cased(self):
        rows = [["Category", "Question", "Answer"], ["Events", "Free?", "Yes"]]
        assert rows_to_records(rows) == [{"category": "Events", "question": "Free?", "answer": "Yes"}]

    def test_short_rows_are_padded(self):
        rows = [["Name", "Bio", "Social"], ["Ada"]]
        assert rows_to_records(rows) == [{"name": "Ada", "bio": "", "social": ""}]

    def test_empty_sheet(self):
        assert rows_to_records([]) == []
        assert rows_to_records([["Name"]]) == []


# ── Calendar client ──────────────────────────────────────────────────


class TestCalendarClient:
    def test_list_events_params(self, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response({"items": [make_google_event("e1", "DevFest")]})
            items = calendar_client.list_events(*WINDOW, max_results=5, query="devfest")

        assert items[0]["id"] == "e1"
        path = mock_get.call_args.args[0]
        params = mock_get.call_args.kwargs["params"]
        assert path == "/calendars/gdg%40group.calendar.google.com/events"
        assert params["timeMin"] == "2026-11-01T00:00:00Z"
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"
        assert params["maxResults"] == 5
        assert params["q"] == "devfest"
        assert params["key"] == "test-api-key"

    def test_list_events_is_cached(self, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response({"items": []})
            calendar_client.list_events(*WINDOW)
            calendar_client.list_events(*WINDOW)
        assert mock_get.call_count == 1

    def test_get_event(self, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response(make_google_event("e1", "DevFest"))
            event = calendar_client.get_event("e1")
            calendar_client.get_event("e1")
        assert event["summary"] == "DevFest"
        assert mock_get.call_count == 1

    def test_bearer_header_is_sent(self, fake_auth, mock_http_response):
        fake_auth.authorize.return_value = ({"Authorization": "Bearer tok"}, {})
        client = GoogleCalendarClient("primary", auth=fake_auth, cache=TTLCache())
        with patch.object(client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response({"id": "primary", "summary": "GDG"})
            info = client.get_calendar_info()
        assert mock_get.call_args.kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert info["summary"] == "GDG"


class TestRetries:
    @patch("gdg_bot.services.google_api.time.sleep")
    def test_retries_server_errors_then_succeeds(self, mock_sleep, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.side_effect = [
                mock_http_response({"error": {"message": "backend"}}, status_code=503),
                mock_http_response({"items": []}),
            ]
            assert calendar_client.list_events(*WINDOW) == []
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    @patch("gdg_bot.services.google_api.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep, calendar_client):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.side_effect = httpx.ConnectTimeout("timed out")
            with pytest.raises(GoogleAPIError, match="after 3 attempts"):
                calendar_client.list_events(*WINDOW)
        assert mock_get.call_count == MAX_RETRIES
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch("gdg_bot.services.google_api.time.sleep")
    def test_client_errors_are_not_retried(self, mock_sleep, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response(
                {"error": {"message": "Not Found"}}, status_code=404,
            )
            with pytest.raises(GoogleAPIError) as exc_info:
                calendar_client.get_event("missing")
        assert exc_info.value.status_code == 404
        assert "Not Found" in str(exc_info.value)
        assert mock_get.call_count == 1
        mock_sleep.assert_not_called()

    @patch("gdg_bot.services.google_api.time.sleep")
    def test_rate_limit_is_retried(self, mock_sleep, calendar_client, mock_http_response):
        with patch.object(calendar_client._client, "get") as mock_get:
            mock_get.side_effect = [
                mock_http_response({}, status_code=429),
                mock_http_response({"items": [make_google_event("e1", "DevFest")]}),
            ]
            assert len(calendar_client.list_events(*WINDOW)) == 1


# ── Sheets client ────────────────────────────────────────────────────


class TestSheetsClient:
    def test_get_records(self, sheets_client, mock_http_response):
        with patch.object(sheets_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response(
                {"values": [["Category", "Title"], ["Cloud", "Skills Boost"]]},
            )
            records = sheets_client.get_records("Resources!A:E")
        assert records == [{"category": "Cloud", "title": "Skills Boost"}]
        assert mock_get.call_args.args[0] == "/spreadsheets/sheet-123/values/Resources%21A%3AE"

    def test_values_are_cached(self, sheets_client, mock_http_response):
        with patch.object(sheets_client._client, "get") as mock_get:
            mock_get.return_value = mock_http_response({"values": []})
            sheets_client.get_values("FAQs!A:D")
            sheets_client.get_values("FAQs!A:D")
        assert mock_get.call_count == 1

    def test_missing_sheet_id(self, fake_auth):
        client = GoogleSheetsClient("", auth=fake_auth, cache=TTLCache())
        with pytest.raises(GoogleAPIError, match="GOOGLE_SHEET_ID"):
            client.get_values("FAQs!A:D")


# ── Process-wide clients ─────────────────────────────────────────────


class TestConnectivityCheck:
    @patch("gdg_bot.services.google_calendar.get_calendar_client")
    def test_reachable_calendar(self, mock_get_client):
        mock_get_client.return_value.get_calendar_info.return_value = {
            "id": "gdg@group.calendar.google.com", "summary": "GDG Events",
            "description": "", "timeZone": "Europe/Dublin",
        }
        assert check_connectivity() is True

    @pytest.mark.parametrize("error", [
        GoogleAPIError("Google API error (404): Not Found", status_code=404),
        GoogleAuthError("No Google credentials configured"),
    ])
    @patch("gdg_bot.services.google_calendar.get_calendar_client")
    def test_unreachable_calendar(self, mock_get_client, error):
        mock_get_client.return_value.get_calendar_info.side_effect = error
        assert check_connectivity() is False


class TestCloseClients:
    def test_close_calendar_client(self):
        client = MagicMock()
        with patch.object(google_calendar, "_client", client):
            google_calendar.close_calendar_client()
            assert google_calendar._client is None
        client.close.assert_called_once_with()

    def test_close_sheets_client(self):
        client = MagicMock()
        with patch.object(google_sheets, "_client", client):
            google_sheets.close_sheets_client()
            assert google_sheets._client is None
        client.close.assert_called_once_with()

    def test_close_without_client_is_a_no_op(self):
        with patch.object(google_sheets, "_client", None):
            google_sheets.close_sheets_client()
            assert google_sheets._client is None
