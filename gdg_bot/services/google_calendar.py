"""Google Calendar v3 adapter for the community events calendar.

API docs: https://developers.google.com/calendar/api/v3/reference/events
Only read operations are used.  Event lists are cached briefly (the tool
layer truncates time bounds to the minute so repeated questions within a
minute hit the cache); single events and calendar metadata live longer.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any
from urllib.parse import quote

from gdg_bot.config import GOOGLE_CALENDAR_BASE_URL, GOOGLE_CALENDAR_ID
from gdg_bot.services.cache import TTLCache
from gdg_bot.services.google_api import GoogleAPIClient, GoogleAPIError
from gdg_bot.services.google_auth import GoogleAuth, GoogleAuthError

logger = logging.getLogger(__name__)

LIST_TTL_SECONDS = 60.0
EVENT_TTL_SECONDS = 300.0


def format_event(event: dict[str, Any]) -> dict[str, Any]:
    """Flatten a Calendar API event resource into the record the tools return."""
    start = event.get("start", {})
    end = event.get("end", {})
    organizer = event.get("organizer") or {}
    return {
        "id": event.get("id", ""),
        "title": event.get("summary") or "Untitled Event",
        "description": event.get("description", ""),
        "start": start.get("dateTime") or start.get("date", ""),
        "end": end.get("dateTime") or end.get("date", ""),
        "location": event.get("location", ""),
        "organizer": organizer.get("displayName", ""),
        "attendees": [
            {
                "email": a.get("email", ""),
                "name": a.get("displayName") or a.get("email", ""),
                "responseStatus": a.get("responseStatus", ""),
            }
            for a in event.get("attendees", [])
        ],
        "isAllDay": "dateTime" not in start,
        "htmlLink": event.get("htmlLink", ""),
        "status": event.get("status", ""),
    }


def _rfc3339(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


class GoogleCalendarClient(GoogleAPIClient):
    """Read-only access to one calendar."""

    service_name = "google_calendar"

    def __init__(
        self,
        calendar_id: str | None = None,
        *,
        auth: GoogleAuth | None = None,
        cache: TTLCache | None = None,
        base_url: str | None = None,
    ) -> None:
        super().__init__(base_url or GOOGLE_CALENDAR_BASE_URL, auth=auth, cache=cache)
        self._calendar_id = calendar_id or GOOGLE_CALENDAR_ID
        self._path = f"/calendars/{quote(self._calendar_id, safe='')}"

    def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        *,
        max_results: int | None = None,
        query: str | None = None,
    ) -> list[dict[str, Any]]:
        """Return single (expanded) events in ``[time_min, time_max)`` ordered by start.

        Args:
            time_min: Inclusive lower bound (timezone-aware).
            time_max: Exclusive upper bound (timezone-aware).
            max_results: Optional cap on the number of events.
            query: Optional free-text search (title, description, location…).
        """
        params: dict[str, Any] = {
            "timeMin": _rfc3339(time_min),
            "timeMax": _rfc3339(time_max),
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        if max_results:
            params["maxResults"] = max_results
        if query:
            params["q"] = query

        cache_key = "events:" + "&".join(f"{k}={v}" for k, v in sorted(params.items()))
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        data = self._get(f"{self._path}/events", operation="events.list", params=params)
        items = data.get("items", [])
        self._cache.put(cache_key, items, ttl_seconds=LIST_TTL_SECONDS)
        logger.debug("Calendar returned %d events for %s", len(items), params)
        return items

    def get_event(self, event_id: str) -> dict[str, Any]:
        """Fetch one event by ID (raises ``GoogleAPIError`` 404 if absent)."""
        cache_key = f"event:{event_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        event = self._get(
            f"{self._path}/events/{quote(event_id, safe='')}", operation="events.get",
        )
        self._cache.put(cache_key, event, ttl_seconds=EVENT_TTL_SECONDS)
        return event

    def get_calendar_info(self) -> dict[str, Any]:
        """Calendar metadata: id, summary, description, timeZone."""
        cached = self._cache.get("calendar_info")
        if cached is not None:
            return cached
        data = self._get(self._path, operation="calendars.get")
        info = {
            "id": data.get("id", self._calendar_id),
            "summary": data.get("summary", ""),
            "description": data.get("description", ""),
            "timeZone": data.get("timeZone", ""),
        }
        self._cache.put("calendar_info", info, ttl_seconds=EVENT_TTL_SECONDS)
        return info


_client: GoogleCalendarClient | None = None
_client_lock = threading.Lock()


def get_calendar_client() -> GoogleCalendarClient:
    """Return the process-wide calendar client, created on first use."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = GoogleCalendarClient()
    return _client


def close_calendar_client() -> None:
    """Close and forget the process-wide calendar client, if one was created."""
    global _client
    with _client_lock:
        if _client is not None:
            _client.close()
            _client = None


def check_connectivity() -> bool:
    """Fetch the calendar's metadata once and report whether it worked."""
    try:
        info = get_calendar_client().get_calendar_info()
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Google Calendar connectivity check failed: %s", exc)
        return False
    logger.info(
        "Google Calendar connectivity check passed (%s, %s)",
        info["summary"] or info["id"], info["timeZone"] or "no time zone",
    )
    return True
