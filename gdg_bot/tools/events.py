"""Calendar lookups the model can request.

Each handler takes its validated argument model and returns a
:class:`ToolResult`; Google failures become failure results so a broken
calendar never aborts the conversation.  Only the fields useful for a
WhatsApp answer are passed back to the model.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, time, timedelta
from typing import Any

from pydantic import BaseModel, Field

from gdg_bot.models import ToolResult
from gdg_bot.services.google_api import GoogleAPIError
from gdg_bot.services.google_auth import GoogleAuthError
from gdg_bot.services.google_calendar import format_event, get_calendar_client

logger = logging.getLogger(__name__)

SEARCH_HORIZON_DAYS = 365
_MODEL_FIELDS = ("title", "description", "start", "end", "location", "attendees")


def _now() -> datetime:
    # Minute resolution so identical questions within a minute share a cache entry
    return datetime.now(UTC).replace(second=0, microsecond=0)


def _for_model(event: dict[str, Any]) -> dict[str, Any]:
    return {key: event[key] for key in _MODEL_FIELDS}


def _parse_bound(value: str, *, end: bool) -> datetime:
    """Parse ``YYYY-MM-DD`` or ISO 8601; bare dates cover the whole day."""
    value = value.strip()
    if len(value) == 10:
        day = datetime.fromisoformat(value).date()
        if end:
            day += timedelta(days=1)
        return datetime.combine(day, time.min, tzinfo=UTC)
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


# ── Argument schemas ────────────────────────────────────────────────


class UpcomingEventsArgs(BaseModel):
    maxResults: int = Field(5, ge=1, le=50, description="Maximum number of events to return (default: 5)")
    daysAhead: int = Field(30, ge=1, le=365, description="Number of days ahead to look for events (default: 30)")


class PastEventsArgs(BaseModel):
    maxResults: int = Field(5, ge=1, le=50, description="Maximum number of events to return (default: 5)")
    daysBack: int = Field(90, ge=1, le=730, description="Number of days back to look for events (default: 90)")


class EventDetailsArgs(BaseModel):
    eventId: str | None = Field(None, description="The ID of the specific event")
    eventTitle: str | None = Field(None, description="The title or name of the event to search for")


class DateRangeArgs(BaseModel):
    startDate: str = Field(..., description="Start of the range, YYYY-MM-DD or ISO 8601")
    endDate: str = Field(..., description="End of the range (inclusive day), YYYY-MM-DD or ISO 8601")
    maxResults: int = Field(10, ge=1, le=50, description="Maximum number of events to return (default: 10)")


# ── Handlers ────────────────────────────────────────────────────────


def get_upcoming_events(args: UpcomingEventsArgs) -> ToolResult:
    logger.info("Fetching upcoming events: max %d, %d days ahead", args.maxResults, args.daysAhead)
    now = _now()
    try:
        items = get_calendar_client().list_events(
            now, now + timedelta(days=args.daysAhead), max_results=args.maxResults,
        )
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching upcoming events: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_upcoming_events")

    if not items:
        return ToolResult.ok(
            {"events": []}, f"No upcoming events found in the next {args.daysAhead} days.",
        )
    events = [_for_model(format_event(e)) for e in items]
    return ToolResult.ok({"events": events}, f"Found {len(events)} upcoming events")


def get_past_events(args: PastEventsArgs) -> ToolResult:
    logger.info("Fetching past events: max %d, %d days back", args.maxResults, args.daysBack)
    now = _now()
    try:
        items = get_calendar_client().list_events(
            now - timedelta(days=args.daysBack), now, max_results=args.maxResults,
        )
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching past events: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_past_events")

    if not items:
        return ToolResult.ok(
            {"events": []}, f"No past events found in the last {args.daysBack} days.",
        )
    events = [_for_model(format_event(e)) for e in items]
    return ToolResult.ok({"events": events}, f"Found {len(events)} past events")


def get_event_details(args: EventDetailsArgs) -> ToolResult:
    """Look up one event by ID, or search upcoming events (one year ahead) by title."""
    client = get_calendar_client()
    try:
        if args.eventId:
            logger.info("Fetching event details by ID: %s", args.eventId)
            event = format_event(client.get_event(args.eventId))
            return ToolResult.ok(
                {"event": _for_model(event)}, "Event details retrieved successfully",
            )

        if args.eventTitle:
            logger.info("Searching for event by title: %s", args.eventTitle)
            now = _now()
            items = client.list_events(
                now, now + timedelta(days=SEARCH_HORIZON_DAYS), query=args.eventTitle,
            )
            if not items:
                return ToolResult.fail(f'No events found matching "{args.eventTitle}"')
            events = [_for_model(format_event(e)) for e in items]
            return ToolResult.ok(
                {"events": events},
                f'Found {len(events)} events matching "{args.eventTitle}"',
            )
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching event details: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_event_details")

    return ToolResult.fail("Either eventId or eventTitle must be provided")


def get_events_by_date_range(args: DateRangeArgs) -> ToolResult:
    try:
        start = _parse_bound(args.startDate, end=False)
        end = _parse_bound(args.endDate, end=True)
    except ValueError as exc:
        return ToolResult.fail(f"Invalid date: {exc}")
    if end <= start:
        return ToolResult.fail("endDate must be after startDate")

    logger.info("Fetching events from %s to %s", start, end)
    try:
        items = get_calendar_client().list_events(start, end, max_results=args.maxResults)
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching events by date range: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_events_by_date_range")

    events = [_for_model(format_event(e)) for e in items]
    return ToolResult.ok(
        {"events": events}, f"Found {len(events)} events in the specified date range",
    )
