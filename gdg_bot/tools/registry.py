"""The closed set of tools the model may call.

Every tool is a :class:`ToolName` member mapped to a :class:`ToolSpec`
(description, pydantic argument schema, handler).  :func:`execute` is the
single dispatch point and never raises: names outside the enum (model
hallucinations), invalid arguments and handler crashes all come back as
failure :class:`ToolResult` objects the model can read and apologise for.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, ValidationError

from gdg_bot.models import ToolCall, ToolResult
from gdg_bot.tools import community, events

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    GET_UPCOMING_EVENTS = "get_upcoming_events"
    GET_PAST_EVENTS = "get_past_events"
    GET_EVENT_DETAILS = "get_event_details"
    GET_EVENTS_BY_DATE_RANGE = "get_events_by_date_range"
    GET_FAQS = "get_faqs"
    GET_SPEAKER_INFO = "get_speaker_info"
    GET_COMMUNITY_RESOURCES = "get_community_resources"
    GET_EVENT_FEEDBACK = "get_event_feedback"


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[Any], ToolResult]


_SPECS: dict[ToolName, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            ToolName.GET_UPCOMING_EVENTS,
            "Get upcoming GDG events from Google Calendar",
            events.UpcomingEventsArgs,
            events.get_upcoming_events,
        ),
        ToolSpec(
            ToolName.GET_PAST_EVENTS,
            "Get information about past GDG events",
            events.PastEventsArgs,
            events.get_past_events,
        ),
        ToolSpec(
            ToolName.GET_EVENT_DETAILS,
            "Get detailed information about a specific event, by ID or by title",
            events.EventDetailsArgs,
            events.get_event_details,
        ),
        ToolSpec(
            ToolName.GET_EVENTS_BY_DATE_RANGE,
            "Get GDG events scheduled between two dates",
            events.DateRangeArgs,
            events.get_events_by_date_range,
        ),
        ToolSpec(
            ToolName.GET_FAQS,
            "Search the community FAQ sheet by category and/or search term",
            community.FAQArgs,
            community.get_faqs,
        ),
        ToolSpec(
            ToolName.GET_SPEAKER_INFO,
            "Get speaker bios and expertise, optionally filtered by name or event",
            community.SpeakerArgs,
            community.get_speaker_info,
        ),
        ToolSpec(
            ToolName.GET_COMMUNITY_RESOURCES,
            "List learning materials and community resources, optionally by category",
            community.ResourceArgs,
            community.get_community_resources,
        ),
        ToolSpec(
            ToolName.GET_EVENT_FEEDBACK,
            "Get attendee feedback (ratings and comments) for GDG events, optionally for one event ID",
            community.FeedbackArgs,
            community.get_event_feedback,
        ),
    )
}

_missing = set(ToolName) - set(_SPECS)
if _missing:
    raise RuntimeError(f"Tools declared without a spec: {sorted(m.value for m in _missing)}")


def lookup(name: str) -> ToolSpec | None:
    """Return the spec for *name*, or ``None`` if it is not a known tool."""
    try:
        return _SPECS[ToolName(name)]
    except ValueError:
        return None


def execute(call: ToolCall) -> ToolResult:
    """Run *call* against the registry.  Never raises."""
    spec = lookup(call.name)
    if spec is None:
        logger.warning("Model requested unknown function %r", call.name)
        return ToolResult.fail(f"Unknown function: {call.name}")

    try:
        args = spec.args_schema.model_validate(call.args or {})
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
            for err in exc.errors()
        )
        logger.warning("Invalid arguments for %s: %s", call.name, problems)
        return ToolResult.fail(f"Invalid arguments for {call.name}: {problems}")

    logger.info("Executing function: %s with args: %s", call.name, args.model_dump())
    try:
        result = spec.handler(args)
    except Exception as exc:
        logger.exception("Error executing function %s", call.name)
        return ToolResult.fail(str(exc), f"Failed to execute {call.name}: {exc}")

    if result.success:
        logger.info("Function %s executed successfully", call.name)
    return result


def _as_langchain_tool(spec: ToolSpec) -> BaseTool:
    def _run(**kwargs: Any) -> dict[str, Any]:
        return execute(ToolCall(name=spec.name.value, args=kwargs)).model_dump()

    return StructuredTool.from_function(
        func=_run,
        name=spec.name.value,
        description=spec.description,
        args_schema=spec.args_schema,
    )


TOOL_DECLARATIONS: list[BaseTool] = [_as_langchain_tool(spec) for spec in _SPECS.values()]


def declarations() -> list[BaseTool]:
    """Tool declarations (name, description, parameter schema) to bind to the model."""
    return list(TOOL_DECLARATIONS)
