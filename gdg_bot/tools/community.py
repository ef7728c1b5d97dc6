"""Spreadsheet lookups: FAQs, speakers and community resources."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from gdg_bot.models import ToolResult
from gdg_bot.services.google_api import GoogleAPIError
from gdg_bot.services.google_auth import GoogleAuthError
from gdg_bot.services.google_sheets import get_sheets_client

logger = logging.getLogger(__name__)

FAQ_RANGE = "FAQs!A:D"
SPEAKERS_RANGE = "Speakers!A:F"
RESOURCES_RANGE = "Resources!A:E"
FEEDBACK_RANGE = "Feedback!A:E"


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


class FAQArgs(BaseModel):
    category: str | None = Field(None, description="FAQ category to filter by (e.g. 'membership', 'events')")
    searchTerm: str | None = Field(None, description="Words to look for in the question, answer or tags")


class SpeakerArgs(BaseModel):
    speakerName: str | None = Field(None, description="Full or partial speaker name")
    eventId: str | None = Field(None, description="Only speakers presenting at this event ID")


class ResourceArgs(BaseModel):
    category: str | None = Field(None, description="Resource category to filter by (e.g. 'android', 'cloud')")


class FeedbackArgs(BaseModel):
    eventId: str | None = Field(None, description="Only feedback for this exact event ID")


def get_faqs(args: FAQArgs) -> ToolResult:
    logger.info("Fetching FAQs - category: %s, search: %s", args.category, args.searchTerm)
    try:
        faqs = get_sheets_client().get_records(FAQ_RANGE)
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching FAQs: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_faqs")

    if not faqs:
        return ToolResult.ok({"faqs": []}, "No FAQs found in the database.")
    if args.category:
        faqs = [f for f in faqs if _contains(f.get("category"), args.category)]
    if args.searchTerm:
        term = args.searchTerm
        faqs = [
            f for f in faqs
            if _contains(f.get("question"), term)
            or _contains(f.get("answer"), term)
            or _contains(f.get("tags"), term)
        ]
    if not faqs:
        return ToolResult.ok({"faqs": []}, "No FAQs found matching the criteria.")

    logger.info("Found %d FAQs", len(faqs))
    return ToolResult.ok(
        {"faqs": [{k: f.get(k, "") for k in ("category", "question", "answer")} for f in faqs]},
        f"Found {len(faqs)} FAQs",
    )


def get_speaker_info(args: SpeakerArgs) -> ToolResult:
    logger.info("Fetching speaker info - name: %s, event: %s", args.speakerName, args.eventId)
    try:
        speakers = get_sheets_client().get_records(SPEAKERS_RANGE)
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching speaker info: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_speaker_info")

    if not speakers:
        return ToolResult.ok({"speakers": []}, "No speaker information found in the database.")
    if args.speakerName:
        speakers = [s for s in speakers if _contains(s.get("name"), args.speakerName)]
    if args.eventId:
        # Event IDs are case-sensitive calendar identifiers
        speakers = [s for s in speakers if args.eventId in s.get("events", "")]
    if not speakers:
        return ToolResult.ok({"speakers": []}, "No speakers found matching the criteria.")

    logger.info("Found %d speakers", len(speakers))
    return ToolResult.ok(
        {
            "speakers": [
                {k: s.get(k, "") for k in ("name", "bio", "expertise", "social")}
                for s in speakers
            ]
        },
        f"Found {len(speakers)} speakers",
    )


def get_community_resources(args: ResourceArgs) -> ToolResult:
    logger.info("Fetching community resources - category: %s", args.category)
    try:
        resources = get_sheets_client().get_records(RESOURCES_RANGE)
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching community resources: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_community_resources")

    if not resources:
        return ToolResult.ok({"resources": []}, "No community resources found in the database.")
    if args.category:
        resources = [r for r in resources if _contains(r.get("category"), args.category)]
        if not resources:
            return ToolResult.ok(
                {"resources": []}, f"No resources found in category: {args.category}",
            )

    logger.info("Found %d community resources", len(resources))
    return ToolResult.ok(
        {"resources": resources}, f"Found {len(resources)} community resources",
    )


def get_event_feedback(args: FeedbackArgs) -> ToolResult:
    logger.info("Fetching event feedback - event: %s", args.eventId)
    try:
        feedback = get_sheets_client().get_records(FEEDBACK_RANGE)
    except (GoogleAPIError, GoogleAuthError) as exc:
        logger.error("Error fetching event feedback: %s", exc)
        return ToolResult.fail(str(exc), "Failed to execute get_event_feedback")

    if not feedback:
        return ToolResult.ok({"feedback": []}, "No feedback found in the database.")
    if args.eventId:
        feedback = [f for f in feedback if f.get("eventid") == args.eventId]
        if not feedback:
            return ToolResult.ok({"feedback": []}, "No feedback found for the specified event.")

    logger.info("Found %d feedback entries", len(feedback))
    return ToolResult.ok({"feedback": feedback}, f"Found {len(feedback)} feedback entries")
