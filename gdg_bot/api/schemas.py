"""Pydantic schemas for the webhook and admin endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class InboundMessage(BaseModel):
    """Form fields Twilio posts for an incoming WhatsApp message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sender: str = Field(..., alias="From", min_length=1)
    body: str = Field(..., alias="Body")
    recipient: str | None = Field(None, alias="To")
    message_sid: str | None = Field(None, alias="MessageSid")


class DirectMessageRequest(BaseModel):
    """Push a message through the bot without WhatsApp delivery."""

    model_config = ConfigDict(str_strip_whitespace=True)

    userId: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=4000)


class DirectMessageResponse(BaseModel):
    success: bool = True
    response: str
    userId: str
    timestamp: datetime = Field(default_factory=_now)


class SessionStatsOut(BaseModel):
    activeSessions: int
    totalSessions: int


class StatsResponse(BaseModel):
    success: bool = True
    stats: SessionStatsOut
    timestamp: datetime = Field(default_factory=_now)


class ClearResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=_now)


class HistoryResponse(BaseModel):
    success: bool = True
    userId: str
    history: list[dict[str, Any]]
    timestamp: datetime = Field(default_factory=_now)


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "gdg-whatsapp-bot"
