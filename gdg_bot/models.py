"""Conversation data model shared by the session store, tools and agent."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TurnRole(str, Enum):
    """Who produced a turn."""

    USER = "user"
    MODEL = "model"
    TOOL_RESULT = "tool-result"


class ToolCall(BaseModel):
    """A tool invocation requested by the model (never persisted on its own)."""

    id: str = Field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Tagged outcome of executing a :class:`ToolCall`.

    ``success=True`` carries ``data``; ``success=False`` carries ``error``.
    ``message`` is a short human-readable summary for the model.
    """

    success: bool
    message: str = ""
    data: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any, message: str = "") -> ToolResult:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, message: str = "") -> ToolResult:
        return cls(success=False, error=error, message=message or error)


class Turn(BaseModel):
    """One recorded unit of conversation context."""

    role: TurnRole
    content: str = ""
    tool_call: ToolCall | None = None
    tool_result: ToolResult | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role=TurnRole.USER, content=text)

    @classmethod
    def model(cls, text: str) -> Turn:
        return cls(role=TurnRole.MODEL, content=text)

    @classmethod
    def from_tool(cls, call: ToolCall, result: ToolResult) -> Turn:
        return cls(
            role=TurnRole.TOOL_RESULT,
            content=result.model_dump_json(exclude_none=True),
            tool_call=call,
            tool_result=result,
        )


class Completion(BaseModel):
    """What the model returned: either ``text`` or one or more ``tool_calls``."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def wants_tools(self) -> bool:
        return bool(self.tool_calls)


class SendResult(BaseModel):
    """Outcome of a WhatsApp delivery attempt."""

    success: bool
    message_id: str | None = None
    status: str | None = None
    error: str | None = None
    code: int | None = None
