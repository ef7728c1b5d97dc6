"""Conversation orchestrator for the GDG WhatsApp assistant.

Architecture:
  One inbound user message runs through a small LangGraph ``StateGraph``:

    1. **chatbot** - asks the model for a completion over the session's
                     turn history with every registry tool declared
    2. **tools**   - executes the requested tool calls in order and
                     appends one ``tool-result`` turn per call
    3. **final**   - asks for the closing text answer once the tool-round
                     budget (``MAX_TOOL_ROUNDS``, default 1) is spent

  Routing:
    chatbot → (text?)        → END
    chatbot → (tool calls?)  → tools → (rounds left?) → chatbot
                                     → (budget spent?) → final → END
    any node → (model error?) → END   (caller answers with FALLBACK_REPLY)

  Memory:
    Turns live in the caller-supplied :class:`~gdg_bot.session.Session`;
    nodes append to it as they go, so a fault part-way through leaves the
    history exactly as far as it got.  The session lock is held by
    :meth:`ConversationOrchestrator.handle_message` for the whole cycle.
"""

from __future__ import annotations

import logging
from itertools import groupby
from typing import Any

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import BaseTool
from langchain_google_genai import ChatGoogleGenerativeAI
from langgraph.graph import END, StateGraph
from typing_extensions import TypedDict

from gdg_bot.config import (
    ANTHROPIC_API_KEY,
    ANTHROPIC_MODEL,
    GEMINI_API_KEY,
    GEMINI_MODEL,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_PROVIDER,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SECONDS,
    MAX_TOOL_ROUNDS,
)
from gdg_bot.models import Completion, ToolCall, Turn, TurnRole
from gdg_bot.prompts import get_system_prompt
from gdg_bot.services.metrics import metrics
from gdg_bot.session import Session, SessionStore
from gdg_bot.tools import registry

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I'm sorry, I'm having trouble processing your request right now. "
    "Please try again in a moment, or contact the GDG team if the issue persists. 🤖"
)


# ── LLM builder ─────────────────────────────────────────────────────


def _build_llm() -> BaseChatModel:
    """Build the chat model for the configured provider (Gemini by default)."""
    if LLM_PROVIDER == "anthropic":
        return ChatAnthropic(
            model=ANTHROPIC_MODEL,
            api_key=ANTHROPIC_API_KEY,
            temperature=LLM_TEMPERATURE,
            max_tokens=LLM_MAX_OUTPUT_TOKENS,
            timeout=LLM_TIMEOUT_SECONDS,
            max_retries=2,
        )
    return ChatGoogleGenerativeAI(
        model=GEMINI_MODEL,
        google_api_key=GEMINI_API_KEY,
        temperature=LLM_TEMPERATURE,
        top_k=40,
        top_p=0.95,
        max_output_tokens=LLM_MAX_OUTPUT_TOKENS,
        timeout=LLM_TIMEOUT_SECONDS,
        max_retries=2,
    )


# ── Turn history ↔ LangChain messages ───────────────────────────────


def to_messages(turns: list[Turn]) -> list[BaseMessage]:
    """Convert a session's turns into the message list sent to the model.

    Tool requests are not stored as turns of their own: each run of
    consecutive ``tool-result`` turns is preceded by a synthesized
    ``AIMessage`` carrying the calls that produced them.
    """
    messages: list[BaseMessage] = [SystemMessage(content=get_system_prompt())]
    for is_tool_run, run in groupby(turns, key=lambda t: t.role is TurnRole.TOOL_RESULT):
        run = list(run)
        if is_tool_run:
            messages.append(
                AIMessage(
                    content="",
                    tool_calls=[
                        {"name": t.tool_call.name, "args": t.tool_call.args, "id": t.tool_call.id}
                        for t in run
                    ],
                )
            )
            messages.extend(
                ToolMessage(content=t.content, tool_call_id=t.tool_call.id, name=t.tool_call.name)
                for t in run
            )
            continue
        for turn in run:
            if turn.role is TurnRole.USER:
                messages.append(HumanMessage(content=turn.content))
            else:
                messages.append(AIMessage(content=turn.content))
    return messages


def _message_text(content: Any) -> str:
    """Flatten AIMessage content (a string or a list of content blocks) into text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def parse_completion(response: AIMessage) -> Completion:
    calls = []
    for tc in getattr(response, "tool_calls", None) or []:
        call = ToolCall(name=tc["name"], args=tc.get("args") or {})
        if tc.get("id"):
            call.id = tc["id"]
        calls.append(call)
    return Completion(text=_message_text(response.content).strip(), tool_calls=calls)


# ── AI completion adapter ───────────────────────────────────────────


class CompletionClient:
    """``complete(turns) → Completion`` over a LangChain chat model with tools bound."""

    def __init__(
        self,
        llm: BaseChatModel | None = None,
        tools: list[BaseTool] | None = None,
    ) -> None:
        llm = llm or _build_llm()
        self._llm = llm.bind_tools(tools if tools is not None else registry.declarations())
        self._service = "anthropic" if LLM_PROVIDER == "anthropic" else "gemini"

    def complete(self, turns: list[Turn]) -> Completion:
        """Request one completion.  Model/transport errors propagate to the caller."""
        with metrics.timed(self._service, "completion"):
            response = self._llm.invoke(to_messages(turns))
        completion = parse_completion(response)
        logger.debug(
            "Completion: %d chars, %d tool calls", len(completion.text), len(completion.tool_calls),
        )
        return completion


# ── Graph state ─────────────────────────────────────────────────────


class CycleState(TypedDict):
    """State for one message-in/reply-out cycle.

    ``session`` is borrowed from the store; nodes append turns to it.
    ``error`` is set (and the graph ends) when a completion fails.
    """

    session: Session
    pending: list[ToolCall]
    rounds: int
    reply: str
    error: str


def _accept(session: Session, completion: Completion) -> dict:
    if not completion.text:
        return {"error": "model returned an empty reply"}
    session.append(Turn.model(completion.text))
    return {"reply": completion.text, "pending": []}


def after_completion(state: CycleState) -> str:
    if state.get("error"):
        return END
    if state.get("pending"):
        return "tools"
    return END


def after_tools(state: CycleState) -> str:
    if state["rounds"] < MAX_TOOL_ROUNDS:
        return "chatbot"
    return "final"


def _recursion_limit() -> int:
    # chatbot + tools per round, then final, with headroom
    return 2 * MAX_TOOL_ROUNDS + 5


class ConversationOrchestrator:
    """Runs one request/response cycle per inbound message."""

    def __init__(
        self,
        store: SessionStore,
        completion_client: CompletionClient | None = None,
    ) -> None:
        self._store = store
        self._completion = completion_client or CompletionClient()
        self._graph = self._build_graph()

    # ── Nodes ────────────────────────────────────────────────────────

    def _complete(self, session: Session) -> Completion | str:
        """Completion, or an error description if the model call failed."""
        try:
            return self._completion.complete(session.turns)
        except Exception as exc:
            logger.error(
                "Completion failed for user %s: %s: %s",
                session.user_key, type(exc).__name__, exc,
            )
            return f"{type(exc).__name__}: {exc}"

    def _chatbot_node(self, state: CycleState) -> dict:
        session = state["session"]
        completion = self._complete(session)
        if isinstance(completion, str):
            return {"error": completion}
        if completion.wants_tools:
            logger.info("Function calls detected: %d", len(completion.tool_calls))
            return {"pending": completion.tool_calls}
        return _accept(session, completion)

    def _tools_node(self, state: CycleState) -> dict:
        session = state["session"]
        for call in state["pending"]:
            result = registry.execute(call)
            session.append(Turn.from_tool(call, result))
        return {"pending": [], "rounds": state["rounds"] + 1}

    def _final_node(self, state: CycleState) -> dict:
        session = state["session"]
        completion = self._complete(session)
        if isinstance(completion, str):
            return {"error": completion}
        if completion.wants_tools:
            # Tool-round budget is spent; only the text part is used
            logger.warning(
                "Ignoring %d further tool calls after %d round(s)",
                len(completion.tool_calls), state["rounds"],
            )
        return _accept(session, completion)

    def _build_graph(self):
        graph = StateGraph(CycleState)
        graph.add_node("chatbot", self._chatbot_node)
        graph.add_node("tools", self._tools_node)
        graph.add_node("final", self._final_node)

        graph.set_entry_point("chatbot")
        graph.add_conditional_edges("chatbot", after_completion, {"tools": "tools", END: END})
        graph.add_conditional_edges("tools", after_tools, {"chatbot": "chatbot", "final": "final"})
        graph.add_edge("final", END)
        return graph.compile()

    # ── Public API ───────────────────────────────────────────────────

    def handle_message(self, user_key: str, text: str) -> str:
        """Append *text* to the user's session and return the reply to send.

        Any failure once the cycle has started yields :data:`FALLBACK_REPLY`,
        with the session history left as far as the cycle got.

        Raises:
            ValueError: if *text* is blank; no session is touched.
        """
        if not text or not text.strip():
            raise ValueError("Cannot process an empty message")
        logger.info("Processing message for user %s: %s", user_key, text[:100])
        try:
            with self._store.acquire(user_key) as session:
                session.append(Turn.user(text))
                result = self._graph.invoke(
                    {"session": session, "pending": [], "rounds": 0, "reply": "", "error": ""},
                    config={"recursion_limit": _recursion_limit()},
                )
        except Exception:
            logger.exception("Error processing message for user %s", user_key)
            return FALLBACK_REPLY

        if result.get("error"):
            logger.error("Replying with fallback to %s: %s", user_key, result["error"])
            return FALLBACK_REPLY

        logger.info("Bot response for %s: %s", user_key, result["reply"][:100])
        return result["reply"]


def create_orchestrator(store: SessionStore | None = None) -> ConversationOrchestrator:
    """Build the orchestrator with the configured model and all registry tools."""
    orchestrator = ConversationOrchestrator(store or SessionStore())
    logger.debug(
        "Orchestrator ready - provider: %s, tools: %d, max tool rounds: %d",
        LLM_PROVIDER, len(registry.declarations()), MAX_TOOL_ROUNDS,
    )
    return orchestrator
