"""Routes an inbound WhatsApp message to a reserved command or the orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from gdg_bot.agent import ConversationOrchestrator
from gdg_bot.commands import (
    HELP_TEXT,
    RESET_TEXT,
    WELCOME_TEXT,
    Command,
    match_command,
    status_text,
)
from gdg_bot.models import SendResult
from gdg_bot.services.whatsapp import WhatsAppMessenger, normalize_address
from gdg_bot.session import SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    user_key: str
    reply: str
    command: Command | None
    delivery: SendResult


class MessageDispatcher:
    """Command handling plus delivery of the reply.

    Reserved commands never create a session; only messages that reach
    the orchestrator do.
    """

    def __init__(
        self,
        store: SessionStore,
        orchestrator: ConversationOrchestrator,
        messenger: WhatsAppMessenger,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._messenger = messenger
        self._clock = clock

    def reply_for(self, user_key: str, body: str) -> tuple[str, Command | None]:
        """Compute the reply to *body* without sending it.

        Raises:
            ValueError: if *body* is blank.
        """
        if not body or not body.strip():
            raise ValueError("Cannot reply to an empty message")
        command = match_command(body)
        if command is Command.WELCOME:
            return WELCOME_TEXT, command
        if command is Command.HELP:
            return HELP_TEXT, command
        if command is Command.RESET:
            self._store.clear(user_key)
            return RESET_TEXT, command
        if command is Command.STATUS:
            return status_text(self._store.stats().active_sessions, self._clock()), command
        return self._orchestrator.handle_message(user_key, body.strip()), None

    def handle(self, sender: str, body: str | None) -> DispatchOutcome | None:
        """Answer one inbound message and deliver the reply.

        Returns ``None`` when there is nothing to answer (empty body, e.g. a
        media-only message).
        """
        user_key = normalize_address(sender)
        if not body or not body.strip():
            logger.warning("Empty message received from %s", user_key)
            return None

        logger.info("Message from %s: %s", user_key, body[:100])
        reply, command = self.reply_for(user_key, body)
        if command is not None:
            logger.info("Handled '%s' command for %s", command.value, user_key)

        delivery = self._messenger.send(user_key, reply)
        if delivery.success:
            logger.info("Response sent successfully to %s", user_key)
        else:
            logger.error("Failed to send response to %s: %s", user_key, delivery.error)
        return DispatchOutcome(user_key, reply, command, delivery)
