"""Reserved chat commands and the fixed texts the bot sends for them.

A message is a command only if its whole body (trimmed, case-insensitive)
is one of the keywords below; "hi there" goes to the model as usual.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum


class Command(str, Enum):
    WELCOME = "welcome"
    HELP = "help"
    RESET = "reset"
    STATUS = "status"


_KEYWORDS: dict[str, Command] = {
    "start": Command.WELCOME,
    "hello": Command.WELCOME,
    "hi": Command.WELCOME,
    "help": Command.HELP,
    "menu": Command.HELP,
    "commands": Command.HELP,
    "reset": Command.RESET,
    "clear": Command.RESET,
    "restart": Command.RESET,
    "status": Command.STATUS,
    "health": Command.STATUS,
}


def match_command(body: str | None) -> Command | None:
    """Return the command *body* invokes, or ``None`` for a normal message."""
    return _KEYWORDS.get((body or "").strip().lower())


WELCOME_TEXT = """Hello there! 👋

Welcome to GDG Event Assistant! I'm here to help you with:

📅 Upcoming events and schedules
🎤 Speaker information and bios
❓ Frequently asked questions
📚 Community resources and materials
📊 Past event insights

Just ask me anything about our GDG community! For example:
• "What events are coming up?"
• "Tell me about the speakers"
• "How do I join the community?"
• "What happened at the last event?"

What would you like to know? 🚀"""

HELP_TEXT = """Here's how I can help you! 🤖

📅 *Events*
• "What events are coming up?"
• "When is the next workshop?"
• "Tell me about [event name]"

🎤 *Speakers*
• "Who is speaking at [event]?"
• "Tell me about [speaker name]"

❓ *General Questions*
• "How do I join GDG?"
• "Where are events held?"

📚 *Resources*
• "Show me learning materials"
• "What resources are available?"

Type *reset* to start a fresh conversation.
Just type your question naturally - I'll understand! 😊"""

RESET_TEXT = "Conversation reset! How can I help you today? 🔄"


def status_text(active_sessions: int, now: datetime) -> str:
    return (
        "🤖 GDG Bot Status:\n\n"
        "✅ Bot is running\n"
        f"📊 Active sessions: {active_sessions}\n"
        f"🕐 Server time: {now.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}"
    )


API_ERROR_TEXT = (
    "I'm having trouble connecting to our services right now. "
    "Please try again in a few minutes! 🔧"
)
