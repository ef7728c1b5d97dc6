"""In-memory per-user conversation sessions.

Each WhatsApp user (phone number without the ``whatsapp:`` prefix) owns one
:class:`Session` holding the chronological list of turns that is sent to
the model as context.  Sessions live until they are explicitly cleared;
nothing is persisted across restarts.

Locking
───────
• A store-level ``threading.Lock`` guards the key → session map.
• Every session carries its own lock.  :meth:`SessionStore.acquire` holds
  it for a whole request/response cycle so two messages from the same user
  never interleave their appends, while different users proceed in
  parallel on the worker thread pool.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from gdg_bot.models import Turn

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """A single user's conversation state."""

    user_key: str
    turns: list[Turn] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def append(self, turn: Turn) -> None:
        self.turns.append(turn)


@dataclass(frozen=True)
class SessionStats:
    active_sessions: int
    total_created: int


class SessionStore:
    """Owns every :class:`Session`, keyed by user."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._total_created = 0

    def get_or_create(self, user_key: str) -> Session:
        """Return the user's session, creating an empty one on first contact."""
        with self._lock:
            session = self._sessions.get(user_key)
            if session is None:
                session = Session(user_key=user_key)
                self._sessions[user_key] = session
                self._total_created += 1
                logger.info("Created chat session for user %s", user_key)
            return session

    @contextmanager
    def acquire(self, user_key: str) -> Iterator[Session]:
        """Yield the user's session while holding its lock.

        If the session is cleared while held, the holder keeps working on
        the detached session and its turns are simply discarded.
        """
        session = self.get_or_create(user_key)
        with session.lock:
            yield session

    def clear(self, user_key: str) -> bool:
        """Drop the user's session.  Returns ``True`` if one existed."""
        with self._lock:
            removed = self._sessions.pop(user_key, None)
        if removed is not None:
            logger.info("Chat session cleared for user %s", user_key)
        return removed is not None

    def history(self, user_key: str) -> list[Turn]:
        """Return a copy of the user's turns (empty if there is no session)."""
        with self._lock:
            session = self._sessions.get(user_key)
        if session is None:
            return []
        return list(session.turns)

    def stats(self) -> SessionStats:
        with self._lock:
            return SessionStats(
                active_sessions=len(self._sessions),
                total_created=self._total_created,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
