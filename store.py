"""In-memory calculator session store.

Each session owns exactly one calculator engine.  All key presses go
through the store, which maintains the press counter and timestamp
bookkeeping.  Nothing is persisted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from calculator import Calculator, CalculatorState
from models import SessionPublic, _new_id, _utcnow

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 1_000


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SessionNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionLimitError(Exception):
    """Raised when the store is full."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Session limit reached: {limit}")


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass
class Session:
    id: str
    calculator: Calculator = field(default_factory=Calculator)
    keys_pressed: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def state(self) -> CalculatorState:
        return self.calculator.state

    def to_public(self) -> SessionPublic:
        return SessionPublic.from_state(
            self.id,
            self.state,
            keys_pressed=self.keys_pressed,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------

class SessionStore:
    """In-memory store of calculator sessions."""

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be >= 1, got {max_sessions}")
        self.max_sessions = max_sessions
        self._sessions: dict[str, Session] = {}

    def create(self) -> Session:
        """Start a new session with a cleared calculator."""
        if len(self._sessions) >= self.max_sessions:
            raise SessionLimitError(self.max_sessions)

        now = _utcnow()
        session = Session(id=_new_id(), created_at=now, updated_at=now)
        self._sessions[session.id] = session
        logger.info("created session %s", session.id)
        return session

    def get(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def list(self, *, offset: int = 0, limit: int = 50) -> list[Session]:
        """List sessions, newest first."""
        items = sorted(
            self._sessions.values(), key=lambda s: s.created_at, reverse=True
        )
        return items[offset : offset + limit]

    def press(self, session_id: str, label: str) -> Session:
        """Forward one key label to the session's calculator."""
        return self.press_all(session_id, [label])

    def press_all(self, session_id: str, labels: list[str]) -> Session:
        """Forward key labels to the session's calculator in order."""
        session = self.get(session_id)
        for label in labels:
            state = session.calculator.handle_key(label)
            logger.debug(
                "session %s key %r -> display %r", session_id, label, state.display
            )
        session.keys_pressed += len(labels)
        session.updated_at = _utcnow()
        return session

    def delete(self, session_id: str) -> Session:
        """Delete a session and return it."""
        session = self.get(session_id)
        del self._sessions[session_id]
        logger.info("deleted session %s", session_id)
        return session

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions (useful for testing)."""
        self._sessions.clear()
