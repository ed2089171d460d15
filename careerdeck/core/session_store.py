from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from careerdeck.ui.session import ResumeSession

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    """In-memory sessions. Nothing outlives the process."""

    def __init__(self, ttl_minutes: int = 120):
        self._ttl = timedelta(minutes=max(1, ttl_minutes))
        self._sessions: dict[str, "ResumeSession"] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def new_id(self) -> str:
        return secrets.token_urlsafe(12)

    def add(self, session: "ResumeSession") -> None:
        self.purge_expired()
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> "ResumeSession | None":
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.touched_at + self._ttl <= _utc_now():
            self.remove(session_id)
            return None
        session.touch()
        return session

    def remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()

    def purge_expired(self) -> int:
        cutoff = _utc_now() - self._ttl
        expired = [sid for sid, session in self._sessions.items() if session.touched_at <= cutoff]
        for sid in expired:
            self.remove(sid)
        if expired:
            logger.info("session_purge removed=%s", len(expired))
        return len(expired)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.remove(sid)
