from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..users.model import Actor
from .client import ClientSession, EmployeeWorkStatus

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Actor], ClientSession]


class ClientSessionRegistry:
    """Open client sessions keyed by (company_id, user_id)."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory
        self._sessions: dict[tuple[str, str], ClientSession] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(actor: Actor) -> tuple[str, str]:
        return (actor.company_id, actor.user_id)

    def get(self, actor: Actor) -> Optional[ClientSession]:
        with self._lock:
            return self._sessions.get(self._key(actor))

    def open(self, actor: Actor) -> ClientSession:
        existing = self.get(actor)
        if existing is not None:
            return existing

        session = self._session_factory(actor).open()
        with self._lock:
            current = self._sessions.setdefault(self._key(actor), session)
        if current is not session:
            session.close()
        else:
            logger.info("Opened client session for user=%s company=%s", actor.user_id, actor.company_id)
        return current

    def close(self, actor: Actor) -> bool:
        with self._lock:
            session = self._sessions.pop(self._key(actor), None)
        if session is None:
            return False
        session.close()
        logger.info("Closed client session for user=%s company=%s", actor.user_id, actor.company_id)
        return True

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def tick_all(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
        for session in sessions:
            session.tick()
        return len(sessions)

    def employee_statuses(self, company_id: str) -> list[EmployeeWorkStatus]:
        with self._lock:
            sessions = [s for (cid, _), s in self._sessions.items() if cid == str(company_id)]
        return sorted((s.status() for s in sessions), key=lambda st: st.name)
