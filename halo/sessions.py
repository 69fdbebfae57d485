"""
In-process session store.

Sessions map an opaque token to an account email and an expiry. They live
only as long as the process: a restart signs everybody out, and the account
document in the database remains the only durable state.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from .config import SESSION_TTL_DAYS

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = SESSION_TTL_DAYS * 24 * 60 * 60


@dataclass
class Session:
    email: str
    expires: float


class SessionStore:
    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()

    def create(self, email: str) -> str:
        session_id = f"session_{int(time.time() * 1000)}_{secrets.token_urlsafe(24)}"
        with self._lock:
            self._sessions[session_id] = Session(email=email, expires=time.time() + self.ttl_seconds)
        logger.info(f"🔑 Session created for {email}")
        return session_id

    def verify(self, session_id: Optional[str]) -> Optional[str]:
        """Return the email behind ``session_id``, dropping it if expired"""
        if not session_id:
            return None
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.expires < time.time():
                del self._sessions[session_id]
                logger.debug("Session expired and removed")
                return None
            return session.email

    def delete(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def __len__(self):
        with self._lock:
            return len(self._sessions)


sessions = SessionStore()
