import threading
import time
from typing import Callable, Dict, Optional

from lms.domain.errors import SessionNotFoundError
from lms.infrastructure.config import settings
from lms.services import session_events as ev
from lms.services.quiz_session import QuizSession
from lms_utils.logger_utils import logger


class SessionRegistry:
    """
    In-memory quiz sessions for the HTTP layer, keyed by session id.

    A session leaves the registry when its result is saved, when it is
    discarded, or after `idle_ttl` seconds without being looked up.
    """

    def __init__(self, idle_ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.idle_ttl = idle_ttl if idle_ttl is not None else settings.SESSION_IDLE_TTL_SECONDS
        self.clock = clock
        self._sessions: Dict[str, QuizSession] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def add(self, session: QuizSession) -> QuizSession:
        self.evict_idle()
        with self._lock:
            self._sessions[session.id] = session
            self._last_seen[session.id] = self.clock()
        session.events.subscribe(ev.RESULT_SAVED, lambda payload: self.discard(payload["session_id"]))
        return session

    def get(self, session_id: str) -> QuizSession:
        self.evict_idle()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_seen[session_id] = self.clock()
        if session is None:
            raise SessionNotFoundError(f"Quiz session {session_id} not found.")
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
            self._last_seen.pop(session_id, None)

    def evict_idle(self) -> int:
        """Cancel and drop sessions idle for longer than idle_ttl."""
        cutoff = self.clock() - self.idle_ttl
        with self._lock:
            expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
            sessions = [self._sessions.pop(sid) for sid in expired]
            for sid in expired:
                del self._last_seen[sid]

        for session in sessions:
            session.cancel()
        if sessions:
            logger.info(f"Evicted {len(sessions)} idle quiz sessions")
        return len(sessions)

    def __len__(self):
        with self._lock:
            return len(self._sessions)


session_registry = SessionRegistry()
