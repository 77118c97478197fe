"""In-memory registry of classification sessions."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ecoclear.session.orchestrator import ClassificationSession

if TYPE_CHECKING:
    from ecoclear.ml.waste_classifier import WasteClassifier

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates, looks up, and evicts sessions. Lives on the event loop."""

    def __init__(self, classifier: WasteClassifier, session_ttl: int, max_sessions: int) -> None:
        self._classifier = classifier
        self._session_ttl = session_ttl
        self._max_sessions = max_sessions
        self._sessions: dict[str, ClassificationSession] = {}

    def create(self) -> ClassificationSession:
        """Create a session and start loading its model in the background."""
        self.evict_idle()
        if len(self._sessions) >= self._max_sessions:
            self._evict_oldest()

        session = ClassificationSession(self._classifier)
        self._sessions[session.id] = session
        session.launch()
        logger.info("Created session %s (%d active)", session.id, len(self._sessions))
        return session

    def get(self, session_id: str) -> ClassificationSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.close()
        logger.info("Closed session %s", session_id)
        return True

    def evict_idle(self) -> list[str]:
        """Close sessions idle for longer than the TTL. Busy sessions are kept."""
        if self._session_ttl == 0:
            return []

        now = time.monotonic()
        expired = [
            sid
            for sid, session in self._sessions.items()
            if (now - session.last_active) > self._session_ttl and not session.is_busy
        ]
        for sid in expired:
            self._sessions.pop(sid).close()
            logger.info("Evicted idle session %s", sid)
        return expired

    def shutdown(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
        logger.info("All classification sessions closed")

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_oldest(self) -> None:
        candidates = [s for s in self._sessions.values() if not s.is_busy] or list(self._sessions.values())
        oldest = min(candidates, key=lambda s: s.last_active)
        self._sessions.pop(oldest.id).close()
        logger.info("Session limit reached, evicted %s", oldest.id)
