"""
Session Registry

In-process store of generation sessions.
"""

from typing import Dict, List

from slidecraft.core.constants import ImageSize
from slidecraft.core.exceptions import SessionNotFoundError
from slidecraft.session import GenerationSession

from .logging import get_logger

logger = get_logger("sessions")


class SessionRegistry:
    """Sessions keyed by id, each owned by exactly one user."""

    def __init__(self):
        self._sessions: Dict[str, GenerationSession] = {}

    def create(self, user_id: str, size: ImageSize = ImageSize.SIZE_1K) -> GenerationSession:
        session = GenerationSession(user_id=user_id, size=size)
        self._sessions[session.id] = session
        logger.info(f"Session {session.id} created for {user_id}")
        return session

    def get(self, session_id: str, user_id: str) -> GenerationSession:
        """
        Raises:
            SessionNotFoundError: unknown id, or owned by another user
        """
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise SessionNotFoundError(session_id)
        return session

    def list_for(self, user_id: str) -> List[GenerationSession]:
        return [s for s in self._sessions.values() if s.user_id == user_id]

    def remove(self, session_id: str, user_id: str) -> None:
        """Drop a session; a batch still running on it stops before its next scene."""
        session = self.get(session_id, user_id)
        session.cancel_event.set()
        del self._sessions[session_id]
        logger.info(f"Session {session_id} removed")

    def cancel_all(self) -> int:
        """Ask every running batch to stop. Returns how many were running."""
        running = 0
        for session in self._sessions.values():
            if session.store.batch_running:
                session.cancel_event.set()
                running += 1
        return running

    def __len__(self) -> int:
        return len(self._sessions)
