import logging

from fastapi_sessions.backends.implementations import InMemoryBackend

from ..models import LoginSession
from .base import LoginSessionBackend

logger = logging.getLogger(__name__)


class InMemorySessionBackend(InMemoryBackend[str, LoginSession], LoginSessionBackend):
    """Process-local session storage, for tests and single-process development."""

    async def delete(self, session_id: str) -> bool:
        return self.data.pop(session_id, None) is not None

    async def delete_all_for_user(self, username: str) -> int:
        session_ids = [sid for sid, session in self.data.items() if session.username == username]
        for session_id in session_ids:
            del self.data[session_id]
        logger.debug(f"Deleted {len(session_ids)} in-memory sessions for user {username}")
        return len(session_ids)
