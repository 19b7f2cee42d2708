import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from .backends import LoginSessionBackend
from .cookie import LoginCookie
from .models import LoginSession, utcnow

logger = logging.getLogger('gateway.session.store')


def generate_session_id() -> str:
    return secrets.token_hex(20)


class SessionStore:
    """
    Allocates, looks up and removes login sessions on top of a LoginSessionBackend.

    Expired sessions are treated as absent on every lookup, whatever the backend
    still holds; there is no reaper here.
    """

    def __init__(
        self,
        backend: LoginSessionBackend,
        cookie_name: str,
        secure_cookies: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.backend = backend
        self.cookie_name = cookie_name
        self.secure_cookies = secure_cookies
        self.clock = clock

    async def create(self, username: str, ttl: timedelta) -> LoginSession:
        session = LoginSession(
            id=generate_session_id(),
            username=username,
            expiration=self.clock() + ttl,
        )
        await self.backend.create(session.id, session)
        return session

    async def get(self, session_id: str) -> Optional[LoginSession]:
        if not session_id:
            return None
        session = await self.backend.read(session_id)
        if session is None or session.is_expired(self.clock()):
            return None
        return session

    async def delete(self, session_id: str) -> bool:
        """Delete a live session. Returns False when there was none to delete."""
        if await self.get(session_id) is None:
            return False
        return await self.backend.delete(session_id)

    async def delete_for_cookie(self, session_id: Optional[str], path: str) -> Optional[LoginCookie]:
        """
        Delete the session a request's cookie refers to.

        Returns the cookie that clears the client's copy, or None when nothing
        was deleted.
        """
        if not session_id or not await self.delete(session_id):
            return None
        return LoginCookie.clearing(self.cookie_name, path, secure=self.secure_cookies)

    async def delete_all(self, username: str) -> int:
        return await self.backend.delete_all_for_user(username)
