from abc import abstractmethod

from fastapi_sessions.backends.session_backend import BackendError, SessionBackend

from ..models import LoginSession


class LoginSessionBackend(SessionBackend[str, LoginSession]):
    """
    SessionBackend for login sessions keyed by their opaque id, with a per-user view.

    `delete` reports whether anything was stored under the id instead of
    failing on a missing session, so revocation stays idempotent.
    """

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_all_for_user(self, username: str) -> int:
        """Delete every session owned by `username`, returning how many went."""
        raise NotImplementedError


__all__ = ["BackendError", "LoginSessionBackend"]
