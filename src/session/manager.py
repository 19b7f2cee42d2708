import logging
from datetime import timedelta
from typing import Any, Optional, Tuple

from auth.auth import BaseUserDirectory, is_registrable_name, username_from_identity
from auth.schema import User
from auth.session.cookie import LoginCookie, make_session_cookie
from auth.session.models import LoginSession
from auth.session.store import SessionStore

from .errors import BadRequest, NotFound, Unauthorized
from .models import BulkDeleteResult, SessionDescriptor
from .validation import WILDCARD_SESSION_KEY, parse_session_keys, parse_ttl, validate_principal_name

logger = logging.getLogger('gateway.session.manager')

DEFAULT_SESSION_TTL = timedelta(hours=24)


def mask_session_id(session_id: str) -> str:
    return f"{session_id[:8]}..." if len(session_id) > 8 else "***"


class SessionLifecycleManager:
    """
    Issues, looks up and revokes the login sessions of one tenant.

    Holds no mutable state of its own: users and sessions live in the
    directory and the store, so one manager serves concurrent requests.
    Operations named `*administered*` and `delete_sessions_bulk` assume the
    caller already passed the admin gate.
    """

    def __init__(
        self,
        tenant_name: str,
        users: BaseUserDirectory,
        sessions: SessionStore,
        default_ttl: timedelta = DEFAULT_SESSION_TTL,
    ):
        self.tenant_name = tenant_name
        self.users = users
        self.sessions = sessions
        self.default_ttl = default_ttl

    @property
    def cookie_path(self) -> str:
        return f"/{self.tenant_name}/"

    async def authenticate(self, name: str, password: str) -> Optional[User]:
        return await self.users.authenticate(name, password)

    async def create_session(self, user: Optional[User], ttl: Optional[timedelta] = None) -> Tuple[LoginSession, LoginCookie]:
        if user is None:
            raise Unauthorized("Invalid login")

        session = await self.sessions.create(user.name, ttl or self.default_ttl)
        cookie = make_session_cookie(
            session,
            path=self.cookie_path,
            cookie_name=self.sessions.cookie_name,
            secure=self.sessions.secure_cookies,
        )
        logger.info(f"Created session {mask_session_id(session.id)} for user {user.name} in {self.tenant_name}")
        return session, cookie

    async def create_session_from_verified_identity(
        self,
        identity: str,
        create_user_if_needed: bool,
    ) -> Tuple[LoginSession, LoginCookie]:
        """
        Log in the user owning an identity that was already verified upstream.

        With `create_user_if_needed`, an unknown identity gets a new user first.
        A failed registration raises before any session exists.
        """
        user = await self.users.get_user_by_email(identity)
        if user is None:
            # The identity is authentic but no account carries it
            if not create_user_if_needed:
                raise Unauthorized("No such user")
            if not identity or not identity.strip():
                raise BadRequest("Cannot register new user: email is missing")
            if not is_registrable_name(username_from_identity(identity)):
                raise BadRequest("Cannot register new user: no valid user name in identity")
            user = await self.users.create_user(identity)

        return await self.create_session(user)

    async def create_administered_session(self, name: Optional[str], ttl: Any = None) -> SessionDescriptor:
        name = validate_principal_name(name)
        if await self.users.get_user(name) is None:
            raise NotFound("No such user")
        session_ttl = parse_ttl(ttl, self.default_ttl)

        session = await self.sessions.create(name, session_ttl)
        logger.info(f"Admin created session {mask_session_id(session.id)} for user {name} in {self.tenant_name}")
        return SessionDescriptor(
            session_id=session.id,
            expires=session.expiration,
            cookie_name=self.sessions.cookie_name,
        )

    async def get_session(self, session_id: str) -> LoginSession:
        session = await self.sessions.get(session_id)
        if session is None:
            raise NotFound("missing")
        return session

    async def get_session_user(self, session: LoginSession) -> Optional[User]:
        """The user behind a session, or None if that user has been deleted since."""
        return await self.users.get_user(session.username)

    async def current_user(self, session_id: Optional[str]) -> Optional[User]:
        if not session_id:
            return None
        session = await self.sessions.get(session_id)
        if session is None:
            return None
        return await self.get_session_user(session)

    async def delete_session(self, session_id: str) -> None:
        if not await self.sessions.delete(session_id):
            raise NotFound("missing")
        logger.info(f"Deleted session {mask_session_id(session_id)} in {self.tenant_name}")

    async def logout(self, session_id: Optional[str]) -> LoginCookie:
        """Delete the caller's own session and return the cookie that clears it."""
        cookie = await self.sessions.delete_for_cookie(session_id, self.cookie_path)
        if cookie is None:
            raise NotFound("no session")
        logger.info(f"Logged out session {mask_session_id(session_id or '')} in {self.tenant_name}")
        return cookie

    async def delete_session_if_owned_by(self, session_id: str, username: str) -> None:
        """
        Delete a session only if it belongs to `username`.

        Absent sessions and sessions of other users are left alone without an
        error, so callers cannot probe for session ids owned by someone else.
        """
        session = await self.sessions.get(session_id)
        if session is not None and session.username == username:
            await self.sessions.delete(session_id)

    async def delete_administered_session(self, session_id: str, username: Optional[str] = None) -> None:
        if username:
            await self.delete_session_if_owned_by(session_id, username)
        else:
            await self.delete_session(session_id)

    async def delete_sessions_bulk(self, username: str, payload: Any) -> BulkDeleteResult:
        """
        Delete several sessions of one user. A "*" key anywhere deletes all of them.

        The payload is validated in full before anything is deleted. After that
        the batch always completes: per-item failures are collected in the
        result and deliberately not raised.
        """
        session_ids = parse_session_keys(payload)
        result = BulkDeleteResult(username=username, requested=session_ids)

        if WILDCARD_SESSION_KEY in session_ids:
            await self.users.delete_all_sessions(username)
            result.deleted_all = True
            return result

        for session_id in session_ids:
            try:
                await self.delete_session_if_owned_by(session_id, username)
            except Exception as e:
                result.failed.append(session_id)
                logger.warning(f"Ignoring failed delete of session {mask_session_id(session_id)} for {username}: {e}")

        return result
