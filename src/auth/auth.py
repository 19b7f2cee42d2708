import json
import logging
import re
import secrets
from typing import Dict, Optional

import redis.asyncio as aioredis
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from redis import RedisError

from .schema import User
from .session.backends import BackendError
from .session.store import SessionStore

logger = logging.getLogger('gateway.auth')

GUEST_USERNAME = "GUEST"

_password_hasher = PasswordHasher()

# Whitespace and the characters the path and channel grammars reserve
_INVALID_PRINCIPAL_CHARS = re.compile(r"[\s/:,`]")


def is_valid_principal_name(name: str) -> bool:
    if not name:
        return False
    if _INVALID_PRINCIPAL_CHARS.search(name):
        return False
    return all(char.isprintable() for char in name)


def username_from_identity(identity: str) -> str:
    """Derive a principal name from a verified identity such as an email address."""
    return _INVALID_PRINCIPAL_CHARS.sub("_", identity.strip())


def is_registrable_name(name: str) -> bool:
    """Whether a new user may be created under `name`. The guest name is reserved."""
    return name != GUEST_USERNAME and is_valid_principal_name(name)


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(user: User, password: str) -> bool:
    if not user.password_hash or not password:
        return False
    try:
        return _password_hasher.verify(user.password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


class UserExistsError(Exception):
    """Raised when provisioning would overwrite an existing user record."""


class BaseUserDirectory():
    def __init__(self, sessions: SessionStore):
        """
        Initialize the directory with the session store of the same tenant.

        Args:
            sessions (SessionStore): Store whose sessions are removed by
                delete_all_sessions.
        """
        self.sessions = sessions

    async def get_user(self, name: str) -> Optional[User]:
        raise NotImplementedError

    async def get_user_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    async def save_user(self, user: User) -> None:
        raise NotImplementedError

    async def insert_user(self, user: User) -> bool:
        """Save `user` only if no user has its name, atomically. Returns False when the name is taken."""
        raise NotImplementedError

    async def authenticate(self, name: str, password: str) -> Optional[User]:
        """
        Return the user when `password` matches their credential, None otherwise.

        An unknown user and a wrong password both give None.
        """
        user = await self.get_user(name)
        if user is None or not verify_password(user, password):
            return None
        return user

    async def create_user(self, identity: str) -> User:
        """
        Provision a user for a verified identity, named after it, with a random password.

        Raises:
            ValueError: if no usable name can be derived from the identity.
            UserExistsError: if a user with the derived name already exists.
        """
        name = username_from_identity(identity)
        if not is_registrable_name(name):
            raise ValueError(f"Cannot register new user: no valid name in identity {identity!r}")

        user = User(
            name=name,
            password_hash=hash_password(secrets.token_hex(20)),
            email=identity,
        )
        if not await self.insert_user(user):
            raise UserExistsError(f"Cannot register new user: name {name!r} is taken")
        logger.info(f"Registered new user {name} from verified identity")
        return user

    async def delete_all_sessions(self, username: str) -> int:
        return await self.sessions.delete_all(username)


class InMemoryUserDirectory(BaseUserDirectory):
    def __init__(self, sessions: SessionStore):
        super().__init__(sessions)
        self.users: Dict[str, User] = {}

    async def get_user(self, name: str) -> Optional[User]:
        return self.users.get(name)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return next((user for user in self.users.values() if user.email == email), None)

    async def save_user(self, user: User) -> None:
        self.users[user.name] = user

    async def insert_user(self, user: User) -> bool:
        if user.name in self.users:
            return False
        self.users[user.name] = user
        return True

    async def delete_user(self, name: str) -> None:
        self.users.pop(name, None)


class RedisUserDirectory(BaseUserDirectory):
    def __init__(self, sessions: SessionStore, redis_client: aioredis.Redis, namespace: str):
        super().__init__(sessions)
        self.redis_client = redis_client
        self.namespace = namespace

    def user_key(self, name: str) -> str:
        return f"{self.namespace}:user:{name}"

    def email_key(self, email: str) -> str:
        return f"{self.namespace}:user_email:{email}"

    async def get_user(self, name: str) -> Optional[User]:
        if not name:
            return None
        try:
            raw = await self.redis_client.get(self.user_key(name))
        except RedisError as e:
            logger.error(f"Redis error reading user {name}: {e}")
            raise BackendError("Database error during user read") from e
        if not raw:
            return None
        return User.model_validate(json.loads(raw))

    async def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        try:
            name = await self.redis_client.get(self.email_key(email))
        except RedisError as e:
            logger.error(f"Redis error resolving user email: {e}")
            raise BackendError("Database error during user read") from e
        if not name:
            return None
        user = await self.get_user(name)
        # The index may point at a user whose email has since changed
        if user is None or user.email != email:
            return None
        return user

    async def _write_user(self, user: User, only_if_new: bool) -> bool:
        record = {**user.model_dump(), "password_hash": user.password_hash}
        try:
            written = await self.redis_client.set(self.user_key(user.name), json.dumps(record), nx=only_if_new)
            if not written:
                return False
            if user.email:
                await self.redis_client.set(self.email_key(user.email), user.name)
        except RedisError as e:
            logger.error(f"Redis error saving user {user.name}: {e}")
            raise BackendError("Database error during user save") from e
        logger.debug(f"Saved user {user.name}")
        return True

    async def save_user(self, user: User) -> None:
        await self._write_user(user, only_if_new=False)

    async def insert_user(self, user: User) -> bool:
        # SET NX, so concurrent registrations of one name cannot overwrite each other
        return await self._write_user(user, only_if_new=True)
