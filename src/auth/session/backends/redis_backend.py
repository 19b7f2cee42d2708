from typing import Dict, NoReturn, Optional
import logging

import redis.asyncio as aioredis
from redis import RedisError, ConnectionError as RedisConnectionError
from redis.asyncio.client import Pipeline
from pydantic import ValidationError

from ..models import LoginSession
from .base import BackendError, LoginSessionBackend

logger = logging.getLogger(__name__)


class RedisBackend(LoginSessionBackend):
    """
    Login sessions in Redis.

    Each session is a hash at `<namespace>:session:<id>` that Redis expires at
    the session's expiration. A set at `<namespace>:user_sessions:<username>`
    indexes a user's sessions and expires with the longest-lived of them.
    Index expiry relies on EXPIREAT NX/GT, which needs Redis 7.
    """

    def __init__(self, redis_client: aioredis.Redis, namespace: str):
        """Initialize the Redis backend with an async Redis client and a per-tenant key namespace."""
        self.redis_client = redis_client
        self.namespace = namespace

    def session_key(self, session_id: str) -> str:
        return f"{self.namespace}:session:{session_id}"

    def user_index_key(self, username: str) -> str:
        return f"{self.namespace}:user_sessions:{username}"

    def _handle_redis_error(self, operation: str, subject: str, error: Exception) -> NoReturn:
        """Centralized error handling for Redis operations."""
        if isinstance(error, RedisConnectionError):
            logger.error(f"Redis connection failed during {operation} for {subject}: {error}")
            raise BackendError(f"Database connection error during {operation}") from error
        elif isinstance(error, RedisError):
            logger.error(f"Redis error during {operation} for {subject}: {error}")
            raise BackendError(f"Database error during {operation}") from error
        else:
            logger.error(f"Unexpected error during {operation} for {subject}: {error}")
            raise BackendError(f"Unexpected error during {operation}") from error

    @staticmethod
    def _to_redis(data: LoginSession) -> Dict[str, str]:
        return {
            "id": data.id,
            "username": data.username,
            "expiration": data.expiration.isoformat(),
        }

    def _queue_write(self, pipe: Pipeline, session_id: str, data: LoginSession) -> None:
        key = self.session_key(session_id)
        index_key = self.user_index_key(data.username)
        pipe.hset(key, mapping=self._to_redis(data))
        pipe.expireat(key, data.expiration)
        pipe.sadd(index_key, session_id)
        # NX covers a fresh index, GT only ever extends an existing one
        pipe.expireat(index_key, data.expiration, nx=True)
        pipe.expireat(index_key, data.expiration, gt=True)

    async def create(self, session_id: str, data: LoginSession) -> None:
        key = self.session_key(session_id)
        try:
            async with self.redis_client.pipeline(transaction=True) as pipe:
                # The transaction aborts if the key appears between the check and EXEC
                await pipe.watch(key)
                if await pipe.exists(key):
                    raise BackendError("create can't overwrite an existing session")
                pipe.multi()
                self._queue_write(pipe, session_id, data)
                await pipe.execute()
            logger.debug(f"Session {session_id[:8]}... created for user {data.username}")
        except BackendError:
            raise
        except Exception as e:
            self._handle_redis_error("session creation", f"session {session_id[:8]}...", e)

    async def update(self, session_id: str, data: LoginSession) -> None:
        key = self.session_key(session_id)
        try:
            async with self.redis_client.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                previous_username = await pipe.hget(key, "username")
                if not previous_username:
                    raise BackendError("Session does not exist, cannot update")
                pipe.multi()
                if previous_username != data.username:
                    pipe.srem(self.user_index_key(previous_username), session_id)
                self._queue_write(pipe, session_id, data)
                await pipe.execute()
            logger.debug(f"Session {session_id[:8]}... updated successfully")
        except BackendError:
            raise
        except Exception as e:
            self._handle_redis_error("session update", f"session {session_id[:8]}...", e)

    async def read(self, session_id: str) -> Optional[LoginSession]:
        try:
            session_data = await self.redis_client.hgetall(self.session_key(session_id))  # type: ignore[misc]
        except Exception as e:
            self._handle_redis_error("session read", f"session {session_id[:8]}...", e)

        if not session_data:
            return None

        try:
            return LoginSession.model_validate(session_data)
        except ValidationError as e:
            logger.error(f"Invalid session data format for session {session_id[:8]}...: {e}")
            raise BackendError("Corrupted session data") from e

    async def delete(self, session_id: str) -> bool:
        key = self.session_key(session_id)
        try:
            username = await self.redis_client.hget(key, "username")  # type: ignore[misc]
            deleted_count = await self.redis_client.delete(key)

            if username:
                await self.redis_client.srem(self.user_index_key(username), session_id)  # type: ignore[misc]

            if deleted_count == 0:
                logger.debug(f"Session {session_id[:8]}... was not deleted, it does not exist")
                return False

            logger.debug(f"Session {session_id[:8]}... deleted successfully")
            return True
        except Exception as e:
            self._handle_redis_error("session deletion", f"session {session_id[:8]}...", e)

    async def delete_all_for_user(self, username: str) -> int:
        index_key = self.user_index_key(username)
        try:
            session_ids = await self.redis_client.smembers(index_key)  # type: ignore[misc]
            keys = [self.session_key(session_id) for session_id in session_ids]
            # Index entries can outlive sessions that expired on their own, so count what Redis removed
            deleted_count = await self.redis_client.delete(*keys) if keys else 0
            await self.redis_client.delete(index_key)
            logger.info(f"Deleted {deleted_count} sessions for user {username}")
            return deleted_count
        except Exception as e:
            self._handle_redis_error("bulk session deletion", f"user {username}", e)
