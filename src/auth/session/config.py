import os
import logging
from typing import Optional

import redis.asyncio as aioredis

from .backends import InMemorySessionBackend, LoginSessionBackend, RedisBackend

logger = logging.getLogger('gateway.session.config')

DEFAULT_COOKIE_NAME = "AuthSession"


def get_cookie_name() -> str:
    return os.getenv("SESSION_COOKIE_NAME", DEFAULT_COOKIE_NAME)


def secure_cookies_enabled() -> bool:
    # For development, allow insecure cookies over HTTP
    return os.getenv("SECURE_COOKIES", "true").lower() == "true"


def create_session_backend(tenant_name: str, redis_client: Optional[aioredis.Redis]) -> LoginSessionBackend:
    """Session storage for one tenant: Redis when a client is available, memory otherwise."""
    if not redis_client:
        logger.warning(f"No Redis client for tenant {tenant_name}, falling back to InMemorySessionBackend for sessions")
        return InMemorySessionBackend()
    return RedisBackend(redis_client=redis_client, namespace=tenant_name)
