import redis.asyncio as aioredis
import os
import logging
from typing import Optional

from redis import RedisError

logger = logging.getLogger('gateway.service.redis')

redis_clients = {}


def get_redis_client() -> aioredis.Redis:
    if not redis_clients or 'default' not in redis_clients:

        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")
        logger.info(f"Creating new default Redis client with: URL {redis_url}")
        redis_clients['default'] = aioredis.from_url(redis_url, decode_responses=True)

    return redis_clients['default']


async def connect_redis_client() -> Optional[aioredis.Redis]:
    """Return the default client if Redis answers a ping, None otherwise."""
    client = get_redis_client()
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Redis is not reachable: {e}")
        return None
    return client


async def close_redis_clients() -> None:
    for name, client in list(redis_clients.items()):
        await client.aclose()
        del redis_clients[name]
        logger.info(f"Closed Redis client '{name}'")
