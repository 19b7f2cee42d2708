import logging
from typing import AsyncGenerator
from fastapi import FastAPI
from contextlib import asynccontextmanager

from . import config
from .redis_client import connect_redis_client, close_redis_clients
from .tenants import build_tenant_registry

logger = logging.getLogger("gateway.service.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # A registry handed to create_app (tests, embedding) is used as-is
    if getattr(app.state, "tenant_registry", None) is None:
        redis_client = None
        if config.use_redis():
            redis_client = await connect_redis_client()
            if redis_client is None:
                logger.warning("Redis unavailable, sessions and users are kept in memory for this process")
        app.state.tenant_registry = build_tenant_registry(redis_client)

    yield

    # Cleanup during shutdown
    await app.state.tenant_registry.close()
    await close_redis_clients()
    logger.info("Session gateway shut down")
