import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Optional

import redis.asyncio as aioredis

from auth.auth import BaseUserDirectory, InMemoryUserDirectory, RedisUserDirectory
from auth.identity import IdentityVerifier, RemoteIdentityVerifier
from auth.session.config import create_session_backend, get_cookie_name, secure_cookies_enabled
from auth.session.store import SessionStore
from session.formatter import SessionViewFormatter
from session.manager import DEFAULT_SESSION_TTL, SessionLifecycleManager

from . import config

logger = logging.getLogger('gateway.service.tenants')


@dataclass
class Tenant:
    name: str
    manager: SessionLifecycleManager
    formatter: SessionViewFormatter
    identity_verifier: Optional[IdentityVerifier] = None
    create_users_from_identity: bool = False

    @property
    def persona_enabled(self) -> bool:
        return self.identity_verifier is not None


class TenantRegistry:
    # Holds the session machinery of every tenant the service answers for

    def __init__(self):
        self.tenants: Dict[str, Tenant] = {}

    def register_tenant(self, tenant: Tenant):
        """
        Register a tenant under its name.

        Args:
            tenant (Tenant): The tenant to serve at /<tenant.name>/.
        """
        if not isinstance(tenant, Tenant):
            raise TypeError(f"{tenant!r} must be an instance of Tenant")
        self.tenants[tenant.name] = tenant

    def get(self, name: str) -> Optional[Tenant]:
        return self.tenants.get(name)

    async def close(self) -> None:
        for tenant in self.tenants.values():
            if tenant.identity_verifier:
                await tenant.identity_verifier.close()


def build_tenant(
    name: str,
    redis_client: Optional[aioredis.Redis] = None,
    default_ttl: timedelta = DEFAULT_SESSION_TTL,
    identity_verifier: Optional[IdentityVerifier] = None,
    create_users_from_identity: bool = False,
) -> Tenant:
    sessions = SessionStore(
        create_session_backend(name, redis_client),
        cookie_name=get_cookie_name(),
        secure_cookies=secure_cookies_enabled(),
    )
    users: BaseUserDirectory
    if redis_client:
        users = RedisUserDirectory(sessions, redis_client, namespace=name)
    else:
        users = InMemoryUserDirectory(sessions)

    return Tenant(
        name=name,
        manager=SessionLifecycleManager(name, users, sessions, default_ttl=default_ttl),
        formatter=SessionViewFormatter.for_tenant(persona_enabled=identity_verifier is not None),
        identity_verifier=identity_verifier,
        create_users_from_identity=create_users_from_identity,
    )


def build_tenant_registry(redis_client: Optional[aioredis.Redis] = None) -> TenantRegistry:
    """Build every configured tenant from environment settings."""
    registry = TenantRegistry()
    persona_tenants = config.get_persona_tenants()
    verifier_url = config.get_identity_verifier_url()
    default_ttl = config.get_default_session_ttl()

    for name in config.get_tenant_names():
        verifier = None
        if name in persona_tenants:
            if verifier_url:
                verifier = RemoteIdentityVerifier(verifier_url)
            else:
                logger.warning(f"Tenant {name} enables persona login but IDENTITY_VERIFIER_URL is not set")
        registry.register_tenant(build_tenant(
            name,
            redis_client=redis_client,
            default_ttl=default_ttl,
            identity_verifier=verifier,
            create_users_from_identity=config.auto_register_users(),
        ))
        logger.info(f"Tenant {name} ready (persona login: {verifier is not None})")

    return registry
