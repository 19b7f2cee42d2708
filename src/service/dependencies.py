"""
FastAPI dependencies for the session gateway.

This module provides reusable dependency functions that can be injected
into route handlers throughout the application.
"""
import hmac
import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from auth.schema import User
from session.errors import Unauthorized

from .tenants import Tenant, TenantRegistry

logger = logging.getLogger('gateway.service.dependencies')

AdminPredicate = Callable[[Request], bool]

basic_auth = HTTPBasic(auto_error=False)


def api_key_admin_predicate(admin_api_key: Optional[str]) -> AdminPredicate:
    """
    Build the default admin gate: a bearer token equal to the configured admin key.

    With no key configured every request is refused.
    """
    def is_admin(request: Request) -> bool:
        if not admin_api_key:
            return False
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            return False
        return hmac.compare_digest(token.encode(), admin_api_key.encode())

    return is_admin


def get_tenant_registry(request: Request) -> TenantRegistry:
    return request.app.state.tenant_registry


def get_tenant(tenant: str, registry: TenantRegistry = Depends(get_tenant_registry)) -> Tenant:
    """Resolve the {tenant} path segment, 404 when the service has no such tenant."""
    found = registry.get(tenant)
    if found is None:
        raise HTTPException(status_code=404, detail=f"no such database {tenant!r}")
    return found


def require_admin(request: Request) -> None:
    is_admin: AdminPredicate = request.app.state.admin_predicate
    if not is_admin(request):
        logger.warning(f"Admin request refused for {request.method} {request.url.path}")
        raise HTTPException(status_code=403, detail="Admin access required")


async def get_current_user(
    request: Request,
    tenant: Tenant = Depends(get_tenant),
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
) -> Optional[User]:
    """
    The caller's user: HTTP Basic credentials first, then the session cookie.

    Returns None for anonymous callers. Wrong Basic credentials are an error,
    a stale cookie just means anonymous.
    """
    manager = tenant.manager
    if credentials is not None:
        user = await manager.authenticate(credentials.username, credentials.password)
        if user is None:
            raise Unauthorized("Invalid login")
        return user

    session_id = request.cookies.get(manager.sessions.cookie_name)
    return await manager.current_user(session_id)
