import logging
from typing import Optional

from fastapi import FastAPI

from . import config
from .dependencies import AdminPredicate, api_key_admin_predicate
from .lifecycle import lifespan
from .middleware import setup_middleware
from .routers import admin, misc, session
from .tenants import TenantRegistry

logger = logging.getLogger('gateway.service')


def create_app(
    tenant_registry: Optional[TenantRegistry] = None,
    admin_predicate: Optional[AdminPredicate] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        tenant_registry: Tenants to serve. Built from the environment at startup when omitted.
        admin_predicate: Decides whether a request may use the admin API. Defaults to
            a bearer token check against ADMIN_API_KEY.
    """
    app = FastAPI(title="Session Gateway", lifespan=lifespan)
    app.state.tenant_registry = tenant_registry
    app.state.admin_predicate = admin_predicate or api_key_admin_predicate(config.get_admin_api_key())

    setup_middleware(app, config.get_cors_config())

    app.include_router(misc.router)
    app.include_router(admin.router)
    app.include_router(session.router)

    return app


app = create_app()
