import logging

from fastapi import APIRouter, Depends, Request

from auth.auth import hash_password, is_valid_principal_name
from auth.schema import User, UserUpdate
from schema import AdministeredSessionRequest, OkResponse
from session.errors import BadRequest
from session.models import SessionDescriptor, SessionView
from session.validation import decode_bulk_payload

from ..dependencies import get_tenant, require_admin
from ..tenants import Tenant

logger = logging.getLogger('gateway.service.routers.admin')

router = APIRouter(
    prefix="/_admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.post("/{tenant}/_session")
async def create_user_session(
    params: AdministeredSessionRequest,
    tenant: Tenant = Depends(get_tenant),
) -> SessionDescriptor:
    """
    Generate a login session for a user and return its id and cookie name.

    No cookie is set: the caller hands the session to the user out of band.
    """
    return await tenant.manager.create_administered_session(params.name, params.ttl)


@router.get("/{tenant}/_session/{session_id}")
async def get_user_session(session_id: str, tenant: Tenant = Depends(get_tenant)) -> SessionView:
    session = await tenant.manager.get_session(session_id)
    # A session can outlive its user, which then shows as anonymous
    user = await tenant.manager.get_session_user(session)
    return tenant.formatter.format(user)


@router.delete("/{tenant}/_session/{session_id}")
async def delete_session(session_id: str, tenant: Tenant = Depends(get_tenant)) -> OkResponse:
    await tenant.manager.delete_administered_session(session_id)
    return OkResponse()


@router.delete("/{tenant}/_user/{name}/_session/{session_id}")
async def delete_user_session(name: str, session_id: str, tenant: Tenant = Depends(get_tenant)) -> OkResponse:
    """Delete a session, but only if it belongs to the named user."""
    await tenant.manager.delete_administered_session(session_id, name)
    return OkResponse()


@router.delete("/{tenant}/_user/{name}/_session")
async def delete_user_sessions(
    name: str,
    request: Request,
    tenant: Tenant = Depends(get_tenant),
) -> OkResponse:
    """
    Delete a batch of the user's sessions given as {"keys": [...]}; "*" deletes all of them.

    A body that is not JSON at all is rejected like any other bad key list.
    """
    payload = decode_bulk_payload(await request.body())
    result = await tenant.manager.delete_sessions_bulk(name, payload)
    if result.failed:
        logger.warning(f"Bulk delete for {name} in {tenant.name} skipped {len(result.failed)} sessions")
    return OkResponse()


@router.put("/{tenant}/_user/{name}")
async def put_user(name: str, params: UserUpdate, tenant: Tenant = Depends(get_tenant)) -> User:
    """Create or replace a user record."""
    if not is_valid_principal_name(name):
        raise BadRequest("Invalid user name")

    existing = await tenant.manager.users.get_user(name)
    password_hash = hash_password(params.password) if params.password else None
    if password_hash is None and existing is not None:
        password_hash = existing.password_hash

    user = User(name=name, password_hash=password_hash, channels=params.channels, email=params.email)
    await tenant.manager.users.save_user(user)
    logger.info(f"Saved user {name} in {tenant.name}")
    return user
