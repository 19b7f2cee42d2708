from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from auth.schema import User
from schema import LoginRequest, OkResponse, VerifiedSessionRequest
from session.errors import Unauthorized
from session.models import SessionView

from ..dependencies import get_current_user, get_tenant
from ..tenants import Tenant

logger = logging.getLogger('gateway.service.routers.session')

router = APIRouter(
    tags=["session"],
)


@router.get("/{tenant}/_session")
async def get_session_info(
    tenant: Tenant = Depends(get_tenant),
    user: Optional[User] = Depends(get_current_user),
) -> SessionView:
    """Info about the caller's login, anonymous callers included."""
    return tenant.formatter.format(user)


@router.post("/{tenant}/_session")
async def login(
    params: LoginRequest,
    response: Response,
    tenant: Tenant = Depends(get_tenant),
) -> SessionView:
    """
    Log in with a name and password and set the session cookie.
    """
    user = await tenant.manager.authenticate(params.name, params.password)
    if user is None:
        logger.info(f"Failed login attempt in {tenant.name}")

    session, cookie = await tenant.manager.create_session(user)
    cookie.attach_to_response(response)
    return tenant.formatter.format(user)


@router.delete("/{tenant}/_session")
async def logout(
    request: Request,
    response: Response,
    tenant: Tenant = Depends(get_tenant),
) -> OkResponse:
    session_id = request.cookies.get(tenant.manager.sessions.cookie_name)
    cookie = await tenant.manager.logout(session_id)
    cookie.attach_to_response(response)
    return OkResponse()


@router.post("/{tenant}/_verified_session")
async def login_with_verified_identity(
    params: VerifiedSessionRequest,
    response: Response,
    tenant: Tenant = Depends(get_tenant),
) -> SessionView:
    """
    Log in with an identity assertion checked by the upstream verifier.

    Unknown identities get a new user when the service auto-registers users.
    """
    if tenant.identity_verifier is None:
        raise HTTPException(status_code=404, detail="Verified identity login is not enabled for this database")

    email = await tenant.identity_verifier.verify(params.assertion)
    if email is None:
        raise Unauthorized("Invalid identity assertion")

    session, cookie = await tenant.manager.create_session_from_verified_identity(
        email,
        create_user_if_needed=tenant.create_users_from_identity,
    )
    cookie.attach_to_response(response)
    user = await tenant.manager.get_session_user(session)
    return tenant.formatter.format(user)
