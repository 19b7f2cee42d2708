from typing import Any, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for a cookie login."""

    name: str = Field(default="", description="User name.", examples=["pupshaw"])
    password: str = Field(default="", description="User password.")


class VerifiedSessionRequest(BaseModel):
    """Identity assertion to be checked by the upstream verifier."""

    assertion: str = Field(
        description="Opaque token the upstream verifier exchanges for a verified email.",
    )


class AdministeredSessionRequest(BaseModel):
    """Admin request for a session issued on a user's behalf."""

    name: Optional[str] = Field(default=None, description="Name of the user the session is for.")
    ttl: Any = Field(
        default=None,
        description="Session lifetime in seconds. Defaults to the tenant's default TTL.",
        examples=[3600],
    )


class OkResponse(BaseModel):
    ok: bool = True
