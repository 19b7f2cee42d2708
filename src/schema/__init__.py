from .schema import (
    AdministeredSessionRequest,
    LoginRequest,
    OkResponse,
    VerifiedSessionRequest,
)

__all__ = [
    "AdministeredSessionRequest",
    "LoginRequest",
    "OkResponse",
    "VerifiedSessionRequest",
]
