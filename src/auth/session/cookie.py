from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import Response
from pydantic import BaseModel

from .models import LoginSession


class LoginCookie(BaseModel):
    """Transport artifact carrying a session id. Built per response, never stored."""

    name: str
    value: str
    path: str
    expires: Optional[datetime] = None
    secure: bool = True
    httponly: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"

    @classmethod
    def clearing(cls, name: str, path: str, secure: bool = True) -> "LoginCookie":
        """Cookie that makes the client drop its session cookie for `path`."""
        return cls(
            name=name,
            value="",
            path=path,
            expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
            secure=secure,
        )

    def attach_to_response(self, response: Response) -> None:
        response.set_cookie(
            key=self.name,
            value=self.value,
            path=self.path,
            expires=self.expires,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )


def make_session_cookie(
    session: LoginSession,
    path: str,
    cookie_name: str,
    secure: bool = True,
) -> LoginCookie:
    return LoginCookie(
        name=cookie_name,
        value=session.id,
        path=path,
        expires=session.expiration,
        secure=secure,
    )
