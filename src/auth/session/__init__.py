"""Login sessions: storage backends, the session store and transport cookies."""

from .config import create_session_backend, get_cookie_name, secure_cookies_enabled
from .cookie import LoginCookie, make_session_cookie
from .models import LoginSession
from .store import SessionStore

__all__ = [
    "create_session_backend",
    "get_cookie_name",
    "secure_cookies_enabled",
    "LoginCookie",
    "make_session_cookie",
    "LoginSession",
    "SessionStore",
]
