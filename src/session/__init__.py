"""Session lifecycle: issuing, inspecting and revoking login sessions for a tenant."""

from .errors import BadRequest, NotFound, SessionError, Unauthorized
from .formatter import SessionViewFormatter
from .manager import DEFAULT_SESSION_TTL, SessionLifecycleManager

__all__ = [
    "BadRequest",
    "NotFound",
    "SessionError",
    "Unauthorized",
    "SessionViewFormatter",
    "DEFAULT_SESSION_TTL",
    "SessionLifecycleManager",
]
