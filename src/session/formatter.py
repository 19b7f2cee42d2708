from typing import Iterable, List, Optional

from auth.schema import User

from .models import SessionView, UserContext

BASE_AUTHENTICATION_HANDLERS = ("default", "cookie")
PERSONA_HANDLER = "persona"


class SessionViewFormatter:
    """Projects a user into the session info response."""

    def __init__(self, extra_handlers: Iterable[str] = ()):
        self.extra_handlers: List[str] = list(extra_handlers)

    @classmethod
    def for_tenant(cls, persona_enabled: bool) -> "SessionViewFormatter":
        return cls(extra_handlers=[PERSONA_HANDLER] if persona_enabled else [])

    @property
    def authentication_handlers(self) -> List[str]:
        return [*BASE_AUTHENTICATION_HANDLERS, *self.extra_handlers]

    def format(self, user: Optional[User]) -> SessionView:
        name = None
        channels = {}
        if user is not None:
            # The guest user has an empty name and renders as anonymous
            name = user.name or None
            channels = user.channels

        return SessionView(
            ok=True,
            user_ctx=UserContext(name=name, channels=channels),
            authentication_handlers=self.authentication_handlers,
        )
