from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    name: Optional[str] = Field(default=None, description="User name, null for anonymous callers")
    channels: Dict[str, int] = Field(default_factory=dict, description="Channels the user may read, with the sequence access began at")


class SessionView(BaseModel):
    """Session info response, shaped like CouchDB's /_session."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    user_ctx: UserContext = Field(alias="userCtx")
    authentication_handlers: List[str]


class SessionDescriptor(BaseModel):
    """A session issued by an administrator for out-of-band delivery to the user."""

    session_id: str
    expires: datetime
    cookie_name: str


@dataclass
class BulkDeleteResult:
    """Outcome of a bulk session delete. Failures are kept for logging, never reported as errors."""

    username: str
    requested: List[str] = field(default_factory=list)
    deleted_all: bool = False
    failed: List[str] = field(default_factory=list)


__all__ = [
    "UserContext",
    "SessionView",
    "SessionDescriptor",
    "BulkDeleteResult",
]
