from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoginSession(BaseModel):
    """A server-tracked login. Immutable once created; only deletion ends it early."""

    id: str = Field(description="Opaque session token, also the cookie value")
    username: str = Field(min_length=1, description="Name of the user that owns the session")
    expiration: datetime = Field(description="Absolute UTC time after which the session is invalid")

    model_config = {"frozen": True}

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now >= self.expiration
