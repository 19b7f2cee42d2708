from pydantic import BaseModel, Field
from typing import Dict, Optional


class User(BaseModel):
    name: str
    password_hash: Optional[str] = Field(default=None, exclude=True)
    channels: Dict[str, int] = Field(
        default_factory=dict,
        description="Authorized channels, mapped to the sequence at which access began",
    )
    email: Optional[str] = None


class UserUpdate(BaseModel):
    """Body of an admin user write."""
    password: Optional[str] = None
    email: Optional[str] = None
    channels: Dict[str, int] = Field(default_factory=dict)
