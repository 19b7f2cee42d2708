from .auth import (
    GUEST_USERNAME,
    BaseUserDirectory,
    InMemoryUserDirectory,
    RedisUserDirectory,
    UserExistsError,
    hash_password,
    is_registrable_name,
    is_valid_principal_name,
    username_from_identity,
)
from .identity import IdentityVerifier, RemoteIdentityVerifier
from .schema import User, UserUpdate

__all__ = [
    "GUEST_USERNAME",
    "BaseUserDirectory",
    "InMemoryUserDirectory",
    "RedisUserDirectory",
    "UserExistsError",
    "hash_password",
    "is_registrable_name",
    "is_valid_principal_name",
    "username_from_identity",
    "IdentityVerifier",
    "RemoteIdentityVerifier",
    "User",
    "UserUpdate",
]
