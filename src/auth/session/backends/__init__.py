from .base import BackendError, LoginSessionBackend
from .memory_backend import InMemorySessionBackend
from .redis_backend import RedisBackend

__all__ = [
    "BackendError",
    "LoginSessionBackend",
    "InMemorySessionBackend",
    "RedisBackend",
]
