import os
import logging
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Set environment variables before importing modules
os.environ.setdefault('SECURE_COOKIES', 'false')
os.environ.setdefault('USE_REDIS', 'false')
os.environ.setdefault('ADMIN_API_KEY', 'test-admin-key')

from auth.auth import InMemoryUserDirectory, hash_password
from auth.schema import User
from auth.session.backends import InMemorySessionBackend
from auth.session.store import SessionStore
from session.formatter import SessionViewFormatter
from session.manager import SessionLifecycleManager
from service.service import create_app
from service.tenants import Tenant, TenantRegistry

TENANT = "db"
ADMIN_KEY = "test-admin-key"
PASSWORD = "letmein"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.INFO)


@pytest.fixture(scope="session")
def password_hash():
    # Hashing is slow on purpose, do it once
    return hash_password(PASSWORD)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return InMemorySessionBackend()


@pytest.fixture
def store(backend, clock):
    return SessionStore(backend, cookie_name="AuthSession", secure_cookies=False, clock=clock)


@pytest.fixture
def users(store):
    return InMemoryUserDirectory(store)


@pytest_asyncio.fixture
async def alice(users, password_hash):
    user = User(name="alice", password_hash=password_hash, channels={"news": 3, "sports": 7}, email="alice@example.com")
    await users.save_user(user)
    return user


@pytest_asyncio.fixture
async def bob(users, password_hash):
    user = User(name="bob", password_hash=password_hash, channels={"news": 1})
    await users.save_user(user)
    return user


@pytest.fixture
def manager(users, store):
    return SessionLifecycleManager(TENANT, users, store)


@pytest.fixture
def tenant(manager):
    return Tenant(name=TENANT, manager=manager, formatter=SessionViewFormatter())


@pytest.fixture
def registry(tenant):
    registry = TenantRegistry()
    registry.register_tenant(tenant)
    return registry


@pytest.fixture
def app(registry):
    return create_app(tenant_registry=registry)


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost:4984") as client:
        yield client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_KEY}"}
