from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.requests import Request

from auth.auth import InMemoryUserDirectory, RedisUserDirectory
from auth.identity import RemoteIdentityVerifier
from auth.session.backends import InMemorySessionBackend, RedisBackend
from service import config
from service.dependencies import api_key_admin_predicate
from service.tenants import TenantRegistry, build_tenant, build_tenant_registry
from session.manager import DEFAULT_SESSION_TTL


def make_request(headers: dict) -> Request:
    raw_headers = [(key.lower().encode(), value.encode()) for key, value in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw_headers})


class TestBuildTenant:
    def test_in_memory(self):
        tenant = build_tenant("db")

        assert tenant.name == "db"
        assert tenant.manager.cookie_path == "/db/"
        assert isinstance(tenant.manager.sessions.backend, InMemorySessionBackend)
        assert isinstance(tenant.manager.users, InMemoryUserDirectory)
        assert tenant.manager.default_ttl == DEFAULT_SESSION_TTL
        assert not tenant.persona_enabled
        assert tenant.formatter.authentication_handlers == ["default", "cookie"]

    def test_redis(self):
        tenant = build_tenant("db", redis_client=AsyncMock())

        backend = tenant.manager.sessions.backend
        assert isinstance(backend, RedisBackend)
        assert backend.session_key("x") == "db:session:x"
        assert isinstance(tenant.manager.users, RedisUserDirectory)

    def test_persona(self):
        verifier = RemoteIdentityVerifier("https://idp.example.com/userinfo")

        tenant = build_tenant("db", identity_verifier=verifier, create_users_from_identity=True)

        assert tenant.persona_enabled
        assert tenant.create_users_from_identity
        assert tenant.formatter.authentication_handlers == ["default", "cookie", "persona"]

    def test_cookie_name_from_environment(self, monkeypatch):
        monkeypatch.setenv("SESSION_COOKIE_NAME", "GatewaySession")
        assert build_tenant("db").manager.sessions.cookie_name == "GatewaySession"


class TestTenantRegistry:
    def test_registry_from_environment(self, monkeypatch):
        monkeypatch.setenv("TENANTS", "db, other")
        monkeypatch.setenv("PERSONA_TENANTS", "other")
        monkeypatch.setenv("IDENTITY_VERIFIER_URL", "https://idp.example.com/userinfo")
        monkeypatch.setenv("DEFAULT_SESSION_TTL_SECONDS", "600")

        registry = build_tenant_registry()

        assert set(registry.tenants) == {"db", "other"}
        assert not registry.get("db").persona_enabled
        assert registry.get("other").persona_enabled
        assert registry.get("db").manager.default_ttl == timedelta(seconds=600)
        assert registry.get("missing") is None

    def test_persona_without_verifier_url(self, monkeypatch):
        monkeypatch.setenv("TENANTS", "db")
        monkeypatch.setenv("PERSONA_TENANTS", "db")
        monkeypatch.delenv("IDENTITY_VERIFIER_URL", raising=False)

        assert not build_tenant_registry().get("db").persona_enabled

    def test_register_rejects_other_types(self):
        with pytest.raises(TypeError):
            TenantRegistry().register_tenant("db")

    @pytest.mark.asyncio
    async def test_close_closes_verifiers(self):
        verifier = MagicMock()
        verifier.close = AsyncMock()
        registry = TenantRegistry()
        registry.register_tenant(build_tenant("db", identity_verifier=verifier))

        await registry.close()

        verifier.close.assert_awaited_once()


class TestConfig:
    @pytest.mark.parametrize("raw", ["abc", "0", "-1"])
    def test_bad_default_ttl_falls_back(self, monkeypatch, raw):
        monkeypatch.setenv("DEFAULT_SESSION_TTL_SECONDS", raw)
        assert config.get_default_session_ttl() == DEFAULT_SESSION_TTL

    def test_tenant_default(self, monkeypatch):
        monkeypatch.delenv("TENANTS", raising=False)
        assert config.get_tenant_names() == ["default"]


class TestAdminPredicate:
    def test_matching_key(self):
        is_admin = api_key_admin_predicate("secret")
        assert is_admin(make_request({"Authorization": "Bearer secret"}))

    @pytest.mark.parametrize("header", [None, "Bearer wrong", "Basic secret", "Bearer "])
    def test_refused(self, header):
        is_admin = api_key_admin_predicate("secret")
        headers = {"Authorization": header} if header else {}
        assert not is_admin(make_request(headers))

    def test_no_key_configured_refuses_everything(self):
        is_admin = api_key_admin_predicate(None)
        assert not is_admin(make_request({"Authorization": "Bearer "}))
