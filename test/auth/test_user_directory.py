import json
from datetime import timedelta

import pytest
from unittest.mock import AsyncMock
from redis import RedisError

from auth.auth import (
    GUEST_USERNAME,
    RedisUserDirectory,
    UserExistsError,
    is_valid_principal_name,
    username_from_identity,
    verify_password,
)
from auth.schema import User
from auth.session.backends import BackendError

from conftest import PASSWORD


class TestPrincipalNames:
    @pytest.mark.parametrize("name", ["alice", "alice@example.com", "user-1.2", GUEST_USERNAME])
    def test_valid_names(self, name):
        assert is_valid_principal_name(name)

    @pytest.mark.parametrize("name", ["", "al ice", "a/b", "a:b", "a,b", "a`b", "tab\tname", "bell\x07"])
    def test_invalid_names(self, name):
        assert not is_valid_principal_name(name)

    def test_username_from_email_keeps_address(self):
        assert username_from_identity("a@b.com") == "a@b.com"

    def test_username_from_identity_replaces_reserved_characters(self):
        name = username_from_identity(" odd name/with:stuff ")
        assert name == "odd_name_with_stuff"
        assert is_valid_principal_name(name)


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_correct_password(self, users, alice):
        assert await users.authenticate("alice", PASSWORD) == alice

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_look_the_same(self, users, alice):
        assert await users.authenticate("alice", "wrong") is None
        assert await users.authenticate("nobody", PASSWORD) is None

    @pytest.mark.asyncio
    async def test_user_without_credential_cannot_log_in(self, users):
        await users.save_user(User(name="nopass"))
        assert await users.authenticate("nopass", "") is None

    def test_verify_password_rejects_garbage_hash(self):
        assert not verify_password(User(name="x", password_hash="not-a-hash"), "pw")


class TestInMemoryUserDirectory:
    @pytest.mark.asyncio
    async def test_get_user_by_email(self, users, alice):
        assert await users.get_user_by_email("alice@example.com") == alice
        assert await users.get_user_by_email("other@example.com") is None
        assert await users.get_user_by_email("") is None

    @pytest.mark.asyncio
    async def test_create_user_from_identity(self, users):
        user = await users.create_user("a@b.com")

        assert user.name == "a@b.com"
        assert user.email == "a@b.com"
        assert user.channels == {}
        assert user.password_hash
        assert await users.get_user_by_email("a@b.com") == user

    @pytest.mark.asyncio
    async def test_create_user_refuses_existing_name(self, users):
        await users.save_user(User(name="a@b.com"))
        with pytest.raises(UserExistsError):
            await users.create_user("a@b.com")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("identity", ["", "   ", GUEST_USERNAME])
    async def test_create_user_needs_a_usable_name(self, users, identity):
        with pytest.raises(ValueError):
            await users.create_user(identity)
        assert users.users == {}

    @pytest.mark.asyncio
    async def test_insert_user_never_overwrites(self, users):
        first = User(name="a@b.com", email="a@b.com")

        assert await users.insert_user(first) is True
        assert await users.insert_user(User(name="a@b.com", email="other@b.com")) is False
        assert await users.get_user("a@b.com") == first

    @pytest.mark.asyncio
    async def test_delete_all_sessions_uses_session_store(self, users, store, alice, bob):
        await store.create("alice", ttl=timedelta(hours=1))
        await store.create("alice", ttl=timedelta(hours=1))
        bobs = await store.create("bob", ttl=timedelta(hours=1))

        assert await users.delete_all_sessions("alice") == 2
        assert await store.get(bobs.id) == bobs

    def test_password_hash_is_not_serialized(self, password_hash):
        user = User(name="alice", password_hash=password_hash)
        assert "password_hash" not in user.model_dump()


class TestRedisUserDirectory:
    @pytest.fixture
    def redis_client(self):
        return AsyncMock()

    @pytest.fixture
    def directory(self, store, redis_client):
        return RedisUserDirectory(store, redis_client, namespace="db")

    @pytest.mark.asyncio
    async def test_save_user_writes_record_and_email_index(self, directory, redis_client):
        user = User(name="alice", password_hash="hash", channels={"news": 3}, email="alice@example.com")

        await directory.save_user(user)

        key, raw = redis_client.set.await_args_list[0].args
        assert key == "db:user:alice"
        assert json.loads(raw) == {
            "name": "alice",
            "password_hash": "hash",
            "channels": {"news": 3},
            "email": "alice@example.com",
        }
        assert redis_client.set.await_args_list[1].args == ("db:user_email:alice@example.com", "alice")

    @pytest.mark.asyncio
    async def test_create_user_claims_name_atomically(self, directory, redis_client):
        redis_client.set.return_value = True

        user = await directory.create_user("a@b.com")

        key, _ = redis_client.set.await_args_list[0].args
        assert key == "db:user:a@b.com"
        assert redis_client.set.await_args_list[0].kwargs == {"nx": True}
        assert user.name == "a@b.com"

    @pytest.mark.asyncio
    async def test_create_user_loses_race(self, directory, redis_client):
        # SET NX answers None when the key already exists
        redis_client.set.return_value = None

        with pytest.raises(UserExistsError):
            await directory.create_user("a@b.com")

        redis_client.set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_user(self, directory, redis_client):
        redis_client.get.return_value = json.dumps({"name": "alice", "password_hash": "hash", "channels": {}, "email": None})

        user = await directory.get_user("alice")

        redis_client.get.assert_awaited_once_with("db:user:alice")
        assert user.name == "alice"
        assert user.password_hash == "hash"

    @pytest.mark.asyncio
    async def test_get_missing_user(self, directory, redis_client):
        redis_client.get.return_value = None
        assert await directory.get_user("alice") is None

    @pytest.mark.asyncio
    async def test_get_user_by_email_ignores_stale_index(self, directory, redis_client):
        record = json.dumps({"name": "alice", "channels": {}, "email": "new@example.com"})
        redis_client.get.side_effect = ["alice", record]

        assert await directory.get_user_by_email("old@example.com") is None

    @pytest.mark.asyncio
    async def test_redis_errors_become_backend_errors(self, directory, redis_client):
        redis_client.get.side_effect = RedisError("boom")
        with pytest.raises(BackendError, match="Database error during user read"):
            await directory.get_user("alice")
