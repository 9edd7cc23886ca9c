"""Unit tests for client storage backends."""

# pylint: disable=redefined-outer-name

from __future__ import annotations

import asyncio
import types

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from socialink.auth.storage import (
    KeyringStorage,
    MemoryStorage,
    RedisStorage,
    get_storage,
    reset_storage,
)


def _run(coro):
    """Run an async coroutine synchronously."""
    return asyncio.run(coro)


class _PasswordDeleteError(Exception):
    pass


class _FakeKeyring:
    """Dict-backed stand-in for the keyring module API."""

    def __init__(self) -> None:
        self.data: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, key: str) -> str | None:
        return self.data.get((service, key))

    def set_password(self, service: str, key: str, value: str) -> None:
        self.data[(service, key)] = value

    def delete_password(self, service: str, key: str) -> None:
        try:
            del self.data[(service, key)]
        except KeyError:
            raise _PasswordDeleteError(key) from None


@pytest.fixture()
def fake_keyring():
    """Install a fake keyring module for the duration of a test."""
    fake = _FakeKeyring()
    errors = types.ModuleType("keyring.errors")
    errors.PasswordDeleteError = _PasswordDeleteError  # type: ignore[attr-defined]
    with patch.dict("sys.modules", {"keyring": fake, "keyring.errors": errors}):
        yield fake


# ── MemoryStorage ───────────────────────────────────────────────────


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_set_and_get(self, storage: MemoryStorage) -> None:
        _run(storage.set("oauth_state", "abc"))
        assert _run(storage.get("oauth_state")) == "abc"

    def test_get_missing(self, storage: MemoryStorage) -> None:
        assert _run(storage.get("nope")) is None

    def test_set_overwrites(self, storage: MemoryStorage) -> None:
        _run(storage.set("k", "one"))
        _run(storage.set("k", "two"))
        assert _run(storage.get("k")) == "two"

    def test_delete(self, storage: MemoryStorage) -> None:
        _run(storage.set("k", "v"))
        _run(storage.delete("k"))
        assert _run(storage.get("k")) is None

    def test_delete_missing_is_noop(self, storage: MemoryStorage) -> None:
        _run(storage.delete("nope"))

    def test_take_is_single_use(self, storage: MemoryStorage) -> None:
        _run(storage.set("k", "v"))
        assert _run(storage.take("k")) == "v"
        assert _run(storage.take("k")) is None
        assert _run(storage.exists("k")) is False

    def test_exists(self, storage: MemoryStorage) -> None:
        assert _run(storage.exists("k")) is False
        _run(storage.set("k", "v"))
        assert _run(storage.exists("k")) is True

    def test_keys(self, storage: MemoryStorage) -> None:
        _run(storage.set("a", "1"))
        _run(storage.set("b", "2"))
        assert sorted(_run(storage.keys())) == ["a", "b"]

    def test_concurrent_take_yields_value_once(self, storage: MemoryStorage) -> None:
        async def scenario() -> list[str | None]:
            await storage.set("k", "v")
            return list(await asyncio.gather(*(storage.take("k") for _ in range(5))))

        results = _run(scenario())
        assert results.count("v") == 1
        assert results.count(None) == 4


# ── KeyringStorage ──────────────────────────────────────────────────


class TestKeyringStorage:
    """Tests for KeyringStorage against a fake keyring."""

    def test_missing_package(self) -> None:
        with (
            patch.dict("sys.modules", {"keyring": None}),
            pytest.raises(ImportError, match=r"socialink\[keyring\]"),
        ):
            KeyringStorage()

    def test_round_trip_uses_service_name(self, fake_keyring: _FakeKeyring) -> None:
        store = KeyringStorage(service_name="my-app")
        _run(store.set("token", "t-1"))
        assert fake_keyring.data == {("my-app", "token"): "t-1"}
        assert _run(store.get("token")) == "t-1"

    def test_take(self, fake_keyring: _FakeKeyring) -> None:
        store = KeyringStorage()
        _run(store.set("pkce_verifier:twitter", "ver"))
        assert _run(store.take("pkce_verifier:twitter")) == "ver"
        assert _run(store.take("pkce_verifier:twitter")) is None
        assert fake_keyring.data == {}

    def test_delete_missing_is_noop(self, fake_keyring: _FakeKeyring) -> None:
        store = KeyringStorage()
        _run(store.delete("never-set"))
        assert fake_keyring.data == {}

    def test_survives_new_instance(self, fake_keyring: _FakeKeyring) -> None:
        """A second process sees what the first one stored."""
        _run(KeyringStorage().set("oauth_state", "s"))
        assert _run(KeyringStorage().get("oauth_state")) == "s"


# ── RedisStorage ────────────────────────────────────────────────────


class TestRedisStorage:
    """Tests for RedisStorage with a mocked client."""

    def test_missing_package(self) -> None:
        with (
            patch.dict("sys.modules", {"redis": None, "redis.asyncio": None}),
            pytest.raises(ImportError, match=r"socialink\[redis\]"),
        ):
            RedisStorage()

    @pytest.fixture()
    def redis_client(self) -> MagicMock:
        pytest.importorskip("redis")
        client = MagicMock()
        client.get = AsyncMock(return_value="value")
        client.set = AsyncMock()
        client.delete = AsyncMock()
        client.getdel = AsyncMock(return_value="verifier")
        client.exists = AsyncMock(return_value=1)
        client.aclose = AsyncMock()
        with patch("redis.asyncio.Redis.from_url", return_value=client) as from_url:
            client.from_url = from_url
            yield client

    def test_connects_with_url_and_pool(self, redis_client: MagicMock) -> None:
        RedisStorage("redis://cache:6379/2", pool_size=3)
        redis_client.from_url.assert_called_once_with(
            "redis://cache:6379/2", max_connections=3, decode_responses=True
        )

    def test_keys_are_prefixed(self, redis_client: MagicMock) -> None:
        store = RedisStorage(prefix="app")
        _run(store.set("oauth_state", "s"))
        redis_client.set.assert_awaited_once_with("app:client:oauth_state", "s")
        assert _run(store.get("oauth_state")) == "value"
        redis_client.get.assert_awaited_once_with("app:client:oauth_state")

    def test_take_uses_getdel(self, redis_client: MagicMock) -> None:
        store = RedisStorage()
        assert _run(store.take("pkce_verifier:snapchat")) == "verifier"
        redis_client.getdel.assert_awaited_once_with("socialink:client:pkce_verifier:snapchat")

    def test_exists_and_delete(self, redis_client: MagicMock) -> None:
        store = RedisStorage()
        assert _run(store.exists("k")) is True
        _run(store.delete("k"))
        redis_client.delete.assert_awaited_once_with("socialink:client:k")

    def test_close(self, redis_client: MagicMock) -> None:
        _run(RedisStorage().close())
        redis_client.aclose.assert_awaited_once()


# ── Factory ─────────────────────────────────────────────────────────


class TestGetStorage:
    """Tests for the storage factory."""

    def test_default_is_memory(self) -> None:
        assert isinstance(get_storage(), MemoryStorage)

    def test_singleton(self) -> None:
        assert get_storage() is get_storage()

    def test_reset(self) -> None:
        first = get_storage()
        reset_storage()
        assert get_storage() is not first

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown storage backend"):
            get_storage("sqlite")

    def test_keyring_backend(self, fake_keyring: _FakeKeyring) -> None:
        store = get_storage("keyring", service_name="svc")
        assert isinstance(store, KeyringStorage)
        _run(store.set("k", "v"))
        assert ("svc", "k") in fake_keyring.data
