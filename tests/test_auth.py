"""Tests for access-token resolution and admin guard."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from quantum5ocial.services import auth
from quantum5ocial.stores import redis as redis_store
from quantum5ocial.services.errors import ForbiddenError
from quantum5ocial.settings import get_settings


@pytest.mark.asyncio
async def test_resolve_user_id_without_redis(monkeypatch: pytest.MonkeyPatch):
    calls: list[str] = []

    async def fake_fetch_auth_user(token: str) -> dict | None:
        calls.append(token)
        return {"id": "user-42"} if token == "good" else None

    monkeypatch.setattr(auth, "fetch_auth_user", fake_fetch_auth_user)

    assert await auth.resolve_user_id(" good ") == "user-42"
    assert await auth.resolve_user_id("bad") is None
    assert await auth.resolve_user_id("   ") is None
    assert calls == ["good", "bad"]


@pytest.mark.asyncio
async def test_resolve_user_id_uses_cache(monkeypatch: pytest.MonkeyPatch):
    async def fake_cached(token_hash: str) -> str | None:
        return "cached-user"

    async def fail_fetch(token: str) -> dict | None:
        raise AssertionError("provider should not be called")

    monkeypatch.setattr(auth, "_try_get_cached_user", fake_cached)
    monkeypatch.setattr(auth, "fetch_auth_user", fail_fetch)

    assert await auth.resolve_user_id("token") == "cached-user"


def test_token_hash_does_not_contain_token():
    h = auth._token_hash("secret-token")
    assert "secret-token" not in h
    assert len(h) == 40


@pytest.mark.asyncio
async def test_require_admin(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(get_settings(), "admin_token", "")
    with pytest.raises(ForbiddenError) as e:
        await auth.require_admin("anything")
    assert e.value.code == "ADMIN_DISABLED"

    monkeypatch.setattr(get_settings(), "admin_token", "s3cret")
    with pytest.raises(ForbiddenError) as e:
        await auth.require_admin("wrong")
    assert e.value.code == "ADMIN_FORBIDDEN"

    assert await auth.require_admin("s3cret") is None


class _UnreachableRedis:
    """Client whose every command fails the way a refused connection does."""

    def __init__(self):
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True

    def __getattr__(self, name: str):
        async def fail(*args, **kwargs):
            raise RedisConnectionError("Error 111 connecting to 127.0.0.1:1. Connection refused.")

        return fail


@pytest.mark.asyncio
async def test_resolve_user_id_when_redis_drops(monkeypatch: pytest.MonkeyPatch):
    async def fake_fetch_auth_user(token: str) -> dict | None:
        return {"id": "user-42"}

    monkeypatch.setattr(redis_store, "_redis", _UnreachableRedis())
    monkeypatch.setattr(auth, "fetch_auth_user", fake_fetch_auth_user)

    assert await auth.resolve_user_id("tok") == "user-42"


@pytest.mark.asyncio
async def test_init_redis_does_not_keep_a_client_that_failed_ping(monkeypatch: pytest.MonkeyPatch):
    client = _UnreachableRedis()
    monkeypatch.setattr(redis_store, "_redis", None)
    monkeypatch.setattr(redis_store.redis, "from_url", lambda *args, **kwargs: client)

    with pytest.raises(RedisError):
        await redis_store.init_redis()

    assert redis_store._redis is None
    assert client.closed
    with pytest.raises(redis_store.RedisUnavailableError):
        await redis_store.cache_get("anything")
