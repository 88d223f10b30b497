"""Tests for the store implementations and their error classification."""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from app.config import Settings
from app.enums import StoreBackend
from app.exceptions import StoreUnavailable
from app.store import InMemorySnippetStore, RedisSnippetStore, create_store

# ============================================================================
# IN-MEMORY STORE
# ============================================================================


class TestInMemorySnippetStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        assert await store.set_with_ttl("k", "v", 10) is True
        assert await store.get("k") == "v"
        assert await store.exists("k") is True

    @pytest.mark.asyncio
    async def test_missing_key(self, store):
        assert await store.get("missing") is None
        assert await store.exists("missing") is False

    @pytest.mark.asyncio
    async def test_key_expires_at_deadline(self, store, clock):
        await store.set_with_ttl("k", "v", 10)

        clock.advance(9)
        assert await store.get("k") == "v"

        clock.advance(1)
        assert await store.get("k") is None
        assert await store.exists("k") is False

    @pytest.mark.asyncio
    async def test_set_only_if_absent(self, store, clock):
        assert await store.set_with_ttl("k", "first", 10, only_if_absent=True) is True
        assert await store.set_with_ttl("k", "second", 10, only_if_absent=True) is False
        assert await store.get("k") == "first"

        clock.advance(10)
        assert await store.set_with_ttl("k", "third", 10, only_if_absent=True) is True
        assert await store.get("k") == "third"

    @pytest.mark.asyncio
    async def test_incr_creates_from_zero_without_ttl(self, store):
        assert await store.incr("counter") == 1
        assert await store.incr("counter") == 2
        assert store.ttl("counter") is None

    @pytest.mark.asyncio
    async def test_incr_keeps_existing_ttl(self, store, clock):
        await store.set_with_ttl("counter", "0", 100)
        clock.advance(40)

        assert await store.incr("counter") == 1
        assert store.ttl("counter") == pytest.approx(60)

    @pytest.mark.asyncio
    async def test_expire_only_if_persistent(self, store):
        await store.incr("persistent")
        await store.set_with_ttl("leased", "0", 100)

        assert await store.expire("persistent", 5, only_if_persistent=True) is True
        assert await store.expire("leased", 5, only_if_persistent=True) is False
        assert store.ttl("persistent") == pytest.approx(5)
        assert store.ttl("leased") == pytest.approx(100)

    @pytest.mark.asyncio
    async def test_expire_missing_key(self, store):
        assert await store.expire("missing", 5) is False

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True


# ============================================================================
# REDIS STORE
# ============================================================================


@pytest.fixture
def mock_redis() -> AsyncMock:
    client = AsyncMock(spec=redis.Redis)
    client.exists = AsyncMock(return_value=1)
    client.set = AsyncMock(return_value=True)
    client.get = AsyncMock(return_value=None)
    client.incr = AsyncMock(return_value=1)
    client.expire = AsyncMock(return_value=True)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


class TestRedisSnippetStore:
    @pytest.mark.asyncio
    async def test_set_with_ttl_maps_to_set_ex_nx(self, mock_redis):
        store = RedisSnippetStore(mock_redis)

        assert await store.set_with_ttl("snippet:abc", "{}", 1209600, only_if_absent=True) is True
        mock_redis.set.assert_awaited_once_with("snippet:abc", "{}", ex=1209600, nx=True)

    @pytest.mark.asyncio
    async def test_set_with_ttl_reports_lost_nx(self, mock_redis):
        mock_redis.set.return_value = None
        store = RedisSnippetStore(mock_redis)

        assert await store.set_with_ttl("snippet:abc", "{}", 10, only_if_absent=True) is False

    @pytest.mark.asyncio
    async def test_exists_incr_expire(self, mock_redis):
        mock_redis.incr.return_value = 7
        store = RedisSnippetStore(mock_redis)

        assert await store.exists("k") is True
        assert await store.incr("k:views") == 7
        assert await store.expire("k:views", 60, only_if_persistent=True) is True
        mock_redis.expire.assert_awaited_once_with("k:views", 60, nx=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [RedisConnectionError("connection refused"), RedisTimeoutError("timed out"), OSError("network down")],
    )
    async def test_errors_become_store_unavailable(self, mock_redis, error):
        mock_redis.get.side_effect = error
        store = RedisSnippetStore(mock_redis)

        with pytest.raises(StoreUnavailable) as exc_info:
            await store.get("snippet:abc")

        assert exc_info.value.__cause__ is error
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_close(self, mock_redis):
        store = RedisSnippetStore(mock_redis)
        await store.close()
        mock_redis.aclose.assert_awaited_once()


def test_create_store_selects_backend() -> None:
    assert isinstance(create_store(Settings(STORE_BACKEND=StoreBackend.MEMORY)), InMemorySnippetStore)
    assert isinstance(create_store(Settings(STORE_BACKEND=StoreBackend.REDIS)), RedisSnippetStore)
