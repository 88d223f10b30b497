"""Key/value store abstraction for snippet persistence.

The core needs only a handful of capabilities from its store. They are
captured by ``SnippetStore``; the production implementation talks to Redis
(or Valkey) over ``redis.asyncio`` and the in-memory implementation backs
tests and ``STORE_BACKEND=memory`` local runs.

Capability Contract
===================
::
    exists(key)                                   -> bool
    set_with_ttl(key, value, ttl, only_if_absent) -> bool   (False: NX lost)
    get(key)                                      -> str | None
    incr(key)                                     -> int    (creates from 0)
    expire(key, ttl, only_if_persistent)          -> bool
    ping()                                        -> bool

Error Classification
====================
::
    ┌──────────────┐
    │ store call   │
    └──────┬───────┘
           ▼
    RedisError / OSError / TimeoutError?
    ┌──────┴──────┐
    │ NO          │ YES
    ▼             ▼
┌─────────┐  ┌──────────────────┐
│ return  │  │ StoreUnavailable │
│ result  │  │ (from exc)       │
└─────────┘  └──────────────────┘

Key Behaviours
===============
- One long-lived client per process, safe for concurrent use.
- Timeouts come from the client's socket settings and are never retried here.
- The in-memory store never yields to the event loop inside an operation,
  so every operation is atomic under asyncio.

Classes:
    SnippetStore:  Abstract capability set.
    RedisSnippetStore:  Redis/Valkey implementation.
    InMemorySnippetStore:  Process-local implementation with a substitutable clock.

Functions:
    create_store():  Build the store selected by settings.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.config import Settings
from app.enums import StoreBackend
from app.exceptions import StoreUnavailable
from app.metrics import STORE_OPERATIONS_TOTAL

__all__ = ["SnippetStore", "RedisSnippetStore", "InMemorySnippetStore", "create_store"]

T = TypeVar("T")


class SnippetStore(ABC):
    @abstractmethod
    async def exists(self, key: str) -> bool: ...

    @abstractmethod
    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False) -> bool: ...

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def incr(self, key: str) -> int: ...

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int, only_if_persistent: bool = False) -> bool: ...

    @abstractmethod
    async def ping(self) -> bool: ...

    async def close(self) -> None:
        return None


class RedisSnippetStore(SnippetStore):
    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisSnippetStore":
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
        )
        return cls(client)

    async def _call(self, operation: str, call: Awaitable[T]) -> T:
        STORE_OPERATIONS_TOTAL.labels(operation=operation).inc()
        try:
            return await call
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            raise StoreUnavailable(f"Store {operation} failed: {exc}") from exc

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", self._client.exists(key)))

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False) -> bool:
        written = await self._call("set", self._client.set(key, value, ex=ttl_seconds, nx=only_if_absent))
        return bool(written)

    async def get(self, key: str) -> str | None:
        return await self._call("get", self._client.get(key))

    async def incr(self, key: str) -> int:
        return int(await self._call("incr", self._client.incr(key)))

    async def expire(self, key: str, ttl_seconds: int, only_if_persistent: bool = False) -> bool:
        # NX needs Redis >= 7.0 / Valkey
        return bool(await self._call("expire", self._client.expire(key, ttl_seconds, nx=only_if_persistent)))

    async def ping(self) -> bool:
        return bool(await self._call("ping", self._client.ping()))

    async def close(self) -> None:
        await self._client.aclose()


class InMemorySnippetStore(SnippetStore):
    """Dictionary-backed store with lazy TTL eviction.

    ``clock`` returns seconds since the epoch; tests pass a manual clock to
    move across expiry deadlines without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        _, deadline = entry
        if deadline is not None and deadline <= self._clock():
            del self._entries[key]
            return None
        return entry

    def ttl(self, key: str) -> float | None:
        """Seconds left on ``key``; None when missing or persistent."""
        entry = self._live(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self._clock()

    async def exists(self, key: str) -> bool:
        STORE_OPERATIONS_TOTAL.labels(operation="exists").inc()
        return self._live(key) is not None

    async def set_with_ttl(self, key: str, value: str, ttl_seconds: int, only_if_absent: bool = False) -> bool:
        STORE_OPERATIONS_TOTAL.labels(operation="set").inc()
        if only_if_absent and self._live(key) is not None:
            return False
        self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    async def get(self, key: str) -> str | None:
        STORE_OPERATIONS_TOTAL.labels(operation="get").inc()
        entry = self._live(key)
        return entry[0] if entry is not None else None

    async def incr(self, key: str) -> int:
        STORE_OPERATIONS_TOTAL.labels(operation="incr").inc()
        entry = self._live(key)
        if entry is None:
            value, deadline = 1, None
        else:
            value, deadline = int(entry[0]) + 1, entry[1]
        self._entries[key] = (str(value), deadline)
        return value

    async def expire(self, key: str, ttl_seconds: int, only_if_persistent: bool = False) -> bool:
        STORE_OPERATIONS_TOTAL.labels(operation="expire").inc()
        entry = self._live(key)
        if entry is None:
            return False
        value, deadline = entry
        if only_if_persistent and deadline is not None:
            return False
        self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    async def ping(self) -> bool:
        STORE_OPERATIONS_TOTAL.labels(operation="ping").inc()
        return True


def create_store(settings: Settings) -> SnippetStore:
    if settings.STORE_BACKEND is StoreBackend.MEMORY:
        return InMemorySnippetStore()
    return RedisSnippetStore.from_settings(settings)
