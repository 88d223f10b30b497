"""Shared pytest fixtures for service, repository and API tests.

Everything runs against InMemorySnippetStore driven by a manual clock, so no
Redis server is needed and expiry can be crossed without sleeping.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings, get_settings
from app.dependencies import _service_manager
from app.main import app
from app.repository import SnippetRepository
from app.service import SnippetService
from app.store import InMemorySnippetStore

START_TIME = 1_700_000_000.0


class ManualClock:
    """Wall clock that only moves when told to."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> InMemorySnippetStore:
    return InMemorySnippetStore(clock=clock)


@pytest.fixture
def service(store: InMemorySnippetStore, settings: Settings, clock: ManualClock) -> SnippetService:
    return SnippetService(store, settings, clock=clock)


@pytest.fixture
def repository(store: InMemorySnippetStore, settings: Settings, clock: ManualClock) -> SnippetRepository:
    return SnippetRepository(store, settings, clock=clock)


@pytest_asyncio.fixture(scope="function")
async def client(store: InMemorySnippetStore) -> AsyncGenerator[AsyncClient, None]:
    await _service_manager.cleanup()
    await _service_manager.initialize(store=store)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await _service_manager.cleanup()
