"""Snippet endpoint behavior tests."""

import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from app.dependencies import _service_manager
from app.exceptions import StoreUnavailable
from app.main import app
from app.store import InMemorySnippetStore


def _parse(value: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
async def test_save_snippet(client: AsyncClient) -> None:
    response = await client.post(
        "/api/snippets",
        json={"content": "print('hi')", "language": "python", "title": "greeting"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert len(data["id"]) == 12
    assert data["url"] == f"/api/snippets/{data['id']}"

    lifetime = _parse(data["expires_at"]) - datetime.datetime.now(datetime.timezone.utc)
    assert datetime.timedelta(days=13, hours=23) < lifetime <= datetime.timedelta(days=14)


@pytest.mark.asyncio
async def test_get_snippet_counts_views(client: AsyncClient) -> None:
    create_resp = await client.post("/api/snippets", json={"content": "body { }", "language": "css"})
    snippet_id = create_resp.json()["id"]

    first = await client.get(f"/api/snippets/{snippet_id}")
    assert first.status_code == 200
    snippet = first.json()["snippet"]
    assert first.json()["success"] is True
    assert snippet["id"] == snippet_id
    assert snippet["content"] == "body { }"
    assert snippet["language"] == "css"
    assert snippet["title"] is None
    assert snippet["file_size"] == 8
    assert snippet["views"] == 1
    assert _parse(snippet["created_at"]).tzinfo is not None

    second = await client.get(f"/api/snippets/{snippet_id}")
    assert second.json()["snippet"]["views"] == 2


@pytest.mark.asyncio
async def test_get_unknown_snippet(client: AsyncClient) -> None:
    response = await client.get("/api/snippets/AAAAAAAAAAAA")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Snippet not found or expired"}


@pytest.mark.asyncio
@pytest.mark.parametrize("snippet_id", ["short", "has spaces!!", "toolongidentifier"])
async def test_get_malformed_id(client: AsyncClient, snippet_id: str) -> None:
    response = await client.get(f"/api/snippets/{snippet_id}")
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid snippet ID format"}


@pytest.mark.asyncio
async def test_save_unsupported_language(client: AsyncClient) -> None:
    response = await client.post("/api/snippets", json={"content": "x", "language": "cobol"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Unsupported language"}


@pytest.mark.asyncio
async def test_save_empty_content(client: AsyncClient) -> None:
    response = await client.post("/api/snippets", json={"content": "", "language": "python"})
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_save_missing_language(client: AsyncClient) -> None:
    response = await client.post("/api/snippets", json={"content": "x = 1"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "language" in response.json()["error"]


@pytest.mark.asyncio
async def test_save_malformed_json(client: AsyncClient) -> None:
    response = await client.post(
        "/api/snippets",
        content=b'{"content": ',
        headers={"content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON format"}


@pytest.mark.asyncio
async def test_save_oversized_content(client: AsyncClient) -> None:
    response = await client.post(
        "/api/snippets",
        json={"content": "a" * (2 * 1024 * 1024 + 1), "language": "python"},
    )
    assert response.status_code == 413
    assert response.json() == {"success": False, "error": "Content exceeds 2MB limit"}


@pytest.mark.asyncio
async def test_unknown_endpoint(client: AsyncClient) -> None:
    response = await client.get("/api/unknown/path")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Endpoint not found"}


class UnreachableStore(InMemorySnippetStore):
    async def exists(self, key):
        raise StoreUnavailable("connection refused")

    async def get(self, key):
        raise StoreUnavailable("connection refused")

    async def ping(self):
        raise StoreUnavailable("connection refused")


@pytest.mark.asyncio
async def test_store_outage_returns_503() -> None:
    await _service_manager.cleanup()
    await _service_manager.initialize(store=UnreachableStore())
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            create_resp = await ac.post("/api/snippets", json={"content": "x = 1", "language": "python"})
            get_resp = await ac.get("/api/snippets/AAAAAAAAAAAA")
            health_resp = await ac.get("/health")
    finally:
        await _service_manager.cleanup()

    assert create_resp.status_code == 503
    assert create_resp.json()["success"] is False
    assert get_resp.status_code == 503
    assert health_resp.json()["cache"] == "unhealthy"


@pytest.mark.asyncio
async def test_save_oversized_title(client: AsyncClient) -> None:
    response = await client.post(
        "/api/snippets",
        json={"content": "x = 1", "language": "python", "title": "t" * 1025},
    )
    assert response.status_code == 413
    assert response.json() == {"success": False, "error": "Title exceeds 1024 byte limit"}


@pytest.mark.asyncio
async def test_save_oversized_request_body(client: AsyncClient, store: InMemorySnippetStore) -> None:
    response = await client.post(
        "/api/snippets",
        json={"content": "x = 1", "language": "python", "title": "t" * (5 * 1024 * 1024)},
    )
    assert response.status_code == 413
    assert response.json() == {"success": False, "error": "Request payload too large"}
    assert store._entries == {}
