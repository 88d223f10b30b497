"""FastAPI route definitions for the snippet bin REST API.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /api/snippets
        ├─ SnippetCreate (request body)
        └─ SnippetCreatedResponse (200) or 400/413/500/503

    GET  /api/snippets/:id
        └─ SnippetResponse (200) or 400/404/503

Key Behaviours
===============
- Endpoints stay thin: every storage rule lives in SnippetService.
- Failures are raised as SnippetError and rendered by the handler in
  app.main as {"success": false, "error": ...}.
- Identifiers are format-checked before any store access.
"""

import datetime

from fastapi import APIRouter, Depends

from app.dependencies import RequestContext, get_request_context, get_snippet_service
from app.enums import HealthStatus
from app.schemas import (
    HealthResponse,
    SnippetCreate,
    SnippetCreatedResponse,
    SnippetPayload,
    SnippetResponse,
    ms_to_datetime,
)
from app.service import SnippetService

__all__ = ["router"]

router = APIRouter()


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    cache_status = HealthStatus.HEALTHY
    try:
        await ctx.store.ping()
    except Exception as e:
        ctx.logger.error(f"Store health check failed: {e}")
        cache_status = HealthStatus.UNHEALTHY

    return HealthResponse(
        status=cache_status,
        cache=cache_status,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )


@router.post("/api/snippets", response_model=SnippetCreatedResponse, tags=["snippets"])
async def create_snippet(
    payload: SnippetCreate,
    ctx: RequestContext = Depends(get_request_context),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetCreatedResponse:
    ctx.add_tag("snippet_creation")
    created = await service.create_snippet(payload.content, payload.language, payload.title)
    ctx.logger.info(
        f"Snippet saved: {created.id}",
        extra={"operation": "create_snippet", "snippet_id": created.id, "duration_ms": ctx.get_duration()},
    )
    return SnippetCreatedResponse(
        id=created.id,
        url=f"/api/snippets/{created.id}",
        expires_at=ms_to_datetime(created.expires_at),
    )


@router.get("/api/snippets/{snippet_id}", response_model=SnippetResponse, tags=["snippets"])
async def get_snippet(
    snippet_id: str,
    ctx: RequestContext = Depends(get_request_context),
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetResponse:
    ctx.add_tag("snippet_lookup")
    view = await service.get_snippet(snippet_id)
    ctx.logger.info(
        f"Snippet served: {snippet_id} (view {view.views})",
        extra={"operation": "get_snippet", "snippet_id": snippet_id, "duration_ms": ctx.get_duration()},
    )
    return SnippetResponse(snippet=SnippetPayload.from_view(view))
