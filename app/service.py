"""Snippet Service Layer - Core Business Logic

This module provides the caller-facing operations of the snippet bin:
creating a snippet under a fresh identifier and reading it back while
counting the view.

Architecture Overview
=====================
::
    ┌─────────────────────────────────────────────────────────────┐
    │                      SnippetService                         │
    │  ┌─────────────────┐  ┌─────────────────┐  ┌──────────────┐ │
    │  │ Content policy  │  │ ID Allocator    │  │ Repository   │ │
    │  │                 │  │                 │  │              │ │
    │  │ • Non-empty     │  │ • nanoid(12)    │  │ • SET NX EX  │ │
    │  │ • Size limit    │  │ • EXISTS check  │  │ • GET + INCR │ │
    │  │ • Language list │  │ • 5 attempts    │  │ • TTL repair │ │
    │  └─────────────────┘  └─────────────────┘  └──────────────┘ │
    └─────────────────────────────────────────────────────────────┘
                                   │
                                   ▼
                      ┌─────────────────────────┐
                      │   Redis / Valkey        │
                      │   (TTL-bounded storage) │
                      └─────────────────────────┘

Snippet Creation Flow
---------------------
::
    ┌─────────────┐
    │ validate    │──── ValidationFailed / ContentTooLarge
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ allocate id │──── AllocationExhausted
    └──────┬──────┘
           ▼
    ┌─────────────┐   IdentifierCollision
    │ create      │──────────────┐
    └──────┬──────┘              │ retry with a new id
           ▼                     │ (bounded)
    ┌─────────────┐              │
    │ CreatedSnippet│◄───────────┘
    └─────────────┘

Snippet Read Flow
-----------------
::
    ┌─────────────┐
    │ id format   │──── InvalidId (no store access)
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ fetch       │──── NotFound
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SnippetView │  views includes this read
    └─────────────┘

Usage Examples
==============
```python
service = SnippetService(store, settings)
created = await service.create_snippet("print('hi')", "python")
view = await service.get_snippet(created.id)
assert view.views == 1
```
"""

import logging
import time
from collections.abc import Callable

from app.config import Settings
from app.enums import RequestStatus
from app.exceptions import (
    AllocationExhausted,
    ContentTooLarge,
    IdentifierCollision,
    InvalidId,
    NotFound,
    SnippetError,
    ValidationFailed,
)
from app.id_allocator import IdentifierAllocator, is_valid_snippet_id
from app.metrics import (
    ID_COLLISIONS_TOTAL,
    SNIPPET_CREATE_DURATION,
    SNIPPET_CREATE_REQUESTS_TOTAL,
    SNIPPET_FETCH_DURATION,
    SNIPPET_FETCH_REQUESTS_TOTAL,
)
from app.repository import SnippetRepository
from app.schemas import CreatedSnippet, SnippetRecord, SnippetView
from app.store import SnippetStore

__all__ = ["SnippetService"]


def _request_status(exc: Exception) -> RequestStatus:
    if isinstance(exc, ValidationFailed):
        return RequestStatus.VALIDATION_ERROR
    if isinstance(exc, InvalidId):
        return RequestStatus.INVALID_ID
    if isinstance(exc, NotFound):
        return RequestStatus.NOT_FOUND
    return RequestStatus.ERROR


class SnippetService:
    """Create and read snippets against a shared key/value store.

    The store handle is injected once and shared by the allocator and the
    repository; the service holds no other state, so one instance can serve
    any number of concurrent requests.

    Example:
        >>> service = SnippetService.from_context(ctx)
        >>> created = await service.create_snippet("SELECT 1;", "python", "query")
        >>> print(f"Saved: {created.id}")
    """

    def __init__(
        self,
        store: SnippetStore,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._logger = logger or logging.getLogger("snippetbin")
        self._clock = clock
        self._allocator = IdentifierAllocator(store, settings, self._logger)
        self._repository = SnippetRepository(store, settings, self._logger, clock)

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "SnippetService":
        """Build a service from the shared resources of a RequestContext."""
        return cls(ctx.store, ctx.settings, ctx.logger)

    # ========================================================================
    # PUBLIC API METHODS
    # ========================================================================

    async def create_snippet(self, content: str, language: str, title: str | None = None) -> CreatedSnippet:
        """Store a new snippet under a freshly allocated identifier.

        Args:
            content: Snippet text, non-empty and within MAX_CONTENT_BYTES.
            language: One of ALLOWED_LANGUAGES.
            title: Optional display title, within MAX_TITLE_BYTES.

        Returns:
            CreatedSnippet: The identifier and its absolute expiry (ms epoch).

        Raises:
            ValidationFailed: content or language violates policy.
            ContentTooLarge: content or title exceeds its byte limit.
            AllocationExhausted: no free identifier within the attempt budget.
            StoreUnavailable: the store could not be reached.
        """
        start_time = time.perf_counter()
        try:
            file_size = self._validate(content, language, title)
            record = SnippetRecord(
                content=content,
                language=language,
                title=title or None,
                created_at=int(self._clock() * 1000),
                file_size=file_size,
            )
            snippet_id, expires_at = await self._persist(record)
        except SnippetError as exc:
            SNIPPET_CREATE_DURATION.observe(time.perf_counter() - start_time)
            SNIPPET_CREATE_REQUESTS_TOTAL.labels(status=_request_status(exc)).inc()
            self._logger.warning(f"Snippet creation failed: {exc}")
            raise

        duration = time.perf_counter() - start_time
        SNIPPET_CREATE_DURATION.observe(duration)
        SNIPPET_CREATE_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(
            f"Snippet created: {snippet_id} in {duration:.3f}s",
            extra={"operation": "create_snippet", "snippet_id": snippet_id, "file_size": file_size},
        )
        return CreatedSnippet(id=snippet_id, created_at=record.created_at, expires_at=expires_at)

    async def get_snippet(self, snippet_id: str) -> SnippetView:
        """Read a snippet and count the read as one view.

        Raises:
            InvalidId: ``snippet_id`` is not 12 URL-safe characters.
            NotFound: the snippet never existed or has expired.
            StoreUnavailable: the store could not be reached.
        """
        start_time = time.perf_counter()
        try:
            if not is_valid_snippet_id(snippet_id):
                raise InvalidId()
            record, views = await self._repository.fetch(snippet_id)
        except SnippetError as exc:
            SNIPPET_FETCH_DURATION.observe(time.perf_counter() - start_time)
            SNIPPET_FETCH_REQUESTS_TOTAL.labels(status=_request_status(exc)).inc()
            self._logger.info(f"Snippet lookup failed for {snippet_id!r}: {exc}")
            raise

        SNIPPET_FETCH_DURATION.observe(time.perf_counter() - start_time)
        SNIPPET_FETCH_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.debug(f"Snippet {snippet_id} served, view {views}")
        return SnippetView(id=snippet_id, record=record, views=views)

    # ========================================================================
    # PRIVATE HELPER METHODS
    # ========================================================================

    def _validate(self, content: str, language: str, title: str | None) -> int:
        """Apply the content policy and return the content size in bytes."""
        if not isinstance(content, str) or not content:
            raise ValidationFailed("Content is required and must be a string")
        if not isinstance(language, str) or not language:
            raise ValidationFailed("Language is required and must be a string")

        file_size = len(content.encode("utf-8"))
        if file_size > self._settings.MAX_CONTENT_BYTES:
            limit_mb = self._settings.MAX_CONTENT_BYTES / (1024 * 1024)
            raise ContentTooLarge(f"Content exceeds {limit_mb:g}MB limit")
        if title and len(title.encode("utf-8")) > self._settings.MAX_TITLE_BYTES:
            raise ContentTooLarge(f"Title exceeds {self._settings.MAX_TITLE_BYTES} byte limit")
        if language not in self._settings.ALLOWED_LANGUAGES:
            raise ValidationFailed("Unsupported language")
        return file_size

    async def _persist(self, record: SnippetRecord) -> tuple[str, int]:
        """Allocate an identifier and create the record, retrying lost races."""
        attempts = self._allocator.max_attempts
        for attempt in range(1, attempts + 1):
            snippet_id = await self._allocator.allocate()
            try:
                expires_at = await self._repository.create(snippet_id, record)
            except IdentifierCollision:
                ID_COLLISIONS_TOTAL.labels(stage="create").inc()
                self._logger.warning(f"Conditional create lost race for {snippet_id} (attempt {attempt}/{attempts})")
                continue
            return snippet_id, expires_at

        raise AllocationExhausted(attempts)
