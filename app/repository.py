"""Snippet repository: TTL-scoped persistence and atomic view accounting.

The repository is the only component that reads or writes snippet keys.

Flow Diagram — create()
=======================
::
    ┌──────────────────────┐
    │ SET snippet:{id}     │  NX, EX ttl
    └──────────┬───────────┘
    written?   │
    ┌──────────┴──────────┐
    │ NO                  │ YES
    ▼                     ▼
┌──────────────────┐  ┌──────────────────────┐
│ IdentifierCollision│ │ SET snippet:{id}:views│ "0", EX ttl
└──────────────────┘  └──────────┬───────────┘
                      failed?    │
                      ┌──────────┴──────────┐
                      │ YES                 │ NO
                      ▼                     ▼
                 ┌──────────┐          ┌──────────┐
                 │ log, keep│          │ return   │
                 │ going    │          │ expires_at│
                 └──────────┘          └──────────┘

Flow Diagram — fetch()
======================
::
    ┌──────────────────────────────────────────┐
    │ gather(GET snippet:{id}, INCR ...:views) │
    └──────────────────┬───────────────────────┘
    record present?    │
    ┌──────────────────┴──────────┐
    │ NO                          │ YES
    ▼                             ▼
┌──────────────────────┐   ┌──────────────────────────┐
│ EXPIRE views NX 60s  │   │ views == 1?              │
│ raise NotFound       │   │ EXPIRE views NX remaining│
└──────────────────────┘   │ return (record, views)   │
                           └──────────────────────────┘

Key Behaviours
===============
- Record and counter share one TTL, set at creation. Nothing is ever deleted.
- The increment is issued even when the record is gone; its result is
  discarded in that case.
- Both concurrent calls complete before any failure is raised.
- A failed orphan counter expiry is logged; the read still ends in NotFound.
- A counter without a TTL gets one on the read path, and "NX" expiry never
  shortens a counter that already has one.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from pydantic import ValidationError

from app.config import Settings
from app.exceptions import IdentifierCollision, NotFound, StoreUnavailable
from app.keys import SnippetKeys
from app.metrics import VIEW_COUNTER_WRITE_FAILURES_TOTAL
from app.schemas import SnippetRecord
from app.store import SnippetStore

__all__ = ["SnippetRepository"]


class SnippetRepository:
    def __init__(
        self,
        store: SnippetStore,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._keys = SnippetKeys(settings)
        self._orphan_ttl = settings.ORPHAN_COUNTER_TTL_SECONDS
        self._logger = logger or logging.getLogger("snippetbin")
        self._clock = clock

    async def create(self, snippet_id: str, record: SnippetRecord) -> int:
        """Persist ``record`` and a zeroed view counter under ``snippet_id``.

        Returns:
            int: Absolute expiry deadline in milliseconds since the epoch.

        Raises:
            IdentifierCollision: a live record already holds ``snippet_id``.
            StoreUnavailable: the record could not be written.
        """
        ttl = self._keys.ttl_seconds
        written = await self._store.set_with_ttl(
            self._keys.record(snippet_id),
            record.model_dump_json(),
            ttl,
            only_if_absent=True,
        )
        if not written:
            raise IdentifierCollision(snippet_id)

        try:
            await self._store.set_with_ttl(self._keys.views(snippet_id), "0", ttl)
        except StoreUnavailable as exc:
            # Readable without a counter; fetch() restarts it from zero.
            VIEW_COUNTER_WRITE_FAILURES_TOTAL.inc()
            self._logger.warning(
                f"View counter write failed for {snippet_id}: {exc}",
                extra={"operation": "create_snippet", "snippet_id": snippet_id},
            )

        return self._keys.expires_at(record.created_at)

    async def fetch(self, snippet_id: str) -> tuple[SnippetRecord, int]:
        """Read the record and count this read as one view.

        Returns:
            tuple[SnippetRecord, int]: The record and the view count including this read.

        Raises:
            NotFound: no live record exists for ``snippet_id``.
            StoreUnavailable: either store call failed.
        """
        views_key = self._keys.views(snippet_id)
        results = await asyncio.gather(
            self._store.get(self._keys.record(snippet_id)),
            self._store.incr(views_key),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        raw, views = results

        if raw is None:
            try:
                await self._store.expire(views_key, self._orphan_ttl, only_if_persistent=True)
            except StoreUnavailable as exc:
                self._logger.warning(
                    f"Orphan view counter expiry failed for {snippet_id}: {exc}",
                    extra={"operation": "get_snippet", "snippet_id": snippet_id},
                )
            raise NotFound()

        try:
            record = SnippetRecord.model_validate_json(raw)
        except ValidationError as exc:
            self._logger.error(f"Undecodable snippet record for {snippet_id}: {exc}")
            raise StoreUnavailable(f"Stored record for {snippet_id} is unreadable") from exc

        if views == 1:
            remaining = self._keys.remaining_seconds(record.created_at, int(self._clock() * 1000))
            await self._store.expire(views_key, remaining, only_if_persistent=True)

        return record, views
