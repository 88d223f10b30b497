"""Snippet identifier allocation.

Identifiers are 12 random characters from the URL-safe alphabet, generated
with nanoid (backed by ``os.urandom``). That gives roughly 72 bits of
entropy; the existence check below is a correctness backstop, not the main
defence against collisions.

Flow Diagram — allocate()
=========================
::
    ┌─────────────┐
    │ allocate()  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ nanoid(12)  │◄─────────────┐
    └──────┬──────┘              │
           ▼                     │
    ┌─────────────┐   taken and  │
    │ EXISTS      │───attempts ──┘
    │ snippet:{id}│   remain
    └──────┬──────┘
    free   │           taken, no attempts left
           ▼                     │
    ┌─────────────┐      ┌───────▼────────────┐
    │ return id   │      │ AllocationExhausted │
    └─────────────┘      └────────────────────┘

Key Behaviours
===============
- Existence checks are read-only; the id is not reserved. The repository's
  conditional create closes the check-then-write window.
- At most ID_ALLOCATION_MAX_ATTEMPTS candidates are tried per call.
"""

import logging
import re

from nanoid import generate

from app.config import Settings
from app.exceptions import AllocationExhausted
from app.keys import SnippetKeys
from app.metrics import ID_COLLISIONS_TOTAL
from app.store import SnippetStore

__all__ = ["URL_SAFE_ALPHABET", "SNIPPET_ID_LENGTH", "IdentifierAllocator", "generate_snippet_id", "is_valid_snippet_id"]

URL_SAFE_ALPHABET = "_-0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
SNIPPET_ID_LENGTH = 12
SNIPPET_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{12}")


def generate_snippet_id(length: int = SNIPPET_ID_LENGTH) -> str:
    assert isinstance(length, int) and length > 0, f"length must be a positive integer, got {length!r}"
    return generate(URL_SAFE_ALPHABET, length)


def is_valid_snippet_id(value: object) -> bool:
    return isinstance(value, str) and SNIPPET_ID_PATTERN.fullmatch(value) is not None


class IdentifierAllocator:
    def __init__(
        self,
        store: SnippetStore,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self._store = store
        self._keys = SnippetKeys(settings)
        self._max_attempts = settings.ID_ALLOCATION_MAX_ATTEMPTS
        self._logger = logger or logging.getLogger("snippetbin")

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def allocate(self) -> str:
        """Return an identifier with no live record behind it.

        Raises:
            AllocationExhausted: every candidate was already in use.
            StoreUnavailable: an existence check could not be completed.
        """
        for attempt in range(1, self._max_attempts + 1):
            candidate = generate_snippet_id()
            if not await self._store.exists(self._keys.record(candidate)):
                return candidate
            ID_COLLISIONS_TOTAL.labels(stage="exists").inc()
            self._logger.warning(
                f"Snippet id collision on attempt {attempt}/{self._max_attempts}",
                extra={"operation": "allocate_id", "attempt": attempt},
            )

        self._logger.error(f"Snippet id allocation exhausted after {self._max_attempts} attempts")
        raise AllocationExhausted(self._max_attempts)
