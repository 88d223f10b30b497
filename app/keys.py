"""Key naming and expiry policy shared by the allocator and the repository.

Key Layout
==========
::
    snippet:{id}         JSON-encoded SnippetRecord   EX SNIPPET_TTL_SECONDS
    snippet:{id}:views   integer view counter         EX SNIPPET_TTL_SECONDS

Both keys are written with the same TTL at creation time, so they expire
together without any explicit deletion.
"""

import math

from app.config import Settings

__all__ = ["SnippetKeys"]


class SnippetKeys:
    def __init__(self, settings: Settings):
        self.prefix = settings.SNIPPET_KEY_PREFIX
        self.ttl_seconds = settings.SNIPPET_TTL_SECONDS

    def record(self, snippet_id: str) -> str:
        return f"{self.prefix}:{snippet_id}"

    def views(self, snippet_id: str) -> str:
        return f"{self.prefix}:{snippet_id}:views"

    def expires_at(self, created_at: int) -> int:
        """Absolute expiry deadline in ms for a record created at ``created_at``."""
        return created_at + self.ttl_seconds * 1000

    def remaining_seconds(self, created_at: int, at: int) -> int:
        """Whole seconds left before the deadline, rounded up, never below 1."""
        remaining_ms = self.expires_at(created_at) - at
        return max(1, math.ceil(remaining_ms / 1000))
