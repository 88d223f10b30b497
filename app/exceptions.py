"""Error taxonomy for snippet storage and retrieval.

Every failure that leaves the core is one of the classes below. Each carries
the HTTP status the API layer answers with and a message that is safe to show
to clients.

Hierarchy
=========
::
    SnippetError
    ├─ InvalidId            400  malformed identifier, no store access made
    ├─ NotFound             404  never created or already expired
    ├─ ValidationFailed     400  content/language policy violation
    │  └─ ContentTooLarge   413
    ├─ AllocationExhausted  500  every candidate identifier collided
    └─ StoreUnavailable     503  store unreachable or timed out

    IdentifierCollision          internal; conditional create lost a race
"""

__all__ = [
    "SnippetError",
    "InvalidId",
    "NotFound",
    "ValidationFailed",
    "ContentTooLarge",
    "AllocationExhausted",
    "StoreUnavailable",
    "IdentifierCollision",
]


class SnippetError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidId(SnippetError):
    status_code = 400
    default_message = "Invalid snippet ID format"


class NotFound(SnippetError):
    status_code = 404
    default_message = "Snippet not found or expired"


class ValidationFailed(SnippetError):
    status_code = 400
    default_message = "Invalid snippet"


class ContentTooLarge(ValidationFailed):
    status_code = 413
    default_message = "Content exceeds size limit"


class AllocationExhausted(SnippetError):
    status_code = 500
    default_message = "Failed to generate unique ID"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate unique ID after {attempts} attempts")


class StoreUnavailable(SnippetError):
    status_code = 503
    default_message = "Storage temporarily unavailable"


class IdentifierCollision(Exception):
    """Raised when a conditional create finds its identifier already live."""

    def __init__(self, snippet_id: str):
        self.snippet_id = snippet_id
        super().__init__(f"Snippet ID '{snippet_id}' is already in use")
