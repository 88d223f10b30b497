"""Pydantic schemas for persisted records, service results and API payloads.

Schema Hierarchy
=================
::
    SnippetCreate (Input)
    ├─ content: str
    ├─ language: str
    └─ title: str | None

    SnippetRecord (Persisted under snippet:{id})
    ├─ content: str
    ├─ language: str
    ├─ title: str | None
    ├─ created_at: int (ms epoch)
    └─ file_size: int | None

    CreatedSnippet / SnippetView (Service results)

    SnippetCreatedResponse / SnippetResponse / ErrorResponse / HealthResponse (Output)

How to Use
===========
**Step 1 — Encode a record for the store**::
    record = SnippetRecord(content="print('hi')", language="python", created_at=now)
    await store.set_with_ttl(key, record.model_dump_json(), ttl)

**Step 2 — Decode on the read path**::
    record = SnippetRecord.model_validate_json(raw)

Key Behaviours
===============
- Policy checks (size, language allow-list) live in the service, not here,
  so that violations map onto the snippet error taxonomy.
- Timestamps are stored as integer milliseconds and rendered as ISO-8601
  datetimes in API responses.
"""

import datetime

from pydantic import BaseModel, Field

from app.enums import HealthStatus

__all__ = [
    "SnippetCreate",
    "SnippetRecord",
    "CreatedSnippet",
    "SnippetView",
    "SnippetPayload",
    "SnippetCreatedResponse",
    "SnippetResponse",
    "ErrorResponse",
    "HealthResponse",
    "ms_to_datetime",
]


def ms_to_datetime(value: int) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(value / 1000, tz=datetime.timezone.utc)


class SnippetCreate(BaseModel):
    content: str
    language: str
    title: str | None = None


class SnippetRecord(BaseModel):
    """Immutable snippet payload, JSON-encoded in the store."""

    content: str
    language: str
    title: str | None = None
    created_at: int = Field(..., description="Creation time in milliseconds since the epoch")
    file_size: int | None = Field(None, description="UTF-8 byte length of content")

    model_config = {"frozen": True}


class CreatedSnippet(BaseModel):
    id: str
    created_at: int
    expires_at: int


class SnippetView(BaseModel):
    id: str
    record: SnippetRecord
    views: int


class SnippetPayload(BaseModel):
    id: str
    content: str
    language: str
    title: str | None
    file_size: int | None
    created_at: datetime.datetime
    views: int

    @classmethod
    def from_view(cls, view: SnippetView) -> "SnippetPayload":
        return cls(
            id=view.id,
            content=view.record.content,
            language=view.record.language,
            title=view.record.title,
            file_size=view.record.file_size,
            created_at=ms_to_datetime(view.record.created_at),
            views=view.views,
        )


class SnippetCreatedResponse(BaseModel):
    success: bool = True
    id: str
    url: str
    expires_at: datetime.datetime


class SnippetResponse(BaseModel):
    success: bool = True
    snippet: SnippetPayload


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: HealthStatus
    cache: HealthStatus
    timestamp: datetime.datetime
