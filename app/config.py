"""Configuration management for the snippet bin application.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from app.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    ttl = settings.SNIPPET_TTL_SECONDS

**Step 3 — Switch to the in-memory store for local runs**::
    STORE_BACKEND=memory uvicorn app.main:app --reload

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- SNIPPET_TTL_SECONDS applies to both the record and its view counter.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "StoreBackend", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.enums import Language, StoreBackend


class Settings(BaseSettings):
    APP_NAME: str = "snippet-bin"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:3001"
    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Key/value store
    STORE_BACKEND: StoreBackend = StoreBackend.REDIS
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 2.0
    REDIS_CONNECT_TIMEOUT_SECONDS: float = 2.0

    # Snippet lifecycle
    SNIPPET_KEY_PREFIX: str = "snippet"
    SNIPPET_TTL_SECONDS: int = 1_209_600  # 14 days
    ORPHAN_COUNTER_TTL_SECONDS: int = 60

    # Identifier allocation
    ID_ALLOCATION_MAX_ATTEMPTS: int = 5

    # Content policy
    MAX_CONTENT_BYTES: int = 2 * 1024 * 1024
    MAX_TITLE_BYTES: int = 1024
    MAX_REQUEST_BYTES: int = 2_621_440  # 2.5 MiB, whole JSON body
    ALLOWED_LANGUAGES: list[str] = [language.value for language in Language]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
