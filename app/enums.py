"""Shared enums for the snippet bin application.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["HealthStatus", "RequestStatus", "Language", "StoreBackend"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class RequestStatus(StrEnum):
    """Request status values for metrics and logging."""

    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    INVALID_ID = "invalid_id"
    NOT_FOUND = "not_found"
    ERROR = "error"


class Language(StrEnum):
    """Languages a snippet may be tagged with."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"
    HTML = "html"
    CSS = "css"
    JSON = "json"
    YAML = "yaml"


class StoreBackend(StrEnum):
    """Key/value store implementations the service can run against."""

    REDIS = "redis"
    MEMORY = "memory"
