"""Supabase client singleton and storage error translation."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from typing import Any

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError
from supabase import Client, create_client

from src.api.middleware.error_handler import (
    DuplicateError,
    NotFoundError,
    StorageUnavailableError,
    field_detail,
)
from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
NO_DATA_FOUND = "P0002"


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key for backend operations, which bypasses RLS
    at the PostgREST level. Authorization must be verified by the
    caller before any read or write.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


@contextmanager
def storage_errors(
    resource: str,
    field: str | None = None,
    value: Any = None,
) -> Iterator[None]:
    """Translate storage-layer exceptions into API errors.

    Args:
        resource: Name of the resource being accessed, used in messages.
        field: Field reported when a uniqueness violation occurs.
        value: Offending value reported with the field.

    Raises:
        DuplicateError: On a unique constraint violation.
        NotFoundError: When the database reports missing data.
        StorageUnavailableError: On transport failures or other database errors.
    """
    try:
        yield
    except PostgrestAPIError as e:
        if e.code == UNIQUE_VIOLATION:
            details = field_detail(field, value, "Already exists", "duplicate") if field else None
            raise DuplicateError(f"{resource} already exists", details=details) from e
        if e.code == NO_DATA_FOUND:
            raise NotFoundError(f"{resource} not found") from e
        logger.error("Database error on %s: %s (%s)", resource, e.message, e.code)
        raise StorageUnavailableError(f"Database error while accessing {resource}") from e
    except httpx.HTTPError as e:
        logger.error("Storage unreachable while accessing %s: %s", resource, e)
        raise StorageUnavailableError(f"Storage unavailable while accessing {resource}") from e


async def check_database_connection() -> dict[str, Any]:
    """Check if database connection is healthy.

    Performs a simple query to verify database connectivity.

    Returns:
        dict: Connection status with 'healthy' boolean and optional 'error' message.
    """
    try:
        client = get_supabase_client()
        client.table("options").select("id").limit(1).execute()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
