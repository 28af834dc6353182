"""Translation of Supabase/PostgREST failures into engine errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from attendance_engine.domain.errors import TransientStorageError

UNIQUE_VIOLATION = "23505"
UNDEFINED_FUNCTION = "42883"

# Serialization failures, deadlocks, connection loss and PostgREST's
# "could not connect" family.
_TRANSIENT_CODES = {
    "40001",
    "40P01",
    "08000",
    "08003",
    "08006",
    "57P01",
    "PGRST000",
    "PGRST001",
    "PGRST002",
}


def is_transient(exc: APIError) -> bool:
    """Return true when a PostgREST error is worth retrying."""
    return exc.code in _TRANSIENT_CODES


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Raise TransientStorageError for network and retryable database failures."""
    try:
        yield
    except httpx.TransportError as exc:
        raise TransientStorageError(f"Storage unavailable during {action}") from exc
    except APIError as exc:
        if is_transient(exc):
            raise TransientStorageError(
                f"Transient storage failure during {action}: {exc.message}"
            ) from exc
        raise
