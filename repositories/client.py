"""
Supabase storage handle.

This module contains *only* the database connection lifecycle and the shared
query execution helper used by the repository modules.

There is no module-level client: the application creates one `StorageHandle`
at startup, passes it to each repository, and closes it on shutdown.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx
from postgrest.exceptions import APIError

# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from domain.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

# Postgres error code for unique constraint violations.
UNIQUE_VIOLATION = "23505"


class StorageHandle:
    """
    Explicit handle around a supabase-py client.

    Lifecycle:
    - connect() creates the client (idempotent)
    - close() drops it; any later query raises StorageUnavailableError
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        *,
        client_factory: Callable[[str, str], Client] = create_client,
    ) -> None:
        self._url = url
        self._key = key
        self._client_factory = client_factory
        self._client: Optional[Client] = None

    @classmethod
    def from_client(cls, client: Any) -> "StorageHandle":
        """Wrap an already constructed client (connected immediately)."""

        handle = cls()
        handle._client = client
        return handle

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> "StorageHandle":
        if self._client is not None:
            return self
        if not self._url or not self._key:
            raise StorageUnavailableError("Storage URL and key are required to connect")
        try:
            self._client = self._client_factory(self._url, self._key)
        except Exception as exc:
            raise StorageUnavailableError(f"Failed to connect to storage: {exc}") from exc
        logger.info("Storage connected", extra={"storage_url": self._url})
        return self

    def close(self) -> None:
        if self._client is None:
            return
        self._client = None
        logger.info("Storage closed")

    def table(self, name: str) -> Any:
        if self._client is None:
            raise StorageUnavailableError("Storage is not connected")
        return self._client.table(name)


def execute(query: Any, action: str) -> Any:
    """
    Execute a PostgREST query and normalize failures.

    supabase-py raises APIError for most server-side failures, httpx errors for
    transport failures, and older builders report an `error` attribute on the
    response. All three surface as StorageUnavailableError; APIError codes are
    preserved on the raised error as `code`.
    """

    try:
        response = query.execute()
    except APIError as e:
        code = getattr(e, "code", None)
        raise StorageUnavailableError(
            f"Failed to {action}: {getattr(e, 'message', None) or e}",
            code=str(code) if code is not None else None,
        ) from e
    except httpx.HTTPError as e:
        raise StorageUnavailableError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        code = getattr(error, "code", None)
        raise StorageUnavailableError(
            f"Failed to {action}: {error}",
            code=str(code) if code is not None else None,
        )
    return response


def rows_of(response: Any) -> list:
    return getattr(response, "data", None) or []


__all__ = ["StorageHandle", "execute", "rows_of", "UNIQUE_VIOLATION"]
