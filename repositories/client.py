"""
Supabase client initialization.

This module contains *only* the database connection setup. Repository modules
call `get_supabase()` to obtain the shared client and `execute()` to run a
PostgREST query with uniform error translation.

Environment variables:
- SUPABASE_URL: Your Supabase project URL (required)
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
- SUPABASE_TIMEOUT_SECONDS: PostgREST request timeout (default: 10)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Sequence

import httpx
from dotenv import load_dotenv
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from domain.errors import PersistenceError

# Look for .env in the project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_TIMEOUT_SECONDS: float = 10.0

# PostgREST caps every response at `max_rows` (1000 unless configured).
PAGE_SIZE: int = 1000

# Ids per `in_` filter; keeps the request URL well under server limits.
ID_CHUNK_SIZE: int = 100

_client: Optional[Client] = None


def _timeout_from_env() -> float:
    raw = os.getenv("SUPABASE_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        raise RuntimeError(f"SUPABASE_TIMEOUT_SECONDS must be a number, got {raw!r}")
    if timeout <= 0:
        raise RuntimeError("SUPABASE_TIMEOUT_SECONDS must be positive")
    return timeout


def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first use."""

    global _client
    if _client is not None:
        return _client

    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")

    if not url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )
    if not key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    # Every store call must fail after a bounded time instead of hanging.
    options = ClientOptions(postgrest_client_timeout=_timeout_from_env())
    _client = create_client(url, key, options=options)
    return _client


def set_supabase(client: Any) -> None:
    """Replace the shared client (scripts and tests). Pass None to reset."""

    global _client
    _client = client


def execute(query: Any, action: str) -> List[dict]:
    """
    Execute a PostgREST query builder and return its rows.

    Store failures of any kind (API errors, error-bearing responses, transport
    errors and timeouts) are raised as PersistenceError.
    """

    try:
        response = query.execute()
    except APIError as e:
        raise PersistenceError(f"Failed to {action}: {e.message or e}", code=e.code) from e
    except httpx.HTTPError as e:
        raise PersistenceError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise PersistenceError(f"Failed to {action}: {error}")

    return list(getattr(response, "data", None) or [])


def fetch_all(build_query: Callable[[], Any], action: str, page_size: int = PAGE_SIZE) -> List[dict]:
    """
    Fetch every row of a select, one `range()` page at a time.

    `build_query` must return a fresh, totally ordered query on each call so
    pages do not overlap or skip rows. Paging stops at the first empty page,
    which also covers a server `max_rows` smaller than `page_size`.
    """

    all_rows: List[dict] = []
    offset = 0
    while True:
        page_rows = execute(build_query().range(offset, offset + page_size - 1), action)
        if not page_rows:
            break
        all_rows.extend(page_rows)
        offset += len(page_rows)
    return all_rows


def chunked(values: Sequence[str], size: int = ID_CHUNK_SIZE) -> Iterator[Sequence[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


__all__ = ["get_supabase", "set_supabase", "execute", "fetch_all", "chunked", "PAGE_SIZE", "ID_CHUNK_SIZE"]
