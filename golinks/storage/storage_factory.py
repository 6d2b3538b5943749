"""
Storage factory - switch link store backend from config (lazy env version)
==========================================================================

Centralizes selection of the storage backend (in-memory vs Postgres) so the
rest of the app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the Postgres backend **only if** it is selected.

Environment variables
---------------------
- GOLINKS_STORAGE_BACKEND: "memory" (default) or "postgres"
- GOLINKS_DB_DSN:          DSN string if backend == "postgres"
"""

import logging
import os
from typing import Optional

from golinks.storage.base import BaseLinkStore
from golinks.storage.memory_storage import InMemoryLinkStore

log = logging.getLogger("golinks.storage")


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseLinkStore:
    """
    Return a link store based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads GOLINKS_STORAGE_BACKEND.
    kwargs : dict
        Extra args passed to the backend constructor. For postgres, use dsn="...";
        both backends accept timeout=<seconds>.

    Raises
    ------
    ValueError
        Unknown backend, or postgres selected without a DSN.
    """
    be = (backend or os.getenv("GOLINKS_STORAGE_BACKEND", "memory")).strip().lower()
    log.debug("Selected storage backend: %r", be)

    if be == "memory":
        return InMemoryLinkStore(timeout=kwargs.get("timeout"))

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("GOLINKS_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env GOLINKS_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from golinks.storage.db_storage import PostgresLinkStore
        return PostgresLinkStore(dsn=dsn, timeout=kwargs.get("timeout"))

    raise ValueError(f"Unknown storage backend: {be!r}")
