"""
Storage factory - switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend (in-memory vs DB)
so the rest of the app can stay ignorant of where data lives. It always hands
back a matching pair: a link store and a click ledger.

- Reads environment **at call time** to avoid stale values in tests.
- Imports the DB backend **only if** the selected backend is "postgres".

Environment variables
---------------------
- SHORTLINK_STORAGE_BACKEND: "memory" (default) or "postgres"
- SHORTLINK_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional, Tuple

from shortlink_platform.storage.base import BaseClickLedger, BaseLinkStore
from shortlink_platform.storage.storage import ClickLedger, LinkStore

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> Tuple[BaseLinkStore, BaseClickLedger]:
    """
    Return a (link store, click ledger) pair based on configuration.

    Parameters
    ----------
    backend : str, optional
        "memory" (default) or "postgres". If omitted, reads SHORTLINK_STORAGE_BACKEND.
    kwargs : dict
        For postgres: dsn="..." and create_schema=True to run the DDL on startup.

    Returns
    -------
    tuple of (BaseLinkStore, BaseClickLedger)
    """
    be = (backend or os.getenv("SHORTLINK_STORAGE_BACKEND", "memory")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return LinkStore(), ClickLedger()

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTLINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from shortlink_platform.storage.db_storage import PostgresClickLedger, PostgresLinkStore

        store, ledger = PostgresLinkStore(dsn=dsn), PostgresClickLedger(dsn=dsn)
        if kwargs.get("create_schema"):
            store.ensure_schema()
        return store, ledger

    raise ValueError(f"Unknown storage backend: {be!r}")
