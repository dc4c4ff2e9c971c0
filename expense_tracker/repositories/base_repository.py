"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (Supabase + SQLite)
- Logger reference
- Convenience properties for accessing clients
- Injectable clock for ``created_at`` / ``updated_at`` stamping
- Batch-aware SQLite commits
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Optional

from supabase import Client as SupabaseClient

from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger
from expense_tracker.utils.dates import Clock, utc_now


class RepositoryError(Exception):
    """The store accepted a request but returned an empty or invalid response."""


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        clock: Optional[Clock] = None,
    ) -> None:
        self._db = db
        self._logger = logger
        self._clock: Clock = clock or utc_now

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for cloud operations."""
        return self._db.supabase

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection for local operations."""
        return self._db.sqlite

    @property
    def audit_connection(self) -> Optional[sqlite3.Connection]:
        """Connection used to persist audit events, when a local store exists."""
        return self._db.sqlite if self._db.has_sqlite else None

    def _now(self) -> datetime:
        return self._clock()

    def _commit(self) -> None:
        """Commit the SQLite transaction unless a batch is active.

        When :meth:`DatabaseManager.batch_write` is active, this is a
        no-op: the batch context manager issues a single commit (or
        rollback) when the ``with`` block exits.

        All repository code should call ``self._commit()`` instead of
        ``self.sqlite.commit()`` so that batch writes work transparently.
        """
        if not self._db.in_batch:
            self.sqlite.commit()
