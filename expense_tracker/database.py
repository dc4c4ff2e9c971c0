"""
Database Abstraction Layer.

Owns the raw connections for the two stores the application can run
against:

- **Supabase (cloud PostgreSQL)**: the managed backend holding the
  ``expenses`` and ``categories`` tables, scoped per authenticated user.
  Also provides authentication (Supabase Auth).

- **SQLite (local)**: a single-user store with the same two tables, used
  when ``STORE_BACKEND=sqlite`` and as the in-memory store in tests.
  Unlike PostgREST, it supports multi-statement transactions via
  :meth:`DatabaseManager.batch_write`.

Data access is performed through the Repository pattern.  This module only
manages the *connections*; it contains no query logic.

Usage (dependency injection at app startup)::

    from expense_tracker.database import DatabaseManager
    from expense_tracker.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        sqlite_path=Path("expenses_local.db"),
        logger=StructuredLogger(name="expense_tracker.database"),
    )
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional, Union

from supabase import create_client, Client as SupabaseClient

from expense_tracker.logger import StructuredLogger


class DatabaseManager:
    """Manages connections to the Supabase backend and the local SQLite store.

    Fully configured at construction time via dependency injection.

    When ``supabase_url`` or ``supabase_key`` is empty the Supabase client
    is **not** created; accessing :pyattr:`supabase` then raises
    ``RuntimeError``.  When ``sqlite_path`` is ``None`` no local database is
    opened and :pyattr:`sqlite` raises likewise.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.
    sqlite_path:
        Filesystem path for the local SQLite database file, ``":memory:"``
        for a throwaway store, or ``None`` to skip the local store.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    supabase_client:
        A pre-built client; takes precedence over URL/key.  Used by tests.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        sqlite_path: Union[Path, str, None],
        logger: StructuredLogger,
        supabase_client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._in_batch: bool = False

        # --- Supabase ---
        self._supabase: Optional[SupabaseClient] = supabase_client
        if self._supabase is None and supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Remote store disabled.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s.",
                    exc,
                    exc_info=True,
                )
        elif self._supabase is None:
            self._logger.debug("Supabase credentials not configured.")

        # --- SQLite ---
        self._sqlite_conn: Optional[sqlite3.Connection] = None
        if sqlite_path is not None:
            self._sqlite_conn = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the Supabase client was not initialised.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Set EXPENSE_TRACKER_SUPABASE_URL and EXPENSE_TRACKER_SUPABASE_ANON_KEY."
            )
        return self._supabase

    @property
    def is_online(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None

    @property
    def has_sqlite(self) -> bool:
        return self._sqlite_conn is not None

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the initialised SQLite connection."""
        if self._sqlite_conn is None:
            raise RuntimeError("No local SQLite store is configured.")
        return self._sqlite_conn

    @property
    def write_lock(self) -> threading.RLock:
        """Return the write lock for thread-safe SQLite operations."""
        return self._write_lock

    @property
    def in_batch(self) -> bool:
        """``True`` when a :meth:`batch_write` context is active.

        Repository code checks this flag before issuing ``commit()``
        so that multi-statement operations commit once at the end.
        """
        return self._in_batch

    @contextmanager
    def batch_write(self) -> Generator[None, None, None]:
        """Context manager that groups SQLite writes into one transaction.

        While the context is active, :pyattr:`in_batch` is ``True`` and
        repository ``_commit()`` calls become no-ops.  On normal exit
        a single ``commit()`` is issued.  On exception the transaction
        is rolled back and the error re-raised.

        Example::

            with db.batch_write():
                category_repo.update(...)
                expense_repo.rename_category_references(...)
            # single commit happens here
        """
        with self._write_lock:
            if self._in_batch:
                # Re-entrant: the outer batch owns the commit.
                yield
                return

            self._in_batch = True
            try:
                yield
                self.sqlite.commit()
                self._logger.debug("Batch write committed.")
            except Exception:
                self.sqlite.rollback()
                self._logger.error(
                    "Batch write rolled back due to exception.", exc_info=True,
                )
                raise
            finally:
                self._in_batch = False

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        with self._write_lock:
            if self._sqlite_conn is not None:
                try:
                    self._sqlite_conn.close()
                    self._logger.info("SQLite connection closed.")
                except sqlite3.ProgrammingError:
                    pass
                self._sqlite_conn = None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect_sqlite(self, path: Union[Path, str]) -> sqlite3.Connection:
        """Open (or create) a SQLite database.

        Raises
        ------
        PermissionError
            If the OS denies access to the database file or its directory.
        """
        try:
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if str(path) != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA foreign_keys = ON;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process.  Please check file permissions and try again."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
