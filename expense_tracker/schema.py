"""
Centralized SQLite Schema Initialization.

Defines the canonical schema for the local expense store and provides a
single entry-point -- :func:`initialize_schema` -- that creates all
required tables idempotently.  A ``schema_version`` table records the
applied version so later changes can be rolled forward without data loss.

The two domain tables mirror the remote Supabase tables column for
column.  ``expenses.category`` stores the category *name* (no foreign
key), exactly like the remote schema.

Usage::

    import sqlite3
    from expense_tracker.logger import StructuredLogger
    from expense_tracker.schema import initialize_schema

    conn = sqlite3.connect("expenses_local.db")
    initialize_schema(conn, StructuredLogger(name="expense_tracker.schema"))
"""

from __future__ import annotations

import sqlite3

from expense_tracker.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

CURRENT_SCHEMA_VERSION: int = 1

_TABLE_DEFINITIONS: list[str] = [
    # -- single-row version tracker -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- persistent structured audit trail ------------------------------------
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        action TEXT NOT NULL,
        entity_type TEXT NOT NULL,
        entity_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        details TEXT DEFAULT '{}',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- categories -----------------------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        color TEXT NOT NULL DEFAULT '#6B7280',
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    # -- expenses (amount stored as TEXT to keep exact decimals) --------------
    """
    CREATE TABLE IF NOT EXISTS expenses (
        id TEXT PRIMARY KEY,
        expense_name TEXT NOT NULL,
        expense_amount TEXT NOT NULL,
        category TEXT NOT NULL,
        user_id TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_expenses_user_created ON expenses(user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_expenses_user_category ON expenses(user_id, category)",
    "CREATE INDEX IF NOT EXISTS idx_categories_user_name ON categories(user_id, name)",
]


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` if unset."""
    conn.execute(_TABLE_DEFINITIONS[0])
    row = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    ).fetchone()
    return row[0] if row is not None else 0


def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Creates every table and index in one transaction and records
    :data:`CURRENT_SCHEMA_VERSION`.  Safe to call on every startup.
    """
    current: int = _get_schema_version(conn)
    conn.commit()

    if current >= CURRENT_SCHEMA_VERSION:
        logger.debug("Schema is up to date (version %d).", current)
        return

    try:
        for ddl in _TABLE_DEFINITIONS:
            conn.execute(ddl)
        conn.execute(
            """
            INSERT INTO schema_version (id, version) VALUES (1, ?)
            ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                          applied_at = CURRENT_TIMESTAMP
            """,
            (CURRENT_SCHEMA_VERSION,),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(
            "Schema initialisation failed; rolled back to version %d.", current,
        )
        raise

    logger.info("Schema initialised at version %d.", CURRENT_SCHEMA_VERSION)
