"""Shared pytest fixtures: in-memory SQLite store, fake Supabase client, fixed clock."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest

# Keep test runs from writing expense_tracker.log into the working tree.
os.environ.setdefault(
    "EXPENSE_TRACKER_LOG_FILE",
    str(Path(tempfile.gettempdir()) / "expense_tracker_tests.log"),
)

from expense_tracker.auth import SessionManager
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.user import User
from expense_tracker.repositories import (
    SqliteCategoryRepository,
    SqliteExpenseRepository,
    SupabaseCategoryRepository,
    SupabaseExpenseRepository,
)
from expense_tracker.schema import initialize_schema
from expense_tracker.services.category_service import CategoryService
from expense_tracker.services.expense_service import ExpenseService
from tests.fakes import FakeSupabaseClient


class FakeClock:
    """Callable clock frozen at ``now`` until advanced."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="expense_tracker.tests")


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="asha@example.com", full_name="Asha")


@pytest.fixture
def other_user() -> User:
    return User(id="user-2", email="ravi@example.com")


@pytest.fixture
def session(user: User) -> SessionManager:
    manager = SessionManager()
    manager.begin(user)
    return manager


# ---------------------------------------------------------------------------
# Local (SQLite) store
# ---------------------------------------------------------------------------


@pytest.fixture
def db(logger: StructuredLogger) -> Iterator[DatabaseManager]:
    manager = DatabaseManager(
        supabase_url="", supabase_key="", sqlite_path=":memory:", logger=logger,
    )
    initialize_schema(manager.sqlite, logger)
    yield manager
    manager.close()


@pytest.fixture
def expense_repo(db: DatabaseManager, logger: StructuredLogger, clock: FakeClock) -> SqliteExpenseRepository:
    return SqliteExpenseRepository(db=db, logger=logger, clock=clock)


@pytest.fixture
def category_repo(db: DatabaseManager, logger: StructuredLogger, clock: FakeClock) -> SqliteCategoryRepository:
    return SqliteCategoryRepository(db=db, logger=logger, clock=clock)


@pytest.fixture
def expense_service(expense_repo: SqliteExpenseRepository, logger: StructuredLogger, clock: FakeClock) -> ExpenseService:
    return ExpenseService(expense_repo=expense_repo, logger=logger, clock=clock)


@pytest.fixture
def category_service(
    category_repo: SqliteCategoryRepository,
    expense_repo: SqliteExpenseRepository,
    logger: StructuredLogger,
    clock: FakeClock,
) -> CategoryService:
    return CategoryService(
        category_repo=category_repo, expense_repo=expense_repo, logger=logger, clock=clock,
    )


# ---------------------------------------------------------------------------
# Remote (fake Supabase) store
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_supabase(clock: FakeClock) -> FakeSupabaseClient:
    return FakeSupabaseClient(clock=clock)


@pytest.fixture
def remote_db(fake_supabase: FakeSupabaseClient, logger: StructuredLogger) -> Iterator[DatabaseManager]:
    manager = DatabaseManager(
        supabase_url="",
        supabase_key="",
        sqlite_path=None,
        logger=logger,
        supabase_client=fake_supabase,
    )
    yield manager
    manager.close()


@pytest.fixture
def remote_expense_repo(remote_db: DatabaseManager, logger: StructuredLogger, clock: FakeClock) -> SupabaseExpenseRepository:
    return SupabaseExpenseRepository(db=remote_db, logger=logger, clock=clock)


@pytest.fixture
def remote_category_repo(remote_db: DatabaseManager, logger: StructuredLogger, clock: FakeClock) -> SupabaseCategoryRepository:
    return SupabaseCategoryRepository(db=remote_db, logger=logger, clock=clock)
