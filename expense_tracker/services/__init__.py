"""
Business Logic Services Package.

Services depend on the Repository layer for data access and receive the
signed-in ``User`` from the caller.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the application layer (commands / controllers)
can consume without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from expense_tracker.auth import SessionManager
from expense_tracker.config import AppConfig
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import get_logger
from expense_tracker.repositories.category_repository import (
    CategoryRepository,
    SqliteCategoryRepository,
    SupabaseCategoryRepository,
)
from expense_tracker.repositories.expense_repository import (
    ExpenseRepository,
    SqliteExpenseRepository,
    SupabaseExpenseRepository,
)
from expense_tracker.services.auth_service import AuthService
from expense_tracker.services.category_service import CategoryService
from expense_tracker.services.expense_service import ExpenseService
from expense_tracker.services.export_service import ExportService
from expense_tracker.services.summary import SummaryService
from expense_tracker.utils.dates import Clock


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    auth_service: AuthService
    expense_service: ExpenseService
    category_service: CategoryService
    summary_service: SummaryService
    export_service: ExportService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    session: SessionManager,
    clock: Optional[Clock] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    application entry-point calls this once at startup and passes the
    returned dict to controllers / commands as needed.

    Args:
        db: Initialised DatabaseManager.  ``config.STORE_BACKEND`` selects
            whether the Supabase or the SQLite repositories are used.
        config: Application configuration.
        session: The shared session holder.
        clock: Optional clock override (tests).

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")
    repo_logger = get_logger("repositories")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    expense_repo: ExpenseRepository
    category_repo: CategoryRepository
    if config.STORE_BACKEND == "sqlite":
        expense_repo = SqliteExpenseRepository(db=db, logger=repo_logger, clock=clock)
        category_repo = SqliteCategoryRepository(db=db, logger=repo_logger, clock=clock)
    else:
        expense_repo = SupabaseExpenseRepository(db=db, logger=repo_logger, clock=clock)
        category_repo = SupabaseCategoryRepository(db=db, logger=repo_logger, clock=clock)

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    auth_service = AuthService(db=db, session=session, logger=logger)
    expense_service = ExpenseService(expense_repo=expense_repo, logger=logger, clock=clock)
    category_service = CategoryService(
        category_repo=category_repo,
        expense_repo=expense_repo,
        logger=logger,
        clock=clock,
    )
    summary_service = SummaryService(
        expense_repo=expense_repo,
        category_repo=category_repo,
        logger=logger,
        clock=clock,
    )
    export_service = ExportService(
        logger=logger,
        tz=config.timezone,
        date_format=config.EXPORT_DATE_FORMAT,
        currency_symbol=config.CURRENCY_SYMBOL,
        clock=clock,
    )

    logger.info("Services wired (store backend: %s).", config.STORE_BACKEND)

    return ServiceContainer(
        auth_service=auth_service,
        expense_service=expense_service,
        category_service=category_service,
        summary_service=summary_service,
        export_service=export_service,
    )
