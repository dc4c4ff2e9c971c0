"""
Repository Layer Package.

Provides data-access abstractions over Supabase (cloud) and SQLite (local).
All database operations flow through repositories; services never access
db.supabase or db.sqlite directly.

Usage:
    from expense_tracker.repositories import SupabaseExpenseRepository
    from expense_tracker.repositories import SqliteCategoryRepository
"""

from expense_tracker.repositories.base_repository import BaseRepository, RepositoryError
from expense_tracker.repositories.expense_repository import (
    ExpenseRepository,
    SqliteExpenseRepository,
    SupabaseExpenseRepository,
)
from expense_tracker.repositories.category_repository import (
    CategoryRepository,
    SqliteCategoryRepository,
    SupabaseCategoryRepository,
)

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "ExpenseRepository",
    "RepositoryError",
    "SqliteCategoryRepository",
    "SqliteExpenseRepository",
    "SupabaseCategoryRepository",
    "SupabaseExpenseRepository",
]
