from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models for convenient imports:
    from expense_tracker.models import Expense, Category, User
    from expense_tracker.models import ExpenseFilter, SortField, SortOrder
    from expense_tracker.models import ServiceResult, Notification
"""

from expense_tracker.models.enums import (
    ExportFormat,
    LoadStatus,
    NotificationVariant,
    SortField,
    SortOrder,
)
from expense_tracker.models.user import User
from expense_tracker.models.expense import Expense, ExpenseInput
from expense_tracker.models.category import (
    CATEGORY_PALETTE,
    DEFAULT_CATEGORIES,
    FALLBACK_CATEGORY_COLOR,
    Category,
    CategoryInput,
)
from expense_tracker.models.filters import ALL_CATEGORIES, ExpenseFilter
from expense_tracker.models.summary import CategoryBreakdown, ExpenseSummary
from expense_tracker.models.export import CONTENT_TYPES, ExportFile, ExportRow
from expense_tracker.models.service_models import (
    BulkOperationResult,
    CategoryRename,
    Notification,
    ServiceResult,
)

__all__ = [
    "ALL_CATEGORIES",
    "BulkOperationResult",
    "CATEGORY_PALETTE",
    "CONTENT_TYPES",
    "Category",
    "CategoryBreakdown",
    "CategoryInput",
    "CategoryRename",
    "DEFAULT_CATEGORIES",
    "Expense",
    "ExpenseFilter",
    "ExpenseInput",
    "ExpenseSummary",
    "ExportFile",
    "ExportFormat",
    "ExportRow",
    "FALLBACK_CATEGORY_COLOR",
    "LoadStatus",
    "Notification",
    "NotificationVariant",
    "ServiceResult",
    "SortField",
    "SortOrder",
    "User",
]
