"""
Shared Enumerations for Expense Tracker Models.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so code like ``if sort_by == 'amount'`` continues to work.
"""

from __future__ import annotations
from enum import StrEnum


class SortField(StrEnum):
    """Keys the expense list can be ordered by."""

    DATE = "date"
    AMOUNT = "amount"
    NAME = "name"


class SortOrder(StrEnum):
    """Sort direction for the expense list."""

    ASC = "asc"
    DESC = "desc"

    def toggled(self) -> SortOrder:
        return SortOrder.DESC if self is SortOrder.ASC else SortOrder.ASC


class ExportFormat(StrEnum):
    """Supported export file formats."""

    CSV = "csv"
    XLSX = "xlsx"


class NotificationVariant(StrEnum):
    """Visual weight of a user-facing notification."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class LoadStatus(StrEnum):
    """Per-fetch lifecycle of a screen's data."""

    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"
