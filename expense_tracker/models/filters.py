"""
Expense List Filter Model.

Immutable filter and sort settings for the expense list.  Controllers
replace the whole object instead of mutating it, so derived views can be
recomputed from inputs alone.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from expense_tracker.models.enums import SortField, SortOrder

# Sentinel accepted by ``ExpenseFilter.category`` meaning "no category filter".
ALL_CATEGORIES: str = "all"


class ExpenseFilter(BaseModel):
    """Conjunctive predicates plus ordering for the expense list.

    Attributes
    ----------
    category:
        Exact category name, or :data:`ALL_CATEGORIES`.
    search_term:
        Case-insensitive substring matched against the expense name.
    date_from, date_to:
        Inclusive calendar-date bounds on ``created_at``.  ``date_to``
        covers the whole day (through 23:59:59.999).
    amount_min, amount_max:
        Inclusive bounds on the amount.
    sort_by, sort_order:
        Ordering of the filtered result.
    """

    model_config = ConfigDict(frozen=True)

    category: str = ALL_CATEGORIES
    search_term: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    sort_by: SortField = SortField.DATE
    sort_order: SortOrder = SortOrder.DESC

    @property
    def is_active(self) -> bool:
        """``True`` when any predicate (not ordering) narrows the list."""
        return (
            self.category != ALL_CATEGORIES
            or bool(self.search_term)
            or self.date_from is not None
            or self.date_to is not None
            or self.amount_min is not None
            or self.amount_max is not None
        )
