"""
Dashboard Summary Service.

Aggregates a user's expenses into the totals and per-category breakdown
shown on the dashboard.

The aggregation itself (:func:`compute_summary`) is a pure function of its
inputs and the supplied ``now``; :class:`SummaryService` only loads the
data and wraps the outcome in a ``ServiceResult``.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from expense_tracker.logger import StructuredLogger
from expense_tracker.models.category import FALLBACK_CATEGORY_COLOR, Category
from expense_tracker.models.expense import Expense
from expense_tracker.models.service_models import ServiceResult
from expense_tracker.models.summary import CategoryBreakdown, ExpenseSummary
from expense_tracker.models.user import User
from expense_tracker.repositories.category_repository import CategoryRepository
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.services.base_service import BaseService
from expense_tracker.utils.dates import Clock

# Trailing windows, measured back from "now" (not calendar weeks/months).
WEEKLY_WINDOW: timedelta = timedelta(days=7)
MONTHLY_WINDOW: timedelta = timedelta(days=30)

_ZERO: Decimal = Decimal("0")


def percentage_of(amount: Decimal, total: Decimal) -> float:
    """``100 * amount / total`` as a float, or ``0.0`` when *total* is zero."""
    if total == _ZERO:
        return 0.0
    return float(amount * 100 / total)


def compute_summary(
    expenses: Iterable[Expense],
    categories: Sequence[Category],
    now: datetime,
) -> ExpenseSummary:
    """Aggregate *expenses* into an :class:`ExpenseSummary`.

    Breakdown colours are looked up by exact category name; expenses whose
    category matches no category row fall back to
    :data:`FALLBACK_CATEGORY_COLOR`.  The breakdown is ordered by amount,
    largest first, with ties broken by category name.
    """
    week_start = now - WEEKLY_WINDOW
    month_start = now - MONTHLY_WINDOW

    count = 0
    total = _ZERO
    weekly = _ZERO
    monthly = _ZERO
    per_category_amount: dict[str, Decimal] = defaultdict(lambda: _ZERO)
    per_category_count: dict[str, int] = defaultdict(int)

    for expense in expenses:
        count += 1
        total += expense.expense_amount
        if expense.created_at >= week_start:
            weekly += expense.expense_amount
        if expense.created_at >= month_start:
            monthly += expense.expense_amount
        per_category_amount[expense.category] += expense.expense_amount
        per_category_count[expense.category] += 1

    colors: dict[str, str] = {c.name: c.color for c in categories}
    breakdown = [
        CategoryBreakdown(
            category=name,
            amount=amount,
            count=per_category_count[name],
            color=colors.get(name, FALLBACK_CATEGORY_COLOR),
            percentage=percentage_of(amount, total),
        )
        for name, amount in per_category_amount.items()
    ]
    breakdown.sort(key=lambda item: (-item.amount, item.category))

    return ExpenseSummary(
        total_expenses=count,
        total_amount=total,
        weekly_total=weekly,
        monthly_total=monthly,
        category_breakdown=breakdown,
    )


class SummaryService(BaseService):
    """Loads a user's data and computes the dashboard summary."""

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        category_repo: CategoryRepository,
        logger: StructuredLogger,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(logger, clock)
        self._expense_repo = expense_repo
        self._category_repo = category_repo

    def get_summary(self, user: User) -> ServiceResult[ExpenseSummary]:
        try:
            expenses = self._expense_repo.list_for_user(user.id)
            categories = self._category_repo.list_for_user(user.id)
            summary = compute_summary(expenses, categories, self._clock())
        except Exception as exc:
            self._logger.error(
                "Failed to load expense summary for user %s: %s",
                user.id,
                exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False,
                error="Failed to load expense summary",
                status_code=500,
            )

        return ServiceResult(success=True, data=summary)
