"""
Dashboard Summary Models.

Output of the summary aggregation shown on the dashboard.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class CategoryBreakdown(BaseModel):
    """Per-category aggregate over an expense collection."""

    category: str
    amount: Decimal
    count: int = Field(ge=0)
    color: str
    percentage: float


class ExpenseSummary(BaseModel):
    """All-time and trailing-window spending totals plus the breakdown.

    ``weekly_total`` and ``monthly_total`` cover the trailing 7 and 30 days
    measured back from the moment the summary was computed.
    """

    total_expenses: int = 0
    total_amount: Decimal = Decimal("0")
    weekly_total: Decimal = Decimal("0")
    monthly_total: Decimal = Decimal("0")
    category_breakdown: list[CategoryBreakdown] = Field(default_factory=list)
