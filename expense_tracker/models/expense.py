"""
Expense Model.

Pydantic models for rows of the ``expenses`` table and for the
user-editable subset submitted by the expense forms.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _ensure_aware(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so every comparison is offset-aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Expense(BaseModel):
    """Represents a single recorded expense.

    ``category`` holds the category *name*, not its identifier.  Renaming a
    category therefore requires rewriting every expense that references the
    old name (see ``CategoryRepository.rename``).
    """

    id: str
    expense_name: str
    expense_amount: Decimal
    category: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalise_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        return _ensure_aware(v)

    model_config = {"from_attributes": True}


class ExpenseInput(BaseModel):
    """Validated form data for creating or editing an expense."""

    expense_name: str = Field(min_length=1, max_length=255)
    expense_amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    category: str = Field(min_length=1, max_length=100)

    @field_validator("expense_name", "category", mode="before")
    @classmethod
    def _strip(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @classmethod
    def from_expense(cls, expense: Expense) -> ExpenseInput:
        """Seed an edit form from an existing expense."""
        return cls(
            expense_name=expense.expense_name,
            expense_amount=expense.expense_amount,
            category=expense.category,
        )
