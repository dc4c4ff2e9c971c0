"""
Service Layer Data Transfer Objects.

Pydantic models for validated output at service boundaries.
Replaces raw dict passing between layers.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from expense_tracker.models.category import Category
from expense_tracker.models.enums import NotificationVariant

T = TypeVar("T")

__all__ = [
    "BulkOperationResult",
    "CategoryRename",
    "Notification",
    "ServiceResult",
]


# ---------------------------------------------------------------------------
# Generic service models
# ---------------------------------------------------------------------------

class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All service methods return this, providing a consistent contract
    for the controller/command layer.  ``error`` carries a message that
    describes the attempted action and is safe to show to the user.

    Generic over ``T`` so callers can annotate return types precisely
    (e.g. ``ServiceResult[list[Expense]]``).
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200


class Notification(BaseModel):
    """A one-shot, dismissible message for the user."""

    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == NotificationVariant.DESTRUCTIVE


# ---------------------------------------------------------------------------
# Mutation outcomes
# ---------------------------------------------------------------------------

class BulkOperationResult(BaseModel):
    """Outcome of a delete or reassignment over a multi-selection."""

    requested: int = Field(ge=0)
    affected: int = Field(ge=0)


class CategoryRename(BaseModel):
    """Outcome of updating a category, including name propagation.

    ``propagated`` is ``False`` when the category row changed but the
    follow-up rewrite of expenses referencing ``old_name`` failed.  The
    rewrite is idempotent and can be resumed with the two names.
    """

    category: Category
    old_name: str
    new_name: str
    expenses_updated: int = 0
    propagated: bool = True

    @property
    def renamed(self) -> bool:
        return self.old_name != self.new_name
