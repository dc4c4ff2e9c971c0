"""Add-expense form: category choices (seeded on first use) and submission."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

from expense_tracker.auth import SessionManager
from expense_tracker.controllers.base_controller import BaseController
from expense_tracker.controllers.state import LoadState, NotificationCenter, RefreshTrigger
from expense_tracker.models.category import Category
from expense_tracker.models.expense import Expense
from expense_tracker.services.category_service import CategoryService
from expense_tracker.services.expense_service import ExpenseService


class ExpenseFormController(BaseController):
    """State of the "add expense" form."""

    def __init__(
        self,
        expense_service: ExpenseService,
        category_service: CategoryService,
        session: SessionManager,
        notifications: NotificationCenter,
        trigger: RefreshTrigger,
    ) -> None:
        super().__init__(session, notifications, trigger)
        self._expense_service = expense_service
        self._category_service = category_service
        self.categories: list[Category] = []
        self.load_state = LoadState()
        self.reset()

    def reset(self) -> None:
        self.expense_name: str = ""
        self.expense_amount: Union[Decimal, str] = Decimal("0")
        self.category: str = ""

    def load_categories(self) -> list[Category]:
        """Fetch the category choices, creating the defaults for a new user."""
        user = self._signed_in_user("add expenses")
        if user is None:
            self.load_state.fail("Not signed in")
            return self.categories

        self.load_state.start()
        result = self._category_service.ensure_default_categories(user)
        if not result.success:
            self.load_state.fail(result.error or "Failed to load categories")
            self.notifications.error(result.error or "Failed to load categories")
            return self.categories

        self.categories = result.data or []
        self._mark_fresh()
        self.load_state.succeed()
        return self.categories

    def submit(self) -> Optional[Expense]:
        """Save the form as a new expense; the form resets on success."""
        user = self._signed_in_user("add expenses")
        if user is None:
            return None

        result = self._expense_service.add_expense(
            user,
            {
                "expense_name": self.expense_name,
                "expense_amount": self.expense_amount,
                "category": self.category,
            },
        )
        if not self.notifications.report(result, "Expense added successfully!"):
            return None

        self.reset()
        self._trigger.bump()
        return result.data
