"""
Screen Controllers Package.

One controller per screen, each owning its view-model state and sharing a
``NotificationCenter`` and a ``RefreshTrigger``:

    from expense_tracker.controllers import ExpenseListController
"""

from expense_tracker.controllers.state import LoadState, NotificationCenter, RefreshTrigger
from expense_tracker.controllers.dashboard import DashboardController
from expense_tracker.controllers.expense_form import ExpenseFormController
from expense_tracker.controllers.expense_list import ExpenseListController
from expense_tracker.controllers.category_manager import CategoryController

__all__ = [
    "CategoryController",
    "DashboardController",
    "ExpenseFormController",
    "ExpenseListController",
    "LoadState",
    "NotificationCenter",
    "RefreshTrigger",
]
