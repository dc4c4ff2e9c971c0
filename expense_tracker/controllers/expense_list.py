"""
Expense List Screen.

Holds the loaded expenses and categories, the current filter, the
multi-selection and the expense being edited.  The visible list is always
derived from those inputs; nothing derived is stored.

Selection rules: reloading clears it, and changing the filter prunes it
to the expenses still visible.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union
from zoneinfo import ZoneInfo

from expense_tracker.auth import SessionManager
from expense_tracker.controllers.base_controller import BaseController
from expense_tracker.controllers.state import LoadState, NotificationCenter, RefreshTrigger
from expense_tracker.models.category import Category
from expense_tracker.models.enums import ExportFormat, SortField
from expense_tracker.models.expense import Expense, ExpenseInput
from expense_tracker.models.export import ExportFile
from expense_tracker.models.filters import ExpenseFilter
from expense_tracker.services.expense_service import ExpenseService
from expense_tracker.services.category_service import CategoryService
from expense_tracker.services.export_service import ExportService, save_export
from expense_tracker.services.filtering import (
    SelectionState,
    clear_filters,
    filter_and_sort,
    has_active_filters,
)

_FORMAT_LABELS: dict[ExportFormat, str] = {
    ExportFormat.CSV: "CSV",
    ExportFormat.XLSX: "Excel",
}


class ExpenseListController(BaseController):
    """View-model of the filterable, selectable expense list."""

    def __init__(
        self,
        expense_service: ExpenseService,
        category_service: CategoryService,
        export_service: ExportService,
        session: SessionManager,
        notifications: NotificationCenter,
        trigger: RefreshTrigger,
        tz: ZoneInfo = ZoneInfo("UTC"),
        export_directory: Union[str, Path] = ".",
    ) -> None:
        super().__init__(session, notifications, trigger)
        self._expense_service = expense_service
        self._category_service = category_service
        self._export_service = export_service
        self._tz = tz
        self.export_directory = Path(export_directory)

        self.expenses: list[Expense] = []
        self.categories: list[Category] = []
        self.filters: ExpenseFilter = ExpenseFilter()
        self.selection: SelectionState = SelectionState()
        self.editing: Optional[Expense] = None
        self.load_state = LoadState()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def visible(self) -> list[Expense]:
        return filter_and_sort(self.expenses, self.filters, self._tz)

    @property
    def has_active_filters(self) -> bool:
        return has_active_filters(self.filters)

    @property
    def selected_expenses(self) -> list[Expense]:
        return self.selection.selected_from(self.visible)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Fetch expenses and categories; always clears the selection."""
        user = self._signed_in_user("view expenses")
        if user is None:
            self.load_state.fail("Not signed in")
            return False

        self.load_state.start()
        self.selection = SelectionState()
        seen = self._trigger.value

        expenses = self._expense_service.list_expenses(user)
        if not expenses.success:
            self.load_state.fail(expenses.error or "Failed to load expenses")
            self.notifications.error(expenses.error or "Failed to load expenses")
            return False
        self.expenses = expenses.data or []

        categories = self._category_service.list_categories(user)
        if categories.success:
            self.categories = categories.data or []
        else:
            self.notifications.error(categories.error or "Failed to load categories")

        self._seen_trigger = seen
        self.load_state.succeed()
        return True

    def refresh_if_stale(self) -> bool:
        if self.is_stale:
            return self.load()
        return True

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def set_filters(self, **changes: object) -> ExpenseFilter:
        """Replace the given filter fields and prune the selection."""
        self.filters = ExpenseFilter.model_validate(
            {**self.filters.model_dump(), **changes}
        )
        self.selection = self.selection.retain(self.visible)
        return self.filters

    def sort_by(self, field: SortField) -> ExpenseFilter:
        return self.set_filters(sort_by=field)

    def toggle_sort_order(self) -> ExpenseFilter:
        return self.set_filters(sort_order=self.filters.sort_order.toggled())

    def clear_filters(self) -> ExpenseFilter:
        self.filters = clear_filters()
        self.selection = self.selection.retain(self.visible)
        return self.filters

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def toggle_selected(self, expense_id: str) -> None:
        self.selection = self.selection.toggle(expense_id)

    def select(self, expense_id: str, selected: bool = True) -> None:
        self.selection = self.selection.select(expense_id, selected)

    def select_all(self, selected: bool = True) -> None:
        self.selection = self.selection.select_all(self.visible, selected)

    def clear_selection(self) -> None:
        self.selection = self.selection.clear()

    @property
    def is_all_selected(self) -> bool:
        return self.selection.is_all_selected(self.visible)

    @property
    def is_partially_selected(self) -> bool:
        return self.selection.is_partially_selected(self.visible)

    # ------------------------------------------------------------------
    # Single-row edits
    # ------------------------------------------------------------------

    def start_edit(self, expense_id: str) -> Optional[ExpenseInput]:
        """Open the edit form for *expense_id*, seeded with its values."""
        self.editing = next((e for e in self.expenses if e.id == expense_id), None)
        if self.editing is None:
            self.notifications.error("Expense not found")
            return None
        return ExpenseInput.from_expense(self.editing)

    def cancel_edit(self) -> None:
        self.editing = None

    def save_edit(self, data: Union[ExpenseInput, dict[str, object]]) -> bool:
        if self.editing is None:
            return False
        user = self._signed_in_user("update expenses")
        if user is None:
            return False

        result = self._expense_service.update_expense(user, self.editing.id, data)
        if not self.notifications.report(result, "Expense updated successfully!"):
            return False
        self.editing = None
        self._after_mutation()
        return True

    def delete(self, expense_id: str) -> bool:
        user = self._signed_in_user("delete expenses")
        if user is None:
            return False

        result = self._expense_service.delete_expense(user, expense_id)
        if not self.notifications.report(result, "Expense deleted successfully!"):
            return False
        self._after_mutation()
        return True

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def delete_selected(self) -> int:
        user = self._signed_in_user("delete expenses")
        if user is None:
            return 0

        result = self._expense_service.bulk_delete(user, sorted(self.selection.ids))
        count = result.data.affected if result.success and result.data else 0
        if not self.notifications.report(
            result, f"{count} expense(s) deleted successfully!"
        ):
            return 0
        self._after_mutation()
        return count

    def reassign_selected(self, category: str) -> int:
        user = self._signed_in_user("update expenses")
        if user is None:
            return 0

        result = self._expense_service.bulk_update_category(
            user, sorted(self.selection.ids), category,
        )
        count = result.data.affected if result.success and result.data else 0
        if not self.notifications.report(
            result, f"{count} expense(s) updated successfully!"
        ):
            return 0
        self._after_mutation()
        return count

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_visible(self, fmt: ExportFormat) -> Optional[Path]:
        """Export the filtered, sorted list and save it to the export directory."""
        result = self._export_service.export(self.visible, fmt)
        label = _FORMAT_LABELS[fmt]
        return self._save(
            result.data if result.success else None,
            result.error,
            f"Expenses exported to {label} successfully!",
        )

    def export_selected(self, fmt: ExportFormat) -> Optional[Path]:
        visible = self.visible
        result = self._export_service.export_selected(visible, self.selection, fmt)
        label = _FORMAT_LABELS[fmt]
        count = len(self.selection.selected_from(visible))
        return self._save(
            result.data if result.success else None,
            result.error,
            f"{count} selected expenses exported to {label} successfully!",
        )

    def _save(
        self,
        export_file: Optional[ExportFile],
        error: Optional[str],
        success_message: str,
    ) -> Optional[Path]:
        if export_file is None:
            self.notifications.error(error or "Failed to export expenses")
            return None
        try:
            path = save_export(export_file, self.export_directory)
        except OSError as exc:
            self.notifications.error(f"Could not save {export_file.filename}: {exc}")
            return None
        self.notifications.success(success_message)
        return path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _after_mutation(self) -> None:
        """Tell other screens to re-fetch, then reload this one."""
        self._trigger.bump()
        self.load()
