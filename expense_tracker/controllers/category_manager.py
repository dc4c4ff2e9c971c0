"""Category management screen: list, add, edit (with rename propagation), delete."""

from __future__ import annotations

from typing import Optional

from expense_tracker.auth import SessionManager
from expense_tracker.controllers.base_controller import BaseController
from expense_tracker.controllers.state import LoadState, NotificationCenter, RefreshTrigger
from expense_tracker.models.category import CATEGORY_PALETTE, Category, CategoryInput
from expense_tracker.models.service_models import CategoryRename
from expense_tracker.services.category_service import CategoryService


class CategoryController(BaseController):
    """View-model of the category manager.

    ``pending_rename`` is set when a rename updated the category but not
    its expenses; :meth:`retry_rename` finishes it.
    """

    palette: tuple[str, ...] = CATEGORY_PALETTE

    def __init__(
        self,
        category_service: CategoryService,
        session: SessionManager,
        notifications: NotificationCenter,
        trigger: RefreshTrigger,
    ) -> None:
        super().__init__(session, notifications, trigger)
        self._service = category_service
        self.categories: list[Category] = []
        self.editing: Optional[Category] = None
        self.pending_rename: Optional[CategoryRename] = None
        self.load_state = LoadState()

    def load(self) -> bool:
        user = self._signed_in_user("manage categories")
        if user is None:
            self.load_state.fail("Not signed in")
            return False

        self.load_state.start()
        result = self._service.list_categories(user)
        if not result.success:
            self.load_state.fail(result.error or "Failed to load categories")
            self.notifications.error(result.error or "Failed to load categories")
            return False

        self.categories = result.data or []
        self._mark_fresh()
        self.load_state.succeed()
        return True

    def add(self, name: str, color: str = CATEGORY_PALETTE[0]) -> Optional[Category]:
        user = self._signed_in_user("add categories")
        if user is None:
            return None

        result = self._service.add_category(user, {"name": name, "color": color})
        if not self.notifications.report(result, "Category added successfully!"):
            return None
        self._after_mutation()
        return result.data

    def start_edit(self, category_id: str) -> Optional[CategoryInput]:
        self.editing = next((c for c in self.categories if c.id == category_id), None)
        if self.editing is None:
            self.notifications.error("Category not found")
            return None
        return CategoryInput(name=self.editing.name, color=self.editing.color)

    def cancel_edit(self) -> None:
        self.editing = None

    def save_edit(self, name: str, color: str) -> Optional[CategoryRename]:
        if self.editing is None:
            return None
        user = self._signed_in_user("update categories")
        if user is None:
            return None

        result = self._service.update_category(
            user, self.editing.id, {"name": name, "color": color},
        )
        if result.data is not None and not result.data.propagated:
            # The category row changed even though the result failed.
            self.pending_rename = result.data
            self.editing = None
            self.notifications.error(result.error or "Failed to update category")
            self._after_mutation()
            return result.data

        if not self.notifications.report(result, "Category updated successfully!"):
            return None
        self.editing = None
        self._after_mutation()
        return result.data

    def retry_rename(self) -> bool:
        if self.pending_rename is None:
            return True
        user = self._signed_in_user("update categories")
        if user is None:
            return False

        pending = self.pending_rename
        result = self._service.resume_rename_propagation(
            user, pending.old_name, pending.new_name,
        )
        if not self.notifications.report(result, "Category updated successfully!"):
            return False
        self.pending_rename = None
        self._after_mutation()
        return True

    def delete(self, category_id: str) -> bool:
        user = self._signed_in_user("delete categories")
        if user is None:
            return False

        result = self._service.delete_category(user, category_id)
        if result.status_code == 409:
            self.notifications.error(result.error or "", title="Cannot Delete Category")
            return False
        if not self.notifications.report(result, "Category deleted successfully!"):
            return False
        self._after_mutation()
        return True

    def orphaned_names(self) -> list[str]:
        """Expense category names with no matching category (drift report)."""
        user = self._signed_in_user("manage categories")
        if user is None:
            return []
        result = self._service.find_orphaned_category_names(user)
        if not result.success:
            self.notifications.error(result.error or "Failed to check category consistency")
            return []
        return result.data or []

    def _after_mutation(self) -> None:
        self._trigger.bump()
        self.load()
