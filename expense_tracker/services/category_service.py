"""
Category Service.

Manages the signed-in user's categories: first-use seeding of the
defaults, add/edit/delete with the client-side uniqueness rule, rename
propagation to expenses, and a drift report for expenses whose category
name no longer matches any category.

Expenses reference categories by *name*.  Two rules keep that join
intact:

- a rename rewrites every expense carrying the old name (exact,
  case-sensitive match);
- a category still referenced by any expense cannot be deleted.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from expense_tracker.logger import StructuredLogger
from expense_tracker.models.category import DEFAULT_CATEGORIES, Category, CategoryInput
from expense_tracker.models.service_models import CategoryRename, ServiceResult
from expense_tracker.models.user import User
from expense_tracker.repositories.category_repository import CategoryRepository
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.services.base_service import BaseService
from expense_tracker.utils.audit import log_audit_event
from expense_tracker.utils.dates import Clock

CategoryData = Union[CategoryInput, Mapping[str, object]]

DUPLICATE_NAME_MESSAGE: str = "A category with this name already exists"


def in_use_message(count: int) -> str:
    return (
        f"This category is being used by {count} expense(s). "
        "Please reassign or delete those expenses first."
    )


def is_duplicate_name(
    name: str, categories: Sequence[Category], exclude_id: Optional[str] = None
) -> bool:
    """Case-insensitive name clash against *categories*, skipping *exclude_id*."""
    wanted = name.strip().casefold()
    return any(
        c.name.strip().casefold() == wanted
        for c in categories
        if c.id != exclude_id
    )


class CategoryService(BaseService):
    """Category management for the signed-in user."""

    def __init__(
        self,
        category_repo: CategoryRepository,
        expense_repo: ExpenseRepository,
        logger: StructuredLogger,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(logger, clock)
        self._repo = category_repo
        self._expense_repo = expense_repo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_categories(self, user: User) -> ServiceResult[list[Category]]:
        try:
            categories = self._repo.list_for_user(user.id)
        except Exception as exc:
            self._logger.error(
                "Failed to load categories for user %s: %s", user.id, exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to load categories", status_code=500,
            )
        return ServiceResult(success=True, data=categories)

    def ensure_default_categories(self, user: User) -> ServiceResult[list[Category]]:
        """Return the user's categories, seeding the defaults on first use.

        A failed seed is logged and the (empty) list is returned; the
        expense form then simply offers no categories.
        """
        listed = self.list_categories(user)
        if not listed.success or listed.data:
            return listed

        try:
            self._repo.create_many(user.id, DEFAULT_CATEGORIES)
        except Exception as exc:
            self._logger.error(
                "Error creating default categories for user %s: %s", user.id, exc,
                exc_info=True,
            )
            return listed

        log_audit_event(
            logger=self._logger,
            action="SEED_DEFAULTS",
            entity_type="Category",
            entity_id=user.id,
            user_id=user.id,
            details={"count": len(DEFAULT_CATEGORIES)},
            conn=self._repo.audit_connection,
        )
        return self.list_categories(user)

    def find_orphaned_category_names(self, user: User) -> ServiceResult[list[str]]:
        """Expense category names that match no category, sorted."""
        try:
            known = {c.name for c in self._repo.list_for_user(user.id)}
            used = {e.category for e in self._expense_repo.list_for_user(user.id)}
        except Exception as exc:
            self._logger.error(
                "Failed to check category consistency for user %s: %s",
                user.id,
                exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False,
                error="Failed to check category consistency",
                status_code=500,
            )

        orphans = sorted(used - known)
        if orphans:
            self._logger.warning(
                "User %s has expenses in %d unknown categories: %s",
                user.id,
                len(orphans),
                ", ".join(orphans),
            )
        return ServiceResult(success=True, data=orphans)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add_category(self, user: User, data: CategoryData) -> ServiceResult[Category]:
        try:
            form = CategoryInput.model_validate(data)
        except ValidationError as exc:
            return ServiceResult(
                success=False, error=self.validation_message(exc), status_code=400,
            )

        try:
            existing = self._repo.list_for_user(user.id)
            if is_duplicate_name(form.name, existing):
                return ServiceResult(
                    success=False, error=DUPLICATE_NAME_MESSAGE, status_code=409,
                )
            created = self._repo.create(user.id, form)
        except Exception as exc:
            self._logger.error(
                "Failed to add category '%s': %s", form.name, exc, exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to add category", status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Category",
            entity_id=created.id,
            user_id=user.id,
            details={"name": created.name, "color": created.color},
            conn=self._repo.audit_connection,
        )
        return ServiceResult(success=True, data=created, status_code=201)

    def update_category(
        self, user: User, category_id: str, data: CategoryData
    ) -> ServiceResult[CategoryRename]:
        """Edit a category; a new name is carried over to its expenses.

        If the category row is updated but the expense rewrite fails, the
        result is unsuccessful and ``data`` holds the partial
        :class:`CategoryRename` so the caller can call
        :meth:`resume_rename_propagation`.
        """
        try:
            form = CategoryInput.model_validate(data)
        except ValidationError as exc:
            return ServiceResult(
                success=False, error=self.validation_message(exc), status_code=400,
            )

        try:
            existing = self._repo.list_for_user(user.id)
            target = next((c for c in existing if c.id == category_id), None)
            if target is None:
                return ServiceResult(
                    success=False, error="Category not found", status_code=404,
                )
            if is_duplicate_name(form.name, existing, exclude_id=category_id):
                return ServiceResult(
                    success=False, error=DUPLICATE_NAME_MESSAGE, status_code=409,
                )
            rename = self._repo.rename(user.id, target, form, self._expense_repo)
        except Exception as exc:
            self._logger.error(
                "Failed to update category %s: %s", category_id, exc, exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to update category", status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type="Category",
            entity_id=category_id,
            user_id=user.id,
            details={
                "old_name": rename.old_name,
                "new_name": rename.new_name,
                "color": rename.category.color,
                "expenses_updated": rename.expenses_updated,
                "propagated": rename.propagated,
            },
            conn=self._repo.audit_connection,
        )

        if not rename.propagated:
            return ServiceResult(
                success=False,
                data=rename,
                error=(
                    f"Category renamed to '{rename.new_name}', but its expenses "
                    f"still use '{rename.old_name}'. Retry to finish the rename."
                ),
                status_code=500,
            )
        return ServiceResult(success=True, data=rename)

    def resume_rename_propagation(
        self, user: User, old_name: str, new_name: str
    ) -> ServiceResult[int]:
        """Re-run the expense rewrite of an interrupted rename."""
        try:
            count = self._expense_repo.rename_category_references(
                user.id, old_name, new_name,
            )
        except Exception as exc:
            self._logger.error(
                "Failed to carry rename '%s' -> '%s' over to expenses: %s",
                old_name,
                new_name,
                exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to update category", status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="RENAME_PROPAGATE",
            entity_type="Category",
            entity_id=new_name,
            user_id=user.id,
            details={"old_name": old_name, "expenses_updated": count},
            conn=self._expense_repo.audit_connection,
        )
        return ServiceResult(success=True, data=count)

    def delete_category(self, user: User, category_id: str) -> ServiceResult[bool]:
        """Delete a category no expense refers to.

        Refused with 409, before anything is written, while any expense
        still carries the category's name.
        """
        try:
            target = self._repo.get_by_id(user.id, category_id)
            if target is None:
                return ServiceResult(
                    success=False, error="Category not found", status_code=404,
                )
            in_use = self._expense_repo.count_by_category(user.id, target.name)
            if in_use > 0:
                return ServiceResult(
                    success=False, error=in_use_message(in_use), status_code=409,
                )
            self._repo.delete(user.id, category_id)
        except Exception as exc:
            self._logger.error(
                "Failed to delete category %s: %s", category_id, exc, exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to delete category", status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Category",
            entity_id=category_id,
            user_id=user.id,
            details={"name": target.name},
            conn=self._repo.audit_connection,
        )
        return ServiceResult(success=True, data=True)
