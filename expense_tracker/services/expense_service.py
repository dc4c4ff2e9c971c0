"""
Expense Service.

Handles listing, creation, editing, deletion and the bulk operations over
a multi-selection, with structured audit logging and the ServiceResult
envelope.

Every method catches failures at its boundary: the exception is logged
with its traceback and the caller receives a message naming the action
that failed (e.g. "Failed to add expense").  There are no retries, and a
bulk operation is exactly as atomic as the single statement the store
executes.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from expense_tracker.logger import StructuredLogger
from expense_tracker.models.expense import Expense, ExpenseInput
from expense_tracker.models.service_models import BulkOperationResult, ServiceResult
from expense_tracker.models.user import User
from expense_tracker.repositories.expense_repository import ExpenseRepository
from expense_tracker.services.base_service import BaseService
from expense_tracker.utils.audit import log_audit_event
from expense_tracker.utils.dates import Clock

ExpenseData = Union[ExpenseInput, Mapping[str, object]]


class ExpenseService(BaseService):
    """CRUD and bulk operations over the signed-in user's expenses."""

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        logger: StructuredLogger,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(logger, clock)
        self._repo = expense_repo

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_expenses(self, user: User) -> ServiceResult[list[Expense]]:
        try:
            expenses = self._repo.list_for_user(user.id)
        except Exception as exc:
            self._logger.error(
                "Failed to load expenses for user %s: %s", user.id, exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to load expenses", status_code=500,
            )
        return ServiceResult(success=True, data=expenses)

    # ------------------------------------------------------------------
    # Single-row writes
    # ------------------------------------------------------------------

    def add_expense(self, user: User, data: ExpenseData) -> ServiceResult[Expense]:
        """Validate and record a new expense owned by *user*."""
        try:
            form = ExpenseInput.model_validate(data)
        except ValidationError as exc:
            return ServiceResult(
                success=False, error=self.validation_message(exc), status_code=400,
            )

        try:
            created = self._repo.create(user.id, form)
        except Exception as exc:
            self._logger.error(
                "Failed to add expense for user %s: %s", user.id, exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to add expense", status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="Expense",
            entity_id=created.id,
            user_id=user.id,
            details={
                "expense_name": created.expense_name,
                "expense_amount": str(created.expense_amount),
                "category": created.category,
            },
            conn=self._repo.audit_connection,
        )
        return ServiceResult(success=True, data=created, status_code=201)

    def update_expense(
        self, user: User, expense_id: str, data: ExpenseData
    ) -> ServiceResult[Expense]:
        """Overwrite name, amount and category of an existing expense."""
        try:
            form = ExpenseInput.model_validate(data)
        except ValidationError as exc:
            return ServiceResult(
                success=False, error=self.validation_message(exc), status_code=400,
            )

        try:
            updated = self._repo.update(user.id, expense_id, form)
        except Exception as exc:
            self._logger.error(
                "Failed to update expense %s: %s", expense_id, exc, exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to update expense", status_code=500,
            )

        if updated is None:
            return ServiceResult(
                success=False, error="Expense not found", status_code=404,
            )

        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type="Expense",
            entity_id=expense_id,
            user_id=user.id,
            details={
                "expense_name": updated.expense_name,
                "expense_amount": str(updated.expense_amount),
                "category": updated.category,
            },
            conn=self._repo.audit_connection,
        )
        return ServiceResult(success=True, data=updated)

    def delete_expense(self, user: User, expense_id: str) -> ServiceResult[bool]:
        try:
            deleted = self._repo.delete(user.id, expense_id)
        except Exception as exc:
            self._logger.error(
                "Failed to delete expense %s: %s", expense_id, exc, exc_info=True,
            )
            return ServiceResult(
                success=False, error="Failed to delete expense", status_code=500,
            )

        if not deleted:
            return ServiceResult(
                success=False, error="Expense not found", status_code=404,
            )

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Expense",
            entity_id=expense_id,
            user_id=user.id,
            conn=self._repo.audit_connection,
        )
        return ServiceResult(success=True, data=True)

    # ------------------------------------------------------------------
    # Bulk writes
    # ------------------------------------------------------------------

    def bulk_delete(
        self, user: User, expense_ids: Sequence[str]
    ) -> ServiceResult[BulkOperationResult]:
        """Delete every selected expense in one store call."""
        ids = list(dict.fromkeys(expense_ids))
        if not ids:
            return ServiceResult(
                success=False, error="No expenses selected", status_code=400,
            )

        try:
            affected = self._repo.delete_many(user.id, ids)
        except Exception as exc:
            self._logger.error(
                "Failed to delete %d selected expenses: %s", len(ids), exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False,
                error="Failed to delete selected expenses",
                status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="DELETE_MANY",
            entity_type="Expense",
            entity_id=",".join(ids),
            user_id=user.id,
            details={"requested": len(ids), "affected": affected},
            conn=self._repo.audit_connection,
        )
        return ServiceResult(
            success=True,
            data=BulkOperationResult(requested=len(ids), affected=affected),
        )

    def bulk_update_category(
        self, user: User, expense_ids: Sequence[str], category: str
    ) -> ServiceResult[BulkOperationResult]:
        """Reassign every selected expense to *category* in one store call."""
        ids = list(dict.fromkeys(expense_ids))
        if not ids:
            return ServiceResult(
                success=False, error="No expenses selected", status_code=400,
            )
        category = (category or "").strip()
        if not category:
            return ServiceResult(
                success=False, error="Please select a category.", status_code=400,
            )

        try:
            affected = self._repo.update_category_many(user.id, ids, category)
        except Exception as exc:
            self._logger.error(
                "Failed to reassign %d selected expenses to '%s': %s",
                len(ids),
                category,
                exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False,
                error="Failed to update selected expenses",
                status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="UPDATE_CATEGORY_MANY",
            entity_type="Expense",
            entity_id=",".join(ids),
            user_id=user.id,
            details={"category": category, "affected": affected},
            conn=self._repo.audit_connection,
        )
        return ServiceResult(
            success=True,
            data=BulkOperationResult(requested=len(ids), affected=affected),
        )
