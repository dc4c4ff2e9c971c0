"""Tests for ExpenseService."""

from __future__ import annotations

from decimal import Decimal

import pytest

from expense_tracker.services.expense_service import ExpenseService


def _add(service: ExpenseService, user, name: str = "Coffee", amount: str = "4.50", category: str = "Food"):
    result = service.add_expense(
        user, {"expense_name": name, "expense_amount": amount, "category": category},
    )
    assert result.success, result.error
    return result.data


class TestAddExpense:
    def test_success_returns_created(self, expense_service, user, db) -> None:
        result = expense_service.add_expense(
            user, {"expense_name": " Coffee ", "expense_amount": "4.50", "category": "Food"},
        )
        assert result.success
        assert result.status_code == 201
        assert result.data.expense_name == "Coffee"
        assert result.data.expense_amount == Decimal("4.50")

        actions = [row[0] for row in db.sqlite.execute("SELECT action FROM audit_log")]
        assert actions == ["CREATE"]

    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"expense_name": "", "expense_amount": "1", "category": "Food"}, "Expense name is required."),
            ({"expense_name": "Tea", "expense_amount": "0", "category": "Food"}, "Amount must be a number greater than zero."),
            ({"expense_name": "Tea", "expense_amount": "abc", "category": "Food"}, "Amount must be a number greater than zero."),
            ({"expense_name": "Tea", "expense_amount": "1", "category": ""}, "Please select a category."),
        ],
    )
    def test_validation_failures(self, expense_service, expense_repo, user, payload, message) -> None:
        result = expense_service.add_expense(user, payload)
        assert not result.success
        assert result.status_code == 400
        assert result.error == message
        assert expense_repo.list_for_user(user.id) == []

    def test_store_failure(self, remote_expense_repo, fake_supabase, logger, user) -> None:
        fake_supabase.fail("expenses", "insert")
        service = ExpenseService(remote_expense_repo, logger)
        result = service.add_expense(
            user, {"expense_name": "Tea", "expense_amount": "1", "category": "Food"},
        )
        assert not result.success
        assert result.error == "Failed to add expense"
        assert result.status_code == 500


class TestUpdateAndDelete:
    def test_update(self, expense_service, user) -> None:
        created = _add(expense_service, user)
        result = expense_service.update_expense(
            user, created.id, {"expense_name": "Latte", "expense_amount": "5", "category": "Food"},
        )
        assert result.success
        assert result.data.expense_name == "Latte"

    def test_update_missing_is_not_found(self, expense_service, user) -> None:
        result = expense_service.update_expense(
            user, "missing", {"expense_name": "Latte", "expense_amount": "5", "category": "Food"},
        )
        assert (result.success, result.status_code, result.error) == (False, 404, "Expense not found")

    def test_update_other_users_expense_is_not_found(self, expense_service, user, other_user) -> None:
        created = _add(expense_service, user)
        result = expense_service.update_expense(
            other_user, created.id, {"expense_name": "x", "expense_amount": "1", "category": "Food"},
        )
        assert result.status_code == 404

    def test_delete(self, expense_service, user) -> None:
        created = _add(expense_service, user)
        assert expense_service.delete_expense(user, created.id).success
        missing = expense_service.delete_expense(user, created.id)
        assert (missing.success, missing.status_code) == (False, 404)

    def test_list_failure(self, remote_expense_repo, fake_supabase, logger, user) -> None:
        fake_supabase.fail("expenses", "select")
        result = ExpenseService(remote_expense_repo, logger).list_expenses(user)
        assert (result.success, result.error) == (False, "Failed to load expenses")


class TestBulkOperations:
    def test_bulk_delete(self, expense_service, user) -> None:
        ids = [_add(expense_service, user, name=f"e{i}").id for i in range(3)]
        result = expense_service.bulk_delete(user, [ids[0], ids[1], ids[0]])
        assert result.success
        assert (result.data.requested, result.data.affected) == (2, 2)
        remaining = expense_service.list_expenses(user).data
        assert [e.id for e in remaining] == [ids[2]]

    def test_bulk_delete_requires_selection(self, expense_service, user) -> None:
        result = expense_service.bulk_delete(user, [])
        assert (result.success, result.status_code, result.error) == (False, 400, "No expenses selected")

    def test_bulk_update_category(self, expense_service, user) -> None:
        ids = [_add(expense_service, user, name=f"e{i}").id for i in range(2)]
        result = expense_service.bulk_update_category(user, ids, " Travel ")
        assert result.success
        assert result.data.affected == 2
        assert {e.category for e in expense_service.list_expenses(user).data} == {"Travel"}

    def test_bulk_update_requires_category(self, expense_service, user) -> None:
        created = _add(expense_service, user)
        result = expense_service.bulk_update_category(user, [created.id], "  ")
        assert (result.status_code, result.error) == (400, "Please select a category.")

    def test_bulk_delete_failure_leaves_message(self, remote_expense_repo, fake_supabase, logger, user) -> None:
        fake_supabase.fail("expenses", "delete")
        result = ExpenseService(remote_expense_repo, logger).bulk_delete(user, ["a", "b"])
        assert (result.success, result.error) == (False, "Failed to delete selected expenses")

    def test_bulk_update_failure_leaves_message(self, remote_expense_repo, fake_supabase, logger, user) -> None:
        fake_supabase.fail("expenses", "update")
        result = ExpenseService(remote_expense_repo, logger).bulk_update_category(user, ["a"], "Food")
        assert (result.success, result.error) == (False, "Failed to update selected expenses")
