"""Tests for the screen controllers and their shared state."""

from __future__ import annotations

from decimal import Decimal

import pytest

from expense_tracker.auth import SessionManager
from expense_tracker.controllers import (
    CategoryController,
    DashboardController,
    ExpenseFormController,
    ExpenseListController,
    LoadState,
    NotificationCenter,
    RefreshTrigger,
)
from expense_tracker.models.enums import ExportFormat, LoadStatus, SortField, SortOrder
from expense_tracker.models.expense import ExpenseInput
from expense_tracker.models.service_models import ServiceResult
from expense_tracker.services.category_service import CategoryService
from expense_tracker.services.export_service import ExportService
from expense_tracker.services.summary import SummaryService


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def trigger() -> RefreshTrigger:
    return RefreshTrigger()


@pytest.fixture
def summary_service(expense_repo, category_repo, logger, clock) -> SummaryService:
    return SummaryService(expense_repo, category_repo, logger, clock)


@pytest.fixture
def export_service(logger, clock) -> ExportService:
    return ExportService(logger=logger, clock=clock)


@pytest.fixture
def form(expense_service, category_service, session, notifications, trigger) -> ExpenseFormController:
    return ExpenseFormController(expense_service, category_service, session, notifications, trigger)


@pytest.fixture
def expense_list(
    expense_service, category_service, export_service, session, notifications, trigger, tmp_path
) -> ExpenseListController:
    return ExpenseListController(
        expense_service,
        category_service,
        export_service,
        session,
        notifications,
        trigger,
        export_directory=tmp_path,
    )


@pytest.fixture
def dashboard(summary_service, session, notifications, trigger) -> DashboardController:
    return DashboardController(summary_service, session, notifications, trigger)


@pytest.fixture
def category_controller(category_service, session, notifications, trigger) -> CategoryController:
    return CategoryController(category_service, session, notifications, trigger)


def _seed(expense_service, user, clock, *rows: tuple[str, str, str]) -> list[str]:
    ids = []
    for name, amount, category in rows:
        result = expense_service.add_expense(
            user, {"expense_name": name, "expense_amount": amount, "category": category},
        )
        ids.append(result.data.id)
        clock.advance(minutes=1)
    return ids


class TestSharedState:
    def test_refresh_trigger(self) -> None:
        trigger = RefreshTrigger()
        assert trigger.changed_since(None)
        seen = trigger.value
        assert not trigger.changed_since(seen)
        trigger.bump()
        assert trigger.changed_since(seen)

    def test_notifications_fifo_and_dismiss(self) -> None:
        center = NotificationCenter()
        center.success("one")
        center.error("two")
        first = center.pop()
        assert (first.title, first.description, first.is_error) == ("Success", "one", False)

        center.success("three")
        second = center.pop()
        assert second.is_error
        center.dismiss(second)  # already gone; no error
        assert [n.description for n in center.drain()] == ["three"]
        assert len(center) == 0

    def test_report(self) -> None:
        center = NotificationCenter()
        assert center.report(ServiceResult(success=True), "Saved")
        assert not center.report(ServiceResult(success=False, error="Nope"), "Saved")
        assert [n.description for n in center.drain()] == ["Saved", "Nope"]

    def test_load_state(self) -> None:
        state = LoadState()
        assert state.is_loading
        state.fail("boom")
        assert (state.status, state.error) == (LoadStatus.ERROR, "boom")
        state.start()
        state.succeed()
        assert state.status is LoadStatus.LOADED and state.error is None


class TestExpenseForm:
    def test_load_categories_seeds_defaults(self, form) -> None:
        categories = form.load_categories()
        assert len(categories) == 8
        assert not form.is_stale

    def test_submit_resets_form_and_bumps_trigger(self, form, trigger, notifications) -> None:
        form.expense_name = "Coffee"
        form.expense_amount = "4.50"
        form.category = "Food & Dining"

        created = form.submit()
        assert created is not None
        assert created.expense_amount == Decimal("4.50")
        assert form.expense_name == ""
        assert trigger.value == 1
        assert notifications.pop().description == "Expense added successfully!"

    def test_invalid_submit_keeps_values(self, form, trigger, notifications) -> None:
        form.expense_name = "Coffee"
        form.category = "Food"
        assert form.submit() is None
        assert form.expense_name == "Coffee"
        assert trigger.value == 0
        assert notifications.pop().description == "Amount must be a number greater than zero."

    def test_signed_out_submit(self, expense_service, category_service, notifications, trigger) -> None:
        form = ExpenseFormController(
            expense_service, category_service, SessionManager(), notifications, trigger,
        )
        assert form.submit() is None
        assert notifications.pop().description == "You must be logged in to add expenses"


class TestDashboard:
    def test_refetches_only_when_stale(self, dashboard, form, trigger) -> None:
        first = dashboard.refresh()
        assert first.total_expenses == 0
        assert dashboard.refresh() is first

        form.expense_name, form.expense_amount, form.category = "Tea", "2", "Food"
        form.submit()
        assert dashboard.is_stale
        assert dashboard.refresh().total_amount == Decimal("2")

    def test_forced_refresh(self, dashboard) -> None:
        first = dashboard.refresh()
        assert dashboard.refresh(force=True) is not first


class TestExpenseList:
    def test_load_clears_selection(self, expense_list, expense_service, user, clock) -> None:
        ids = _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Food"))
        expense_list.load()
        expense_list.toggle_selected(ids[0])
        assert len(expense_list.selection) == 1

        expense_list.load()
        assert expense_list.selection.is_empty
        assert expense_list.load_state.status is LoadStatus.LOADED

    def test_filter_change_prunes_selection(self, expense_list, expense_service, user, clock) -> None:
        food, travel = _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Travel"))
        expense_list.load()
        expense_list.select_all()
        assert expense_list.is_all_selected

        expense_list.set_filters(category="Food")
        assert [e.id for e in expense_list.visible] == [food]
        assert expense_list.selection.ids == frozenset({food})
        assert expense_list.has_active_filters

        expense_list.clear_filters()
        assert not expense_list.has_active_filters
        assert expense_list.is_partially_selected

    def test_sorting(self, expense_list, expense_service, user, clock) -> None:
        _seed(expense_service, user, clock, ("a", "5", "Food"), ("b", "1", "Food"), ("c", "3", "Food"))
        expense_list.load()
        assert [e.expense_name for e in expense_list.visible] == ["c", "b", "a"]

        expense_list.sort_by(SortField.AMOUNT)
        expense_list.toggle_sort_order()
        assert expense_list.filters.sort_order is SortOrder.ASC
        assert [e.expense_name for e in expense_list.visible] == ["b", "c", "a"]

    def test_edit_flow(self, expense_list, expense_service, user, clock, trigger) -> None:
        (expense_id,) = _seed(expense_service, user, clock, ("Coffee", "4", "Food"))
        expense_list.load()

        form = expense_list.start_edit(expense_id)
        assert form.expense_name == "Coffee"
        assert expense_list.save_edit({**form.model_dump(), "expense_amount": "6"})
        assert expense_list.editing is None
        assert expense_list.expenses[0].expense_amount == Decimal("6")
        assert trigger.value == 1

    def test_start_edit_unknown(self, expense_list, notifications) -> None:
        assert expense_list.start_edit("missing") is None
        assert notifications.pop().description == "Expense not found"

    def test_bulk_delete(self, expense_list, expense_service, user, clock, notifications, trigger) -> None:
        _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Food"), ("c", "3", "Food"))
        expense_list.load()
        for expense in expense_list.visible[:2]:
            expense_list.toggle_selected(expense.id)

        assert expense_list.delete_selected() == 2
        assert notifications.pop().description == "2 expense(s) deleted successfully!"
        assert len(expense_list.expenses) == 1
        assert expense_list.selection.is_empty
        assert trigger.value == 1

    def test_select_is_idempotent(self, expense_list, expense_service, user, clock) -> None:
        ids = _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Food"))
        expense_list.load()
        expense_list.select(ids[0])
        expense_list.select(ids[0])
        assert ids[0] in expense_list.selection
        expense_list.select(ids[0], selected=False)
        assert expense_list.selection.is_empty

    def test_bulk_delete_with_nothing_selected(self, expense_list, notifications) -> None:
        expense_list.load()
        assert expense_list.delete_selected() == 0
        assert notifications.pop().description == "No expenses selected"

    def test_bulk_reassign(self, expense_list, expense_service, user, clock, notifications) -> None:
        _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Food"))
        expense_list.load()
        expense_list.select_all()
        assert expense_list.reassign_selected("Travel") == 2
        assert notifications.pop().description == "2 expense(s) updated successfully!"
        assert {e.category for e in expense_list.expenses} == {"Travel"}

    def test_exports_are_saved(self, expense_list, expense_service, user, clock, notifications, tmp_path) -> None:
        ids = _seed(expense_service, user, clock, ("a", "1", "Food"), ("b", "2", "Food"))
        expense_list.load()

        path = expense_list.export_visible(ExportFormat.CSV)
        assert path == tmp_path / "my_expenses_2024-03-15.csv"
        assert notifications.pop().description == "Expenses exported to CSV successfully!"

        expense_list.toggle_selected(ids[0])
        path = expense_list.export_selected(ExportFormat.XLSX)
        assert path.name == "selected_expenses_2024-03-15.xlsx"
        assert notifications.pop().description == "1 selected expenses exported to Excel successfully!"

    def test_signed_out_load(self, expense_service, category_service, export_service, notifications, trigger) -> None:
        controller = ExpenseListController(
            expense_service, category_service, export_service, SessionManager(), notifications, trigger,
        )
        assert not controller.load()
        assert controller.load_state.status is LoadStatus.ERROR
        assert notifications.pop().description == "You must be logged in to view expenses"


class TestCategoryController:
    def test_add_and_duplicate(self, category_controller, notifications) -> None:
        assert category_controller.add("Food") is not None
        assert [c.name for c in category_controller.categories] == ["Food"]
        assert category_controller.add("FOOD") is None
        notifications.pop()
        assert notifications.pop().description == "A category with this name already exists"

    def test_delete_in_use_uses_dedicated_title(
        self, category_controller, expense_service, user, clock, notifications
    ) -> None:
        food = category_controller.add("Food")
        _seed(expense_service, user, clock, ("a", "1", "Food"))
        notifications.drain()

        assert not category_controller.delete(food.id)
        notice = notifications.pop()
        assert notice.title == "Cannot Delete Category"
        assert notice.is_error
        assert "1 expense(s)" in notice.description

    def test_edit_renames_expenses(self, category_controller, expense_service, user, clock) -> None:
        food = category_controller.add("Food")
        _seed(expense_service, user, clock, ("a", "1", "Food"))

        assert category_controller.start_edit(food.id).name == "Food"
        rename = category_controller.save_edit("Meals", "#22C55E")
        assert rename.expenses_updated == 1
        assert category_controller.editing is None
        assert category_controller.pending_rename is None

    def test_interrupted_rename_is_retried(
        self,
        remote_category_repo,
        remote_expense_repo,
        fake_supabase,
        logger,
        session,
        notifications,
        trigger,
        user,
    ) -> None:
        service = CategoryService(remote_category_repo, remote_expense_repo, logger)
        controller = CategoryController(service, session, notifications, trigger)
        food = controller.add("Food")
        remote_expense_repo.create(
            user.id,
            ExpenseInput(expense_name="a", expense_amount="1", category="Food"),
        )
        fake_supabase.fail("expenses", "update")

        controller.start_edit(food.id)
        controller.save_edit("Meals", food.color)
        assert controller.pending_rename is not None
        assert controller.orphaned_names() == ["Food"]

        fake_supabase.recover("expenses", "update")
        assert controller.retry_rename()
        assert controller.pending_rename is None
        assert controller.orphaned_names() == []
