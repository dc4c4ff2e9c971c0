"""
Expense List Filtering, Sorting and Selection.

Pure functions deriving the visible expense list from the loaded
collection and an :class:`ExpenseFilter`, plus the immutable
:class:`SelectionState` used for bulk operations.

Sorting is a total order: the chosen key, then the expense id.  Reversing
the direction therefore reverses the list exactly, even for equal keys.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict

from expense_tracker.models.enums import SortField, SortOrder
from expense_tracker.models.expense import Expense
from expense_tracker.models.filters import ALL_CATEGORIES, ExpenseFilter
from expense_tracker.utils.dates import end_of_day, start_of_day
from expense_tracker.utils.general import collation_key

__all__ = [
    "SelectionState",
    "apply_filters",
    "clear_filters",
    "filter_and_sort",
    "has_active_filters",
    "sort_expenses",
]

_UTC: ZoneInfo = ZoneInfo("UTC")


def apply_filters(
    expenses: Iterable[Expense],
    filt: ExpenseFilter,
    tz: ZoneInfo = _UTC,
) -> list[Expense]:
    """Return the expenses matching every active predicate of *filt*.

    Calendar-date bounds are interpreted in *tz*: ``date_from`` starts at
    local midnight, ``date_to`` runs through 23:59:59.999 local time.
    """
    predicates: list[Callable[[Expense], bool]] = []

    if filt.category != ALL_CATEGORIES:
        predicates.append(lambda e: e.category == filt.category)

    if filt.search_term:
        needle = filt.search_term.casefold()
        predicates.append(lambda e: needle in e.expense_name.casefold())

    if filt.date_from is not None:
        lower = start_of_day(filt.date_from, tz)
        predicates.append(lambda e: e.created_at >= lower)

    if filt.date_to is not None:
        upper = end_of_day(filt.date_to, tz)
        predicates.append(lambda e: e.created_at <= upper)

    if filt.amount_min is not None:
        amount_min = filt.amount_min
        predicates.append(lambda e: e.expense_amount >= amount_min)

    if filt.amount_max is not None:
        amount_max = filt.amount_max
        predicates.append(lambda e: e.expense_amount <= amount_max)

    return [e for e in expenses if all(p(e) for p in predicates)]


def _sort_key(sort_by: SortField) -> Callable[[Expense], tuple]:
    if sort_by == SortField.AMOUNT:
        return lambda e: (e.expense_amount, e.id)
    if sort_by == SortField.NAME:
        # Raw name second so names equal under collation still order stably.
        return lambda e: (collation_key(e.expense_name), e.expense_name, e.id)
    return lambda e: (e.created_at, e.id)


def sort_expenses(
    expenses: Iterable[Expense],
    sort_by: SortField = SortField.DATE,
    sort_order: SortOrder = SortOrder.DESC,
) -> list[Expense]:
    return sorted(
        expenses,
        key=_sort_key(sort_by),
        reverse=sort_order == SortOrder.DESC,
    )


def filter_and_sort(
    expenses: Iterable[Expense],
    filt: ExpenseFilter,
    tz: ZoneInfo = _UTC,
) -> list[Expense]:
    """The visible list: :func:`apply_filters` then :func:`sort_expenses`."""
    return sort_expenses(apply_filters(expenses, filt, tz), filt.sort_by, filt.sort_order)


def has_active_filters(filt: ExpenseFilter) -> bool:
    return filt.is_active


def clear_filters() -> ExpenseFilter:
    """A filter with every predicate off and the default ordering (newest first)."""
    return ExpenseFilter()


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class SelectionState(BaseModel):
    """Immutable set of selected expense ids.

    Every operation returns a new state.  Ids are not checked against the
    loaded list; use :meth:`retain` after the visible list changes.
    """

    model_config = ConfigDict(frozen=True)

    ids: frozenset[str] = frozenset()

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, expense_id: object) -> bool:
        return expense_id in self.ids

    @property
    def is_empty(self) -> bool:
        return not self.ids

    def toggle(self, expense_id: str) -> SelectionState:
        if expense_id in self.ids:
            return SelectionState(ids=self.ids - {expense_id})
        return SelectionState(ids=self.ids | {expense_id})

    def select(self, expense_id: str, selected: bool = True) -> SelectionState:
        if selected:
            return SelectionState(ids=self.ids | {expense_id})
        return SelectionState(ids=self.ids - {expense_id})

    def select_all(self, visible: Sequence[Expense], selected: bool = True) -> SelectionState:
        """Select (or deselect) exactly the visible expenses."""
        if not selected:
            return SelectionState()
        return SelectionState(ids=frozenset(e.id for e in visible))

    def clear(self) -> SelectionState:
        return SelectionState()

    def retain(self, visible: Sequence[Expense]) -> SelectionState:
        """Drop selected ids that are no longer visible."""
        return SelectionState(ids=self.ids & {e.id for e in visible})

    def is_all_selected(self, visible: Sequence[Expense]) -> bool:
        return bool(visible) and all(e.id in self.ids for e in visible)

    def is_partially_selected(self, visible: Sequence[Expense]) -> bool:
        chosen = sum(1 for e in visible if e.id in self.ids)
        return 0 < chosen < len(visible)

    def selected_from(self, expenses: Sequence[Expense]) -> list[Expense]:
        """The selected expenses, in the order of *expenses*."""
        return [e for e in expenses if e.id in self.ids]
