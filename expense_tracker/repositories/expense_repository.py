"""
Expense Repository.

Handles data access for the ``expenses`` table.  Every query is scoped by
the owner's ``user_id``.

Two implementations share the :class:`ExpenseRepository` interface:

- :class:`SupabaseExpenseRepository`: PostgREST via ``supabase-py``.
- :class:`SqliteExpenseRepository`: the local single-user store, also used
  as the in-memory store in tests.

Errors are not swallowed here; they propagate to the service layer,
which logs them and turns them into user-facing messages.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from expense_tracker.models.expense import Expense, ExpenseInput
from expense_tracker.repositories.base_repository import BaseRepository, RepositoryError
from expense_tracker.utils.general import convert_to_json_safe


class ExpenseRepository(BaseRepository, ABC):
    """Data access interface for Expense entities."""

    TABLE = "expenses"

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Expense]:
        """All of the user's expenses, newest first."""

    @abstractmethod
    def get_by_id(self, user_id: str, expense_id: str) -> Optional[Expense]:
        ...

    @abstractmethod
    def create(self, user_id: str, data: ExpenseInput) -> Expense:
        ...

    @abstractmethod
    def update(
        self, user_id: str, expense_id: str, data: ExpenseInput
    ) -> Optional[Expense]:
        """Overwrite the editable fields and stamp ``updated_at``.

        Returns ``None`` when no expense with that id belongs to the user.
        """

    @abstractmethod
    def delete(self, user_id: str, expense_id: str) -> bool:
        ...

    @abstractmethod
    def delete_many(self, user_id: str, expense_ids: Sequence[str]) -> int:
        """Delete every listed expense in one statement; return the count."""

    @abstractmethod
    def update_category_many(
        self, user_id: str, expense_ids: Sequence[str], category: str
    ) -> int:
        """Reassign every listed expense in one statement; return the count."""

    @abstractmethod
    def count_by_category(self, user_id: str, category_name: str) -> int:
        ...

    @abstractmethod
    def rename_category_references(
        self, user_id: str, old_name: str, new_name: str
    ) -> int:
        """Rewrite ``category`` from *old_name* to *new_name*.

        Matches *old_name* exactly (case-sensitive).  Running it twice is
        harmless: the second run finds nothing left to rewrite.
        """


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------


def _expense_from_remote(row: Mapping[str, object]) -> Expense:
    """Build an Expense from a PostgREST row.

    PostgREST returns ``numeric`` columns as JSON numbers; going through
    ``str`` keeps ``4.5`` as ``Decimal("4.5")`` rather than its binary
    expansion.
    """
    data = dict(row)
    data["expense_amount"] = Decimal(str(data["expense_amount"]))
    return Expense(**data)


class SupabaseExpenseRepository(ExpenseRepository):
    """Expense repository backed by the Supabase ``expenses`` table."""

    def list_for_user(self, user_id: str) -> list[Expense]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_expense_from_remote(row) for row in response.data or []]

    def get_by_id(self, user_id: str, expense_id: str) -> Optional[Expense]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("id", expense_id)
            .maybe_single()
            .execute()
        )
        # supabase-py returns None instead of an empty response for no match.
        if response is None or not response.data:
            return None
        return _expense_from_remote(response.data)

    def create(self, user_id: str, data: ExpenseInput) -> Expense:
        payload = convert_to_json_safe(data.model_dump())
        payload["user_id"] = user_id
        response = self.supabase.table(self.TABLE).insert(payload).execute()
        if not response.data:
            raise RepositoryError("Supabase returned no row for the inserted expense.")
        return _expense_from_remote(response.data[0])

    def update(
        self, user_id: str, expense_id: str, data: ExpenseInput
    ) -> Optional[Expense]:
        payload = convert_to_json_safe(data.model_dump())
        payload["updated_at"] = self._now().isoformat()
        response = (
            self.supabase.table(self.TABLE)
            .update(payload)
            .eq("user_id", user_id)
            .eq("id", expense_id)
            .execute()
        )
        if not response.data:
            return None
        return _expense_from_remote(response.data[0])

    def delete(self, user_id: str, expense_id: str) -> bool:
        response = (
            self.supabase.table(self.TABLE)
            .delete()
            .eq("user_id", user_id)
            .eq("id", expense_id)
            .execute()
        )
        return bool(response.data)

    def delete_many(self, user_id: str, expense_ids: Sequence[str]) -> int:
        if not expense_ids:
            return 0
        response = (
            self.supabase.table(self.TABLE)
            .delete()
            .eq("user_id", user_id)
            .in_("id", list(expense_ids))
            .execute()
        )
        return len(response.data or [])

    def update_category_many(
        self, user_id: str, expense_ids: Sequence[str], category: str
    ) -> int:
        if not expense_ids:
            return 0
        response = (
            self.supabase.table(self.TABLE)
            .update({"category": category, "updated_at": self._now().isoformat()})
            .eq("user_id", user_id)
            .in_("id", list(expense_ids))
            .execute()
        )
        return len(response.data or [])

    def count_by_category(self, user_id: str, category_name: str) -> int:
        response = (
            self.supabase.table(self.TABLE)
            .select("id", count="exact")
            .eq("user_id", user_id)
            .eq("category", category_name)
            .execute()
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    def rename_category_references(
        self, user_id: str, old_name: str, new_name: str
    ) -> int:
        if old_name == new_name:
            return 0
        response = (
            self.supabase.table(self.TABLE)
            .update({"category": new_name, "updated_at": self._now().isoformat()})
            .eq("user_id", user_id)
            .eq("category", old_name)
            .execute()
        )
        return len(response.data or [])


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SqliteExpenseRepository(ExpenseRepository):
    """Expense repository backed by the local SQLite ``expenses`` table.

    Amounts are stored as TEXT so they round-trip as exact decimals, and
    timestamps as ISO-8601 UTC strings so lexical order is time order.
    """

    def list_for_user(self, user_id: str) -> list[Expense]:
        rows = self.sqlite.execute(
            f"SELECT * FROM {self.TABLE} WHERE user_id = ? "
            "ORDER BY created_at DESC, id DESC",
            (user_id,),
        ).fetchall()
        return [Expense(**dict(row)) for row in rows]

    def get_by_id(self, user_id: str, expense_id: str) -> Optional[Expense]:
        row = self.sqlite.execute(
            f"SELECT * FROM {self.TABLE} WHERE user_id = ? AND id = ?",
            (user_id, expense_id),
        ).fetchone()
        return Expense(**dict(row)) if row else None

    def create(self, user_id: str, data: ExpenseInput) -> Expense:
        now = self._now().isoformat()
        expense = Expense(
            id=str(uuid.uuid4()),
            expense_name=data.expense_name,
            expense_amount=data.expense_amount,
            category=data.category,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        with self._db.write_lock:
            self.sqlite.execute(
                f"""
                INSERT INTO {self.TABLE}
                    (id, expense_name, expense_amount, category, user_id,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    expense.id,
                    expense.expense_name,
                    str(expense.expense_amount),
                    expense.category,
                    user_id,
                    now,
                    now,
                ),
            )
            self._commit()
        return expense

    def update(
        self, user_id: str, expense_id: str, data: ExpenseInput
    ) -> Optional[Expense]:
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"""
                UPDATE {self.TABLE}
                SET expense_name = ?, expense_amount = ?, category = ?, updated_at = ?
                WHERE user_id = ? AND id = ?
                """,
                (
                    data.expense_name,
                    str(data.expense_amount),
                    data.category,
                    self._now().isoformat(),
                    user_id,
                    expense_id,
                ),
            )
            self._commit()
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(user_id, expense_id)

    def delete(self, user_id: str, expense_id: str) -> bool:
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"DELETE FROM {self.TABLE} WHERE user_id = ? AND id = ?",
                (user_id, expense_id),
            )
            self._commit()
        return cursor.rowcount > 0

    def delete_many(self, user_id: str, expense_ids: Sequence[str]) -> int:
        if not expense_ids:
            return 0
        ids = list(expense_ids)
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"DELETE FROM {self.TABLE} "
                f"WHERE user_id = ? AND id IN ({_placeholders(len(ids))})",
                (user_id, *ids),
            )
            self._commit()
        return cursor.rowcount

    def update_category_many(
        self, user_id: str, expense_ids: Sequence[str], category: str
    ) -> int:
        if not expense_ids:
            return 0
        ids = list(expense_ids)
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"UPDATE {self.TABLE} SET category = ?, updated_at = ? "
                f"WHERE user_id = ? AND id IN ({_placeholders(len(ids))})",
                (category, self._now().isoformat(), user_id, *ids),
            )
            self._commit()
        return cursor.rowcount

    def count_by_category(self, user_id: str, category_name: str) -> int:
        row = self.sqlite.execute(
            f"SELECT COUNT(*) FROM {self.TABLE} WHERE user_id = ? AND category = ?",
            (user_id, category_name),
        ).fetchone()
        return int(row[0])

    def rename_category_references(
        self, user_id: str, old_name: str, new_name: str
    ) -> int:
        if old_name == new_name:
            return 0
        with self._db.write_lock:
            # SQLite's = on TEXT is case-sensitive under the default BINARY collation.
            cursor = self.sqlite.execute(
                f"UPDATE {self.TABLE} SET category = ?, updated_at = ? "
                "WHERE user_id = ? AND category = ?",
                (new_name, self._now().isoformat(), user_id, old_name),
            )
            self._commit()
        return cursor.rowcount
