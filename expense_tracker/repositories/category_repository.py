"""
Category Repository.

Handles data access for the ``categories`` table, including the rename
operation that rewrites the category name on every referencing expense
(expenses join to categories by *name*, not by id).
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from expense_tracker.models.category import Category, CategoryInput
from expense_tracker.models.service_models import CategoryRename
from expense_tracker.repositories.base_repository import BaseRepository, RepositoryError
from expense_tracker.repositories.expense_repository import ExpenseRepository


class CategoryRepository(BaseRepository, ABC):
    """Data access interface for Category entities."""

    TABLE = "categories"

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Category]:
        """All of the user's categories, ordered by name."""

    @abstractmethod
    def get_by_id(self, user_id: str, category_id: str) -> Optional[Category]:
        ...

    @abstractmethod
    def create(self, user_id: str, data: CategoryInput) -> Category:
        ...

    @abstractmethod
    def create_many(
        self, user_id: str, items: Iterable[CategoryInput]
    ) -> list[Category]:
        ...

    @abstractmethod
    def update(
        self, user_id: str, category_id: str, data: CategoryInput
    ) -> Optional[Category]:
        ...

    @abstractmethod
    def delete(self, user_id: str, category_id: str) -> bool:
        ...

    @abstractmethod
    def rename(
        self,
        user_id: str,
        category: Category,
        data: CategoryInput,
        expense_repo: ExpenseRepository,
    ) -> CategoryRename:
        """Update *category* and carry a name change over to its expenses."""


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------


class SupabaseCategoryRepository(CategoryRepository):
    """Category repository backed by the Supabase ``categories`` table."""

    def list_for_user(self, user_id: str) -> list[Category]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("name")
            .execute()
        )
        return [Category(**row) for row in response.data or []]

    def get_by_id(self, user_id: str, category_id: str) -> Optional[Category]:
        response = (
            self.supabase.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("id", category_id)
            .maybe_single()
            .execute()
        )
        if response is None or not response.data:
            return None
        return Category(**response.data)

    def create(self, user_id: str, data: CategoryInput) -> Category:
        created = self.create_many(user_id, [data])
        return created[0]

    def create_many(
        self, user_id: str, items: Iterable[CategoryInput]
    ) -> list[Category]:
        rows = [{**item.model_dump(), "user_id": user_id} for item in items]
        if not rows:
            return []
        response = self.supabase.table(self.TABLE).insert(rows).execute()
        if not response.data:
            raise RepositoryError("Supabase returned no rows for the inserted categories.")
        return [Category(**row) for row in response.data]

    def update(
        self, user_id: str, category_id: str, data: CategoryInput
    ) -> Optional[Category]:
        response = (
            self.supabase.table(self.TABLE)
            .update(data.model_dump())
            .eq("user_id", user_id)
            .eq("id", category_id)
            .execute()
        )
        if not response.data:
            return None
        return Category(**response.data[0])

    def delete(self, user_id: str, category_id: str) -> bool:
        response = (
            self.supabase.table(self.TABLE)
            .delete()
            .eq("user_id", user_id)
            .eq("id", category_id)
            .execute()
        )
        return bool(response.data)

    def rename(
        self,
        user_id: str,
        category: Category,
        data: CategoryInput,
        expense_repo: ExpenseRepository,
    ) -> CategoryRename:
        """Two-step rename; PostgREST offers no multi-statement transaction.

        A failure in the second step leaves the category renamed and the
        expenses pointing at the old name.  That is reported through
        ``propagated=False`` so the caller can resume it.
        """
        updated = self.update(user_id, category.id, data)
        if updated is None:
            raise RepositoryError(f"Category {category.id} vanished during rename.")

        result = CategoryRename(
            category=updated, old_name=category.name, new_name=updated.name,
        )
        if not result.renamed:
            return result

        try:
            result.expenses_updated = expense_repo.rename_category_references(
                user_id, category.name, updated.name,
            )
        except Exception as exc:
            self._logger.error(
                "Category %s renamed from '%s' to '%s' but expenses were not "
                "updated: %s",
                category.id,
                category.name,
                updated.name,
                exc,
                exc_info=True,
            )
            result.propagated = False
        return result


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------


class SqliteCategoryRepository(CategoryRepository):
    """Category repository backed by the local SQLite ``categories`` table."""

    def list_for_user(self, user_id: str) -> list[Category]:
        rows = self.sqlite.execute(
            f"SELECT * FROM {self.TABLE} WHERE user_id = ? ORDER BY name, id",
            (user_id,),
        ).fetchall()
        return [Category(**dict(row)) for row in rows]

    def get_by_id(self, user_id: str, category_id: str) -> Optional[Category]:
        row = self.sqlite.execute(
            f"SELECT * FROM {self.TABLE} WHERE user_id = ? AND id = ?",
            (user_id, category_id),
        ).fetchone()
        return Category(**dict(row)) if row else None

    def create(self, user_id: str, data: CategoryInput) -> Category:
        return self.create_many(user_id, [data])[0]

    def create_many(
        self, user_id: str, items: Iterable[CategoryInput]
    ) -> list[Category]:
        now = self._now().isoformat()
        created = [
            Category(
                id=str(uuid.uuid4()),
                name=item.name,
                color=item.color,
                user_id=user_id,
                created_at=now,
            )
            for item in items
        ]
        with self._db.write_lock:
            self.sqlite.executemany(
                f"INSERT INTO {self.TABLE} (id, name, color, user_id, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                [(c.id, c.name, c.color, user_id, now) for c in created],
            )
            self._commit()
        return created

    def update(
        self, user_id: str, category_id: str, data: CategoryInput
    ) -> Optional[Category]:
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"UPDATE {self.TABLE} SET name = ?, color = ? "
                "WHERE user_id = ? AND id = ?",
                (data.name, data.color, user_id, category_id),
            )
            self._commit()
        if cursor.rowcount == 0:
            return None
        return self.get_by_id(user_id, category_id)

    def delete(self, user_id: str, category_id: str) -> bool:
        with self._db.write_lock:
            cursor = self.sqlite.execute(
                f"DELETE FROM {self.TABLE} WHERE user_id = ? AND id = ?",
                (user_id, category_id),
            )
            self._commit()
        return cursor.rowcount > 0

    def rename(
        self,
        user_id: str,
        category: Category,
        data: CategoryInput,
        expense_repo: ExpenseRepository,
    ) -> CategoryRename:
        """Rename the category and its expense references atomically."""
        with self._db.batch_write():
            updated = self.update(user_id, category.id, data)
            if updated is None:
                raise RepositoryError(f"Category {category.id} vanished during rename.")
            count = expense_repo.rename_category_references(
                user_id, category.name, updated.name,
            )
        return CategoryRename(
            category=updated,
            old_name=category.name,
            new_name=updated.name,
            expenses_updated=count,
        )
