"""
Category Model.

Pydantic models for rows of the ``categories`` table, the category
editor's form data, and the seeded defaults.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_HEX_COLOR_RE: re.Pattern[str] = re.compile(r"^#[0-9A-Fa-f]{6}$")

# Colour used for expenses whose category name matches no category.
FALLBACK_CATEGORY_COLOR: str = "#6B7280"

# Swatches offered by the category editor, in display order.
CATEGORY_PALETTE: tuple[str, ...] = (
    "#EF4444",
    "#F97316",
    "#F59E0B",
    "#EAB308",
    "#84CC16",
    "#22C55E",
    "#10B981",
    "#14B8A6",
    "#06B6D4",
    "#0EA5E9",
    "#3B82F6",
    "#6366F1",
    "#8B5CF6",
    "#A855F7",
    "#D946EF",
    "#EC4899",
    "#F43F5E",
    "#6B7280",
    "#374151",
    "#1F2937",
)


class Category(BaseModel):
    """Represents a user-defined expense category."""

    id: str
    name: str
    color: str = FALLBACK_CATEGORY_COLOR
    user_id: str
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _normalise_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    model_config = {"from_attributes": True}


class CategoryInput(BaseModel):
    """Validated form data for creating or editing a category."""

    name: str = Field(min_length=1, max_length=100)
    color: str = CATEGORY_PALETTE[0]

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("color")
    @classmethod
    def _validate_color(cls, v: str) -> str:
        if not _HEX_COLOR_RE.match(v):
            raise ValueError(f"Color must be a #RRGGBB hex string, got {v!r}")
        return v.upper()


# Seeded for a user the first time their category list is empty.
DEFAULT_CATEGORIES: tuple[CategoryInput, ...] = (
    CategoryInput(name="Food & Dining", color="#EF4444"),
    CategoryInput(name="Transportation", color="#3B82F6"),
    CategoryInput(name="Shopping", color="#8B5CF6"),
    CategoryInput(name="Entertainment", color="#F59E0B"),
    CategoryInput(name="Bills & Utilities", color="#10B981"),
    CategoryInput(name="Healthcare", color="#EC4899"),
    CategoryInput(name="Travel", color="#06B6D4"),
    CategoryInput(name="Other", color="#6B7280"),
)
