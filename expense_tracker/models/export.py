"""
Export Models.

Flat tabular projection of expenses and the generated file payload.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from expense_tracker.models.enums import ExportFormat

CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.CSV: "text/csv;charset=utf-8",
    ExportFormat.XLSX: (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    ),
}


class ExportRow(BaseModel):
    """One expense, formatted for export."""

    expense_name: str
    expense_amount: Decimal
    category: str
    created_at: datetime
    formatted_date: str
    formatted_amount: str


class ExportFile(BaseModel):
    """An in-memory file ready to be saved or downloaded."""

    filename: str
    content_type: str
    content: bytes
    row_count: int = 0
