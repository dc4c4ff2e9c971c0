"""
Export Service.

Projects expenses into flat rows and renders them as CSV (``csv`` module)
or XLSX (openpyxl), producing an in-memory :class:`ExportFile` that the
caller saves wherever the user asked.

Both formats carry the same four columns: name, amount, category and the
date formatted for the display timezone.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union
from zoneinfo import ZoneInfo

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import ExportFormat
from expense_tracker.models.expense import Expense
from expense_tracker.models.export import CONTENT_TYPES, ExportFile, ExportRow
from expense_tracker.models.service_models import ServiceResult
from expense_tracker.services.base_service import BaseService
from expense_tracker.services.filtering import SelectionState
from expense_tracker.utils.dates import Clock

DEFAULT_BASENAME: str = "my_expenses"
SELECTED_BASENAME: str = "selected_expenses"

SHEET_TITLE: str = "Expenses"
# Character widths of the four XLSX columns, in header order.
COLUMN_WIDTHS: tuple[int, ...] = (25, 15, 20, 12)

_FAILURE_MESSAGES: dict[ExportFormat, str] = {
    ExportFormat.CSV: "Failed to export CSV file",
    ExportFormat.XLSX: "Failed to export Excel file",
}


def export_headers(currency_symbol: str = "₹") -> list[str]:
    return ["Expense Name", f"Amount ({currency_symbol})", "Category", "Date"]


def prepare_export_rows(
    expenses: Iterable[Expense],
    tz: ZoneInfo = ZoneInfo("UTC"),
    date_format: str = "%d/%m/%Y",
    currency_symbol: str = "₹",
) -> list[ExportRow]:
    """Flatten *expenses* into export rows, preserving their order."""
    return [
        ExportRow(
            expense_name=e.expense_name,
            expense_amount=e.expense_amount,
            category=e.category,
            created_at=e.created_at,
            formatted_date=e.created_at.astimezone(tz).strftime(date_format),
            formatted_amount=f"{currency_symbol}{e.expense_amount:.2f}",
        )
        for e in expenses
    ]


def to_csv(rows: Sequence[ExportRow], currency_symbol: str = "₹") -> str:
    """Render *rows* as CSV text.

    Text fields are always quoted (embedded quotes doubled); the amount is
    written as a bare number so spreadsheets read it as numeric.
    """
    buffer = io.StringIO()
    header_writer = csv.writer(buffer, lineterminator="\n")
    header_writer.writerow(export_headers(currency_symbol))

    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for row in rows:
        writer.writerow(
            [row.expense_name, row.expense_amount, row.category, row.formatted_date]
        )
    return buffer.getvalue()


def to_xlsx(rows: Sequence[ExportRow], currency_symbol: str = "₹") -> bytes:
    """Render *rows* as a single-sheet XLSX workbook."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append(export_headers(currency_symbol))
    for row in rows:
        sheet.append(
            [row.expense_name, float(row.expense_amount), row.category, row.formatted_date]
        )
    for index, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def save_export(file: ExportFile, directory: Union[str, Path]) -> Path:
    """Write *file* into *directory* and return the path written.

    Creates *directory* if needed; an existing file of the same name is
    overwritten.
    """
    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / file.filename
    target.write_bytes(file.content)
    return target


class ExportService(BaseService):
    """Builds CSV/XLSX exports of expense lists."""

    def __init__(
        self,
        logger: StructuredLogger,
        tz: ZoneInfo = ZoneInfo("UTC"),
        date_format: str = "%d/%m/%Y",
        currency_symbol: str = "₹",
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(logger, clock)
        self._tz = tz
        self._date_format = date_format
        self._currency_symbol = currency_symbol

    def filename_for(self, basename: str, fmt: ExportFormat) -> str:
        """``{basename}_{YYYY-MM-DD}.{ext}``, dated in UTC."""
        stamp = self._clock().astimezone(ZoneInfo("UTC")).date().isoformat()
        return f"{basename}_{stamp}.{fmt.value}"

    def render(self, expenses: Sequence[Expense], fmt: ExportFormat, basename: str) -> ExportFile:
        rows = prepare_export_rows(
            expenses, self._tz, self._date_format, self._currency_symbol,
        )
        if fmt == ExportFormat.XLSX:
            content = to_xlsx(rows, self._currency_symbol)
        else:
            content = to_csv(rows, self._currency_symbol).encode("utf-8")
        return ExportFile(
            filename=self.filename_for(basename, fmt),
            content_type=CONTENT_TYPES[fmt],
            content=content,
            row_count=len(rows),
        )

    def export(
        self,
        expenses: Sequence[Expense],
        fmt: ExportFormat,
        basename: str = DEFAULT_BASENAME,
    ) -> ServiceResult[ExportFile]:
        """Export *expenses* (typically the filtered, sorted view)."""
        try:
            export_file = self.render(expenses, fmt, basename)
        except Exception as exc:
            self._logger.error(
                "Failed to export %d expenses as %s: %s", len(expenses), fmt, exc,
                exc_info=True,
            )
            return ServiceResult(
                success=False, error=_FAILURE_MESSAGES[fmt], status_code=500,
            )

        self._logger.info(
            "Exported %d expenses to %s", export_file.row_count, export_file.filename,
        )
        return ServiceResult(success=True, data=export_file)

    def export_selected(
        self,
        expenses: Sequence[Expense],
        selection: SelectionState,
        fmt: ExportFormat,
    ) -> ServiceResult[ExportFile]:
        """Export the selected subset of *expenses*, in their current order."""
        chosen = selection.selected_from(expenses)
        if not chosen:
            return ServiceResult(
                success=False, error="No expenses selected", status_code=400,
            )
        result = self.export(chosen, fmt, SELECTED_BASENAME)
        if not result.success:
            return ServiceResult(
                success=False,
                error="Failed to export selected expenses",
                status_code=result.status_code,
            )
        return result
