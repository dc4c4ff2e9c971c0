"""
Base Service Class.

Minimal base class standardizing the logger and clock pattern for all
services.  Services extend this and add their own repository dependencies
via __init__.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from expense_tracker.logger import StructuredLogger
from expense_tracker.utils.dates import Clock, utc_now

# Form field -> message shown when that field fails validation.
_FIELD_MESSAGES: dict[str, str] = {
    "expense_name": "Expense name is required.",
    "expense_amount": "Amount must be a number greater than zero.",
    "category": "Please select a category.",
    "name": "Category name is required.",
    "color": "Color must be a #RRGGBB hex value.",
}


class BaseService:
    """Base class for all service classes. Provides a logger and a clock."""

    def __init__(self, logger: StructuredLogger, clock: Optional[Clock] = None) -> None:
        self._logger: StructuredLogger = logger
        self._clock: Clock = clock or utc_now

    @staticmethod
    def validation_message(exc: ValidationError) -> str:
        """First validation failure of *exc*, phrased for the user."""
        errors = exc.errors()
        if not errors:
            return "Invalid input."
        first = errors[0]
        field = str(first["loc"][0]) if first.get("loc") else ""
        return _FIELD_MESSAGES.get(field, first.get("msg", "Invalid input."))
