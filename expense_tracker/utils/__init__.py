"""Shared utility functions and models for the expense tracker.

This package provides convenience re-exports so that consumers can import
directly from ``expense_tracker.utils`` (e.g. ``from expense_tracker.utils
import log_audit_event``) while full absolute imports remain supported.
"""

from expense_tracker.utils.audit import AuditEvent, log_audit_event
from expense_tracker.utils.dates import end_of_day, start_of_day, utc_now
from expense_tracker.utils.general import collation_key, convert_to_json_safe

__all__ = [
    "AuditEvent",
    "collation_key",
    "convert_to_json_safe",
    "end_of_day",
    "log_audit_event",
    "start_of_day",
    "utc_now",
]
