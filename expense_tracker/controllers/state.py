"""
Shared Screen State.

Small, UI-agnostic building blocks the screen controllers are composed
from: the refresh counter that links mutating screens to the dashboard,
the one-shot notification queue, and the per-fetch load status.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Optional

from expense_tracker.models.enums import LoadStatus, NotificationVariant
from expense_tracker.models.service_models import Notification, ServiceResult


class RefreshTrigger:
    """Monotonic counter bumped by every successful mutation.

    Dependent screens remember the last value they loaded at and re-fetch
    when :meth:`changed_since` reports a newer one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def changed_since(self, seen: Optional[int]) -> bool:
        return seen is None or seen != self._value


class NotificationCenter:
    """FIFO of one-shot, dismissible notifications."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queue: deque[Notification] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def push(self, notification: Notification) -> None:
        with self._lock:
            self._queue.append(notification)

    def success(self, description: str, title: str = "Success") -> None:
        self.push(Notification(title=title, description=description))

    def error(self, description: str, title: str = "Error") -> None:
        self.push(
            Notification(
                title=title,
                description=description,
                variant=NotificationVariant.DESTRUCTIVE,
            )
        )

    def report(self, result: ServiceResult, success_message: str) -> bool:
        """Push the success or error notification for *result*.

        Returns ``result.success`` so callers can branch on it.
        """
        if result.success:
            self.success(success_message)
        else:
            self.error(result.error or "Something went wrong")
        return result.success

    def pop(self) -> Optional[Notification]:
        with self._lock:
            return self._queue.popleft() if self._queue else None

    def drain(self) -> list[Notification]:
        with self._lock:
            items = list(self._queue)
            self._queue.clear()
            return items

    def dismiss(self, notification: Notification) -> None:
        with self._lock:
            if notification in self._queue:
                self._queue.remove(notification)


class LoadState:
    """``loading -> loaded | error`` for one screen's data fetch."""

    def __init__(self) -> None:
        self.status: LoadStatus = LoadStatus.LOADING
        self.error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.status == LoadStatus.LOADING

    def start(self) -> None:
        self.status = LoadStatus.LOADING
        self.error = None

    def succeed(self) -> None:
        self.status = LoadStatus.LOADED
        self.error = None

    def fail(self, message: str) -> None:
        self.status = LoadStatus.ERROR
        self.error = message
