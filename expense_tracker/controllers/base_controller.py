"""
Base Controller Class.

Screen controllers own the view-model state of one screen and call the
services with the signed-in user.  Rendering is left to whatever front
end drives them (the CLI in ``main.py``, or a GUI).
"""

from __future__ import annotations

from typing import Optional

from expense_tracker.auth import SessionManager
from expense_tracker.controllers.state import NotificationCenter, RefreshTrigger
from expense_tracker.models.user import User


class BaseController:
    """Holds the session, the notification queue and the refresh trigger."""

    def __init__(
        self,
        session: SessionManager,
        notifications: NotificationCenter,
        trigger: RefreshTrigger,
    ) -> None:
        self._session = session
        self.notifications = notifications
        self._trigger = trigger
        self._seen_trigger: Optional[int] = None

    @property
    def is_stale(self) -> bool:
        """``True`` until loaded, and again after any mutation elsewhere."""
        return self._trigger.changed_since(self._seen_trigger)

    def _mark_fresh(self) -> None:
        self._seen_trigger = self._trigger.value

    def _signed_in_user(self, action: str) -> Optional[User]:
        """The current user, or ``None`` after notifying that *action* needs one."""
        user = self._session.current_user
        if user is None:
            self.notifications.error(f"You must be logged in to {action}")
        return user
