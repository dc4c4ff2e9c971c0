"""Dashboard screen: the spending summary, re-fetched after mutations."""

from __future__ import annotations

from typing import Optional

from expense_tracker.auth import SessionManager
from expense_tracker.controllers.base_controller import BaseController
from expense_tracker.controllers.state import LoadState, NotificationCenter, RefreshTrigger
from expense_tracker.models.summary import ExpenseSummary
from expense_tracker.services.summary import SummaryService


class DashboardController(BaseController):
    """Loads the :class:`ExpenseSummary` for the signed-in user."""

    def __init__(
        self,
        summary_service: SummaryService,
        session: SessionManager,
        notifications: NotificationCenter,
        trigger: RefreshTrigger,
    ) -> None:
        super().__init__(session, notifications, trigger)
        self._summary_service = summary_service
        self.summary: Optional[ExpenseSummary] = None
        self.load_state = LoadState()

    def refresh(self, force: bool = False) -> Optional[ExpenseSummary]:
        """Re-fetch when forced or when the refresh trigger has advanced."""
        if not force and not self.is_stale:
            return self.summary

        user = self._signed_in_user("view your summary")
        if user is None:
            self.load_state.fail("Not signed in")
            return None

        self.load_state.start()
        seen = self._trigger.value
        result = self._summary_service.get_summary(user)
        if not result.success:
            self.load_state.fail(result.error or "Failed to load expense summary")
            self.notifications.error(result.error or "Failed to load expense summary")
            return self.summary

        self.summary = result.data
        self._seen_trigger = seen
        self.load_state.succeed()
        return self.summary
