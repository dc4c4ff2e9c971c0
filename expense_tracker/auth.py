"""
Authentication & Session State.

Provides an injectable ``SessionManager`` that holds the signed-in
``User`` for the lifetime of a single process, plus the ``require_auth``
guard used by the command and controller layer.

Usage::

    from expense_tracker.auth import SessionManager, require_auth
    from expense_tracker.models.user import User

    session = SessionManager()
    session.begin(User(id="abc-123", email="user@example.com"))

    @require_auth(session)
    def show_summary() -> None:
        ...
"""

from __future__ import annotations

import threading
from functools import wraps
from typing import Callable, Optional, ParamSpec, TypeVar

from expense_tracker.models.user import User

P = ParamSpec("P")
R = TypeVar("R")


class AuthenticationError(RuntimeError):
    """Raised when a guarded function is called without an active session."""


class SessionManager:
    """Injectable holder for the current authenticated user.

    Pass a single ``SessionManager`` through the composition root so every
    component shares the same session.  The ``user_id`` of the held user
    scopes every repository query.  Tokens stay inside the Supabase client.
    """

    def __init__(self) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._current_user: Optional[User] = None

    def begin(self, user: User) -> None:
        """Record *user* as the session."""
        with self._lock:
            self._current_user = user

    @property
    def current_user(self) -> Optional[User]:
        with self._lock:
            return self._current_user

    def clear(self) -> None:
        """Remove the current user, ending the session."""
        with self._lock:
            self._current_user = None

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a user is currently signed in."""
        with self._lock:
            return self._current_user is not None


def require_auth(session: SessionManager) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Return a decorator that enforces authentication via *session*.

    The returned decorator checks ``session.is_authenticated`` before
    every call to the wrapped function.  If no user is signed in, an
    :class:`AuthenticationError` is raised and the function never runs.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not session.is_authenticated:
                raise AuthenticationError(
                    "You must be logged in to manage expenses."
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
