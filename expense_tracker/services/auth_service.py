"""
Authentication Service.

Orchestrates sign-in, session restoration and sign-out against Supabase
Auth, and the fixed local profile used with the SQLite store.  Sits
between the command/controller layer and the Supabase client so callers
never inspect raw auth exceptions.

Sign-up and password reset are handled by the hosted auth pages and are
not part of this service.
"""

from __future__ import annotations

from typing import Optional

from expense_tracker.auth import SessionManager
from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.auth_models import (
    SUPABASE_ERROR_MAP,
    AuthErrorCode,
    AuthResult,
)
from expense_tracker.models.user import User
from expense_tracker.services.base_service import BaseService


class AuthService(BaseService):
    """Signs users in and out and keeps the ``SessionManager`` current."""

    def __init__(
        self,
        db: DatabaseManager,
        session: SessionManager,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._db = db
        self._session = session

    @staticmethod
    def normalize_email(email: str) -> str:
        return email.strip().lower()

    # ==================================================================
    # Sign-in
    # ==================================================================

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password via Supabase Auth."""
        email = self.normalize_email(email)
        if not email or not password:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.INVALID_CREDENTIALS,
                error_message="Email and password are required.",
            )

        try:
            response = self._db.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except RuntimeError as exc:
            # DatabaseManager raises RuntimeError when no client is configured.
            self._logger.warning("Sign-in attempted without a backend: %s", exc)
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.BACKEND_UNAVAILABLE,
                error_message="Supabase is not configured.",
            )
        except Exception as exc:
            return self._classify_login_error(exc)

        user = self._user_from_auth(response.user, fallback_email=email)
        self._session.begin(user)
        self._logger.info(
            "User signed in: %s",
            user.email,
            extra={"event": "LOGIN", "user_id": user.id},
        )
        return AuthResult(success=True, user=user)

    def get_session_user(self) -> AuthResult:
        """Restore the signed-in user from the client's current session."""
        try:
            response = self._db.supabase.auth.get_user()
        except Exception as exc:
            self._logger.warning("Could not restore auth session: %s", exc)
            self._session.clear()
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.SESSION_EXPIRED,
                error_message="Your session has expired. Please sign in again.",
            )

        auth_user = getattr(response, "user", None) if response else None
        if auth_user is None:
            self._session.clear()
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.SESSION_EXPIRED,
                error_message="You must be logged in to manage expenses.",
            )

        user = self._user_from_auth(auth_user)
        self._session.begin(user)
        return AuthResult(success=True, user=user)

    def use_local_profile(self, user_id: str, email: str) -> AuthResult:
        """Sign in as the fixed profile that owns the local SQLite store."""
        user = User(id=user_id, email=email, full_name=None)
        self._session.begin(user)
        self._logger.info(
            "Using local profile %s", email,
            extra={"event": "LOGIN_LOCAL", "user_id": user_id},
        )
        return AuthResult(success=True, user=user)

    # ==================================================================
    # Sign-out
    # ==================================================================

    def logout(self) -> None:
        """Revoke the server session (best effort) and clear local state."""
        user = self._session.current_user
        user_email = user.email if user else "unknown"

        if self._db.is_online:
            try:
                self._db.supabase.auth.sign_out()
            except Exception as exc:
                self._logger.warning(
                    "Server-side sign_out failed for %s: %s", user_email, exc,
                )

        self._session.clear()
        self._logger.info(
            "User signed out: %s",
            user_email,
            extra={"event": "LOGOUT", "user_id": user.id if user else None},
        )

    # ==================================================================
    # Helpers
    # ==================================================================

    @staticmethod
    def _user_from_auth(auth_user: object, fallback_email: str = "") -> User:
        metadata: dict[str, object] = getattr(auth_user, "user_metadata", None) or {}
        full_name: Optional[object] = metadata.get("full_name")
        return User(
            id=str(getattr(auth_user, "id")),
            email=getattr(auth_user, "email", None) or fallback_email,
            full_name=str(full_name) if full_name else None,
        )

    def _classify_login_error(self, exc: Exception) -> AuthResult:
        """Map a Supabase or network exception to a structured result."""
        if isinstance(exc, (ConnectionError, TimeoutError)):
            self._logger.warning(
                "Network error during login: %s", exc,
                extra={"event": "LOGIN_NETWORK_ERROR"},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message="Cannot reach the server. Check your internet connection.",
            )

        error_str = str(exc).lower()
        for code_key, (error_code, human_message) in SUPABASE_ERROR_MAP.items():
            if code_key in error_str:
                self._logger.warning(
                    "Auth error (%s): %s", code_key, exc,
                    extra={"event": "LOGIN_FAILED", "error_code": code_key},
                )
                return AuthResult(
                    success=False,
                    error_code=error_code,
                    error_message=human_message,
                )

        self._logger.error(
            "Unknown login error: %s", exc,
            exc_info=True,
            extra={"event": "LOGIN_FAILED", "error_code": "unknown"},
        )
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.UNKNOWN_ERROR,
            error_message="An unexpected error occurred. Please try again later.",
        )
